"""Bone resolution: first candidate present in the loaded skeleton wins."""

import logging
from typing import Iterable, Sequence

from src.shared.errors import AttachmentResolutionError

from .catalog import EquipmentMapping

log = logging.getLogger(__name__)


def resolve_candidates(loaded_bone_names: Iterable[str], item_id: str,
                       candidates: Sequence[str]) -> str:
    """Return the first of *candidates* that exists in *loaded_bone_names*.

    Matching is exact and case-sensitive.  Raises AttachmentResolutionError
    carrying the tried candidates when none is present.
    """
    available = set(loaded_bone_names)
    for i, name in enumerate(candidates):
        if name in available:
            if i > 0:
                log.info("[M6] %s: primary bone %r missing, using fallback %r",
                         item_id, candidates[0], name)
            return name
    raise AttachmentResolutionError(item_id, list(candidates))


def resolve_bone(loaded_bone_names: Iterable[str], mapping: EquipmentMapping) -> str:
    return resolve_candidates(loaded_bone_names, mapping.item_id, mapping.candidates())
