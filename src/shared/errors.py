"""
#WHERE
    Raised by m4_asset_exporter, m5_scene_runtime, m6_equipment and
    m7_stance_controller; caught by session.py and main.py.

#WHAT
    Error taxonomy for the avatar pipeline.  Generation-time errors are
    fatal for one attempt; attachment errors are recoverable per item.

#INPUT / #OUTPUT
    Exception classes only.
"""

from typing import Iterable, Optional


class AvatarPipelineError(Exception):
    """Base class for every error the avatar pipeline raises on purpose."""


class ExportError(AvatarPipelineError):
    """Asset serialization failed (invalid bone reference, size limit exceeded)."""


class AssetLoadError(AvatarPipelineError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"Failed to load asset {path!r}: {reason}")
        self.path = path
        self.reason = reason


class AttachmentResolutionError(AvatarPipelineError):
    """No primary or fallback bone of an equipment mapping exists in the skeleton."""

    def __init__(self, item_id: Optional[str], candidates: Iterable[str]):
        self.item_id = item_id
        self.candidates = list(candidates)
        label = item_id or "<unnamed>"
        super().__init__(
            f"Could not resolve bone for {label!r}: none of {self.candidates} "
            "exist in the loaded skeleton"
        )


class InvalidStanceError(AvatarPipelineError):
    def __init__(self, stance: str, available: Iterable[str] = ()):
        self.stance = stance
        self.available = sorted(available)
        super().__init__(
            f"No animation clip for stance {stance!r} (available: {self.available})"
        )
