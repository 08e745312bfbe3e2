"""
#WHERE
    Used by session.py, main.py (equip command) and tests.

#WHAT
    Attachment runtime - parents equipment models under resolved bones of a
    loaded avatar so they follow the skeleton.  Two entry points:
      EquipmentAttacher                  imperative, one per avatar entity,
                                         applies a whole EquippedLook.
      EquipmentAttachmentComponent       declarative "equipment-attachment"
                                         component on an equipment entity
                                         nested under the avatar entity.
    Attachment failures are isolated per item and warned once per
    item / bone-set.

#INPUT
    Entity with a loaded avatar model, AssetLoader, EquippedLook or
    AttachmentConfig.

#OUTPUT
    AttachmentReport (attached items + failures).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from src.modules.m5_scene_runtime import (
    MODEL_LOADED, AssetLoader, Component, ComponentRegistry, Entity, SceneNode,
)
from src.shared.errors import AssetLoadError, AttachmentResolutionError
from src.shared.transforms import IDENTITY_QUAT, UNIT_SCALE, Vec3, ZERO_VEC, euler_to_quat

from .catalog import DEFAULT_CATALOG, EquipmentCatalog, EquipmentMapping, EquippedLook
from .resolver import resolve_bone, resolve_candidates

log = logging.getLogger(__name__)

COMPONENT_NAME = "equipment-attachment"


@dataclass(slots=True)
class ResolvedAttachment:
    slot: str
    item_id: str
    resolved_bone_name: str
    node: SceneNode


@dataclass(slots=True)
class AttachmentFailure:
    slot: str
    item_id: str
    reason: str
    candidates: List[str] = field(default_factory=list)


@dataclass(slots=True)
class AttachmentReport:
    attached: List[ResolvedAttachment] = field(default_factory=list)
    failures: List[AttachmentFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def bones(self) -> Dict[str, str]:
        return {a.item_id: a.resolved_bone_name for a in self.attached}


@dataclass(frozen=True, slots=True)
class AttachmentConfig:
    """Typed form of the equipment-attachment attributes."""
    target_bone: str
    fallback_bones: Tuple[str, ...] = ()
    offset: Vec3 = ZERO_VEC
    scale: Optional[Vec3] = None
    rotation: Optional[Vec3] = None

    def candidates(self) -> List[str]:
        return [self.target_bone, *self.fallback_bones]

    @classmethod
    def from_mapping(cls, mapping: EquipmentMapping) -> "AttachmentConfig":
        return cls(mapping.attachment_bone, tuple(mapping.fallback_bones),
                   mapping.offset, mapping.scale, mapping.rotation)

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> "AttachmentConfig":
        return cls(
            target_bone=data["targetBone"],
            fallback_bones=tuple(data["fallbackBones"]),
            offset=(data["offsetX"], data["offsetY"], data["offsetZ"]),
        )

    def to_data(self) -> Dict[str, Any]:
        x, y, z = self.offset
        return {"targetBone": self.target_bone, "fallbackBones": list(self.fallback_bones),
                "offsetX": x, "offsetY": y, "offsetZ": z}


def _bone_index(root: SceneNode) -> Dict[str, SceneNode]:
    # first joint wins on duplicate names
    bones: Dict[str, SceneNode] = {}
    for joint in root.joints():
        bones.setdefault(joint.name, joint)
    return bones


def _place(node: SceneNode, offset: Vec3, scale: Optional[Vec3], rotation: Optional[Vec3]) -> None:
    node.translation = tuple(float(c) for c in offset)
    node.rotation = euler_to_quat(rotation) if rotation is not None else IDENTITY_QUAT
    node.scale = tuple(float(c) for c in scale) if scale is not None else UNIT_SCALE


class _WarnOnce:
    def __init__(self):
        self._seen: Set[Tuple[str, Tuple[str, ...]]] = set()

    def __call__(self, item_id: str, bones: Sequence[str], msg: str, *args: Any) -> None:
        key = (item_id, tuple(sorted(bones)))
        if key in self._seen:
            log.debug(msg, *args)
            return
        self._seen.add(key)
        log.warning(msg, *args)


class EquipmentAttacher:
    """Applies an EquippedLook to one avatar entity.

    Re-applying the same look is a no-op.  Slots whose item changed or was
    cleared are detached before new items are mounted.
    """

    def __init__(self, avatar: Entity, loader: AssetLoader,
                 catalog: EquipmentCatalog = DEFAULT_CATALOG):
        self.avatar = avatar
        self.loader = loader
        self.catalog = catalog
        self._attached: Dict[str, ResolvedAttachment] = {}
        self._warn = _WarnOnce()
        self.last_report: Optional[AttachmentReport] = None

    @property
    def attachments(self) -> List[ResolvedAttachment]:
        return list(self._attached.values())

    def attach(self, look: EquippedLook) -> AttachmentReport:
        root = self.avatar.require_model()
        bones = _bone_index(root)
        report = AttachmentReport()

        wanted: Dict[str, EquipmentMapping] = {}
        for slot, item_id in look.items():
            if not item_id:
                continue
            mapping = self.catalog.get(slot, item_id)
            if mapping is None:
                self._warn(item_id, (), "[M6] Unknown %s item %r, skipping", slot, item_id)
                report.failures.append(AttachmentFailure(slot, item_id, "unknown item"))
                continue
            wanted[slot] = mapping

        for slot, current in list(self._attached.items()):
            mapping = wanted.get(slot)
            if mapping is None or mapping.item_id != current.item_id:
                self._detach(slot)

        for slot, mapping in wanted.items():
            existing = self._attached.get(slot)
            if existing is not None:
                report.attached.append(existing)
                continue
            try:
                bone_name = resolve_bone(bones.keys(), mapping)
                model = self.loader.load_now(mapping.asset_path)
            except AttachmentResolutionError as e:
                self._warn(mapping.item_id, bones.keys(), "[M6] %s", e)
                report.failures.append(AttachmentFailure(slot, mapping.item_id, str(e), e.candidates))
                continue
            except AssetLoadError as e:
                self._warn(mapping.item_id, bones.keys(), "[M6] %s: %s", mapping.item_id, e)
                report.failures.append(AttachmentFailure(slot, mapping.item_id, str(e)))
                continue

            mount = SceneNode(f"equipment:{mapping.item_id}")
            _place(mount, mapping.offset, mapping.scale, mapping.rotation)
            for child in list(model.children):
                mount.add(child)
            bones[bone_name].add(mount)
            resolved = ResolvedAttachment(slot, mapping.item_id, bone_name, mount)
            self._attached[slot] = resolved
            report.attached.append(resolved)
            log.info("[M6] Attached %s to %s", mapping.item_id, bone_name)

        self.last_report = report
        return report

    def _detach(self, slot: str) -> None:
        resolved = self._attached.pop(slot)
        resolved.node.detach()
        log.info("[M6] Detached %s from %s", resolved.item_id, resolved.resolved_bone_name)

    def detach_all(self) -> None:
        for slot in list(self._attached):
            self._detach(slot)


class EquipmentAttachmentComponent(Component):
    """Mounts its entity's model under a bone of the parent avatar entity.

    Waits for model-loaded on both itself and the parent; whichever arrives
    last triggers the attach.  Data changes re-attach; removal detaches.
    """

    schema = {
        "targetBone":    ("string", ""),
        "fallbackBones": ("array", []),
        "offsetX":       ("number", 0.0),
        "offsetY":       ("number", 0.0),
        "offsetZ":       ("number", 0.0),
    }

    def init(self) -> None:
        self.attached = False
        self.resolved_bone_name: Optional[str] = None
        self._bone: Optional[SceneNode] = None
        self._warn = _WarnOnce()
        self._avatar = self.entity.parent
        self.entity.on(MODEL_LOADED, self._on_model_loaded)
        if self._avatar is not None:
            self._avatar.on(MODEL_LOADED, self._on_model_loaded)

    def update(self, old_data: Dict[str, Any]) -> None:
        if old_data == self.data:
            return
        if self.attached:
            self._detach()
        self.try_attach()

    def remove(self) -> None:
        self.entity.off(MODEL_LOADED, self._on_model_loaded)
        if self._avatar is not None:
            self._avatar.off(MODEL_LOADED, self._on_model_loaded)
        if self.attached:
            self._detach()

    def _on_model_loaded(self, *_: Any) -> None:
        if self.attached:
            # avatar or equipment model was swapped; remount onto the new tree
            self._detach()
        self.try_attach()

    def _ready(self) -> bool:
        return (self._avatar is not None and self._avatar.is_loaded
                and self.entity.is_loaded and bool(self.data["targetBone"]))

    def try_attach(self) -> bool:
        """Attach if both models are present; resolution failures warn once and return False."""
        if self.attached or not self._ready():
            return False
        try:
            self._mount(AttachmentConfig.from_data(self.data))
        except AttachmentResolutionError as e:
            self._warn(self.entity.name, self._avatar.require_model().joint_names(), "[M6] %s", e)
            return False
        return True

    def attach(self, config: AttachmentConfig) -> str:
        """Explicit attach; both models must already be loaded.  Returns the resolved bone."""
        if self._avatar is None:
            raise RuntimeError(f"Entity {self.entity.name!r} has no parent avatar entity")
        self._avatar.require_model()
        self.entity.require_model()
        if self.attached:
            self._detach()
        self.data = {**self.data, **config.to_data()}
        self._mount(config)
        return self.resolved_bone_name

    def _mount(self, config: AttachmentConfig) -> None:
        bones = _bone_index(self._avatar.require_model())
        bone_name = resolve_candidates(bones.keys(), self.entity.name, config.candidates())
        model = self.entity.require_model()
        _place(model, config.offset, config.scale, config.rotation)
        bones[bone_name].add(model)
        self._bone = bones[bone_name]
        self.resolved_bone_name = bone_name
        self.attached = True
        log.info("[M6] %s attached to %s", self.entity.name, bone_name)

    def _detach(self) -> None:
        model = self.entity.object3d
        if model is not None and model.parent is self._bone:
            model.detach()
        self._bone = None
        self.resolved_bone_name = None
        self.attached = False


def register_equipment_attachment(registry: ComponentRegistry) -> bool:
    return registry.register(COMPONENT_NAME, EquipmentAttachmentComponent)
