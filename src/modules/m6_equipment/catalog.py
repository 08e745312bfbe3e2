"""
#WHERE
    Used by attachment.py, placeholders.py, session.py, main.py and tests.

#WHAT
    Equipment Catalog - static mapping from wardrobe item ids to asset
    paths, target bones, fallback chains and local offset / rotation /
    scale.  Also the EquippedLook value consumed by the attacher.

#INPUT
    Item ids per slot ("shoes", "accessories", "outfits").

#OUTPUT
    EquipmentMapping entries (read-only).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from src.shared.constants import (
    ACCESSORY_ASSET_PATH, EQUIPMENT_SLOTS, OUTFIT_ASSET_PATH, SHOE_ASSET_PATH,
)
from src.shared.transforms import Vec3, ZERO_VEC

from .targets import get_fallback_bones


@dataclass(frozen=True, slots=True)
class EquipmentMapping:
    item_id: str
    asset_path: str
    attachment_bone: str
    fallback_bones: Tuple[str, ...] = ()
    offset: Vec3 = ZERO_VEC
    scale: Optional[Vec3] = None
    rotation: Optional[Vec3] = None   # Euler XYZ, degrees
    slot: str = ""

    def candidates(self) -> List[str]:
        return [self.attachment_bone, *self.fallback_bones]


@dataclass(slots=True)
class EquippedLook:
    shoes: Optional[str] = None
    accessories: Optional[str] = None
    outfits: Optional[str] = None

    def items(self) -> Iterator[Tuple[str, Optional[str]]]:
        for slot in EQUIPMENT_SLOTS:
            yield slot, getattr(self, slot)

    def to_dict(self) -> Dict[str, Optional[str]]:
        return dict(self.items())

    @classmethod
    def from_dict(cls, data: Any) -> Optional["EquippedLook"]:
        """Validate persisted data; anything without all three slots is rejected."""
        if not isinstance(data, Mapping) or not all(slot in data for slot in EQUIPMENT_SLOTS):
            return None
        values = {slot: data[slot] for slot in EQUIPMENT_SLOTS}
        if any(v is not None and not isinstance(v, str) for v in values.values()):
            return None
        return cls(**values)


def _mapping(slot: str, item_id: str, asset: str, target: str, primary: Optional[str] = None,
             offset: Vec3 = ZERO_VEC, scale: Vec3 = (1.0, 1.0, 1.0),
             rotation: Optional[Vec3] = None) -> EquipmentMapping:
    primary = primary or target
    return EquipmentMapping(
        item_id=item_id, asset_path=asset, attachment_bone=primary,
        fallback_bones=get_fallback_bones(target, primary),
        offset=offset, scale=scale, rotation=rotation, slot=slot,
    )


SHOE_ASSET_MAP: Dict[str, EquipmentMapping] = {
    f"shoe-{i}": _mapping("shoes", f"shoe-{i}", SHOE_ASSET_PATH,
                          "LeftFoot" if i % 2 else "RightFoot")
    for i in range(1, 7)
}

ACCESSORY_ASSET_MAP: Dict[str, EquipmentMapping] = {
    "accessory-1": _mapping("accessories", "accessory-1", ACCESSORY_ASSET_PATH, "Head",
                            offset=(0.0, 0.1, 0.0)),
    "accessory-2": _mapping("accessories", "accessory-2", ACCESSORY_ASSET_PATH, "LeftHand",
                            scale=(0.8, 0.8, 0.8)),
    "accessory-3": _mapping("accessories", "accessory-3", ACCESSORY_ASSET_PATH, "RightHand",
                            scale=(0.8, 0.8, 0.8)),
    "accessory-4": _mapping("accessories", "accessory-4", ACCESSORY_ASSET_PATH, "Back",
                            primary="Spine", offset=(0.0, 0.2, -0.1), scale=(1.2, 1.2, 1.2)),
    "accessory-5": _mapping("accessories", "accessory-5", ACCESSORY_ASSET_PATH, "Head",
                            offset=(0.0, 0.15, 0.0)),
    "accessory-6": _mapping("accessories", "accessory-6", ACCESSORY_ASSET_PATH, "LeftHand",
                            scale=(0.9, 0.9, 0.9)),
}

OUTFIT_ASSET_MAP: Dict[str, EquipmentMapping] = {
    f"outfit-{i}": _mapping("outfits", f"outfit-{i}", OUTFIT_ASSET_PATH, "Chest",
                            offset=(0.0, -0.1, 0.0), scale=(1.0 + 0.02 * i,) * 3)
    for i in range(1, 7)
}


@dataclass
class EquipmentCatalog:
    slots: Dict[str, Dict[str, EquipmentMapping]] = field(default_factory=lambda: {
        "shoes": SHOE_ASSET_MAP,
        "accessories": ACCESSORY_ASSET_MAP,
        "outfits": OUTFIT_ASSET_MAP,
    })

    def get(self, slot: str, item_id: Optional[str]) -> Optional[EquipmentMapping]:
        if not item_id:
            return None
        if slot not in self.slots:
            raise ValueError(f"Unknown equipment slot: {slot}")
        return self.slots[slot].get(item_id)

    def asset_paths(self) -> List[str]:
        return sorted({m.asset_path for table in self.slots.values() for m in table.values()})

    def for_look(self, look: EquippedLook) -> List[EquipmentMapping]:
        """Active mappings in slot order; empty slots and unknown ids are skipped."""
        return [m for slot, item in look.items() if (m := self.get(slot, item)) is not None]


DEFAULT_CATALOG = EquipmentCatalog()


def get_shoe_attachment(item_id: Optional[str]) -> Optional[EquipmentMapping]:
    return DEFAULT_CATALOG.get("shoes", item_id)


def get_accessory_attachment(item_id: Optional[str]) -> Optional[EquipmentMapping]:
    return DEFAULT_CATALOG.get("accessories", item_id)


def get_outfit_attachment(item_id: Optional[str]) -> Optional[EquipmentMapping]:
    return DEFAULT_CATALOG.get("outfits", item_id)


def get_mapping(slot: str, item_id: Optional[str]) -> Optional[EquipmentMapping]:
    return DEFAULT_CATALOG.get(slot, item_id)


def get_all_equipped_attachments(look: EquippedLook) -> List[EquipmentMapping]:
    return DEFAULT_CATALOG.for_look(look)
