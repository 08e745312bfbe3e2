"""
#WHERE
    Imported by session.py, main.py and tests.

#WHAT
    Equipment Module (Module 6) - catalog of wardrobe items, the attachment
    target registry, bone resolution with fallbacks, and the runtime that
    parents equipment models onto a loaded avatar skeleton.

#INPUT
    EquippedLook (item id per slot), loaded avatar Entity, AssetLoader.

#OUTPUT
    AttachmentReport with ResolvedAttachment entries and per-item failures.
"""

from .targets import (
    ATTACHMENT_TARGETS, AttachmentCategory, AttachmentTarget,
    get_bone_candidates, get_fallback_bones, get_targets_by_category, is_known_target,
)
from .catalog import (
    ACCESSORY_ASSET_MAP, DEFAULT_CATALOG, OUTFIT_ASSET_MAP, SHOE_ASSET_MAP,
    EquipmentCatalog, EquipmentMapping, EquippedLook,
    get_accessory_attachment, get_all_equipped_attachments, get_mapping, get_outfit_attachment,
    get_shoe_attachment,
)
from .resolver import resolve_bone, resolve_candidates
from .attachment import (
    COMPONENT_NAME, AttachmentConfig, AttachmentFailure, AttachmentReport,
    EquipmentAttacher, EquipmentAttachmentComponent, ResolvedAttachment,
    register_equipment_attachment,
)
from .placeholders import build_placeholder_assets, install_placeholder_assets, write_placeholder_assets

__all__ = [
    "ATTACHMENT_TARGETS", "AttachmentCategory", "AttachmentTarget",
    "get_bone_candidates", "get_fallback_bones", "get_targets_by_category", "is_known_target",
    "ACCESSORY_ASSET_MAP", "DEFAULT_CATALOG", "OUTFIT_ASSET_MAP", "SHOE_ASSET_MAP",
    "EquipmentCatalog", "EquipmentMapping", "EquippedLook",
    "get_accessory_attachment", "get_all_equipped_attachments", "get_mapping", "get_outfit_attachment",
    "get_shoe_attachment",
    "resolve_bone", "resolve_candidates",
    "COMPONENT_NAME", "AttachmentConfig", "AttachmentFailure", "AttachmentReport",
    "EquipmentAttacher", "EquipmentAttachmentComponent", "ResolvedAttachment",
    "register_equipment_attachment",
    "build_placeholder_assets", "install_placeholder_assets", "write_placeholder_assets",
]
