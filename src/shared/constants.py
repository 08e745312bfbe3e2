"""
#WHERE
    Imported by pipeline.py, session.py and every module - single source of
    truth for asset paths, clip names and default limits.

#WHAT
    Centralised constants used across 3+ modules.  Edit here, not in
    individual module files.

#INPUT / #OUTPUT
    Pure constants - no I/O.
"""

# ── Avatar asset ─────────────────────────────────────────────────────────

AVATAR_GLB_FILENAME: str = "nuverse-avatar-anime-futuristic.glb"
AVATAR_ASSET_PATH: str = f"/assets/xr/{AVATAR_GLB_FILENAME}"
AVATAR_ROOT_NODE: str = "NuVerseAvatar"
AVATAR_MESH_NODE: str = "AvatarBody"

DEFAULT_OUTPUT_DIR: str = "outputs"

# Exported buffers above this size fail with ExportError
DEFAULT_MAX_ASSET_BYTES: int = 4 * 1024 * 1024

# ── Animation ────────────────────────────────────────────────────────────

CLIP_IDLE: str = "Idle"
CLIP_ACTION: str = "Action"
CLIP_VICTORY: str = "Victory"
CLIP_NAMES: tuple = (CLIP_IDLE, CLIP_ACTION, CLIP_VICTORY)

CROSSFADE_SECONDS: float = 0.3   # fade-in of the incoming stance clip

# ── Equipment ────────────────────────────────────────────────────────────

EQUIPMENT_SLOTS: tuple = ("shoes", "accessories", "outfits")

SHOE_ASSET_PATH: str = "/assets/xr/equipment/shoes/cyber-sneakers-01.glb"
ACCESSORY_ASSET_PATH: str = "/assets/xr/equipment/accessories/cyber-accessory-01.glb"
OUTFIT_ASSET_PATH: str = "/assets/xr/equipment/outfits/cyber-outfit-01.glb"
