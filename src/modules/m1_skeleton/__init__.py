"""
#WHERE
    Imported by pipeline.py, m2_mesh_builder, m3_animation_baker,
    m4_asset_exporter and tests.

#WHAT
    Skeleton Definition Module (Module 1) - the fixed, named humanoid bone
    hierarchy with rest-pose local transforms.

#INPUT
    None (constant layout).

#OUTPUT
    Skeleton dataclass (ordered Bones + root name).
"""

from .models import Bone, Skeleton
from .definition import (
    BONE_NAMES, build_skeleton,
    SPINE, CHEST, HEAD, LEFT_HAND, RIGHT_HAND,
    LEFT_LEG, RIGHT_LEG, LEFT_FOOT, RIGHT_FOOT,
)

__all__ = [
    "Bone", "Skeleton", "BONE_NAMES", "build_skeleton",
    "SPINE", "CHEST", "HEAD", "LEFT_HAND", "RIGHT_HAND",
    "LEFT_LEG", "RIGHT_LEG", "LEFT_FOOT", "RIGHT_FOOT",
]
