"""
#WHERE
    Imported by pipeline.py, m4_asset_exporter, m6_equipment (placeholder
    props) and tests.

#WHAT
    Mesh Builder Module (Module 2) - procedural anime-proportioned humanoid
    body (head, neck, torso, arms, hands, legs, feet) skinned to the
    Module 1 skeleton with up to four normalized bone weights per vertex.

#INPUT
    Skeleton, MeshStyle (fixed stylistic parameters).

#OUTPUT
    SkinnedMesh with float32 positions/normals/uvs, uint16 joints,
    float32 weights and uint32 triangle indices.
"""

from .models import Geometry, MeshStyle, SkinnedMesh, SkinnedVertex, MAX_INFLUENCES
from .primitives import box, ellipsoid, tube
from .builder import AvatarMeshBuilder, build_avatar_mesh, build_static_mesh

__all__ = [
    "Geometry", "MeshStyle", "SkinnedMesh", "SkinnedVertex", "MAX_INFLUENCES",
    "box", "ellipsoid", "tube",
    "AvatarMeshBuilder", "build_avatar_mesh", "build_static_mesh",
]
