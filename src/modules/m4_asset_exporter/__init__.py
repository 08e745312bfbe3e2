"""
#WHERE
    Imported by pipeline.py, m6_equipment (placeholder props) and tests.

#WHAT
    Asset Exporter Module (Module 4) - serializes the Module 2 mesh,
    Module 1 skeleton and Module 3 clips into one glTF 2.0 binary (GLB)
    buffer using pygltflib.

#INPUT
    SkinnedMesh, Skeleton, List[AnimationClip], size limit, material.

#OUTPUT
    bytes (GLB container).  Raises ExportError on invalid bone references
    or when the buffer exceeds the configured limit.
"""

from .exporter import export_asset, export_static_asset
from .material import AvatarMaterial, CYBER_MATERIAL, hex_to_rgba

__all__ = ["export_asset", "export_static_asset", "AvatarMaterial", "CYBER_MATERIAL", "hex_to_rgba"]
