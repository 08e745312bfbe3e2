"""
#WHERE
    Imported by m6_equipment, m7_stance_controller, m8_diagnostics,
    session.py, main.py and tests.

#WHAT
    Scene Runtime Module (Module 5) - the host-side 3D scene the avatar
    lives in: SceneNode graph, asynchronous GLB/image loader, entities
    with model-loaded events and teardown guards, and the declarative
    component registry.

#INPUT
    Asset paths, AssetSource (disk or memory), component attribute strings.

#OUTPUT
    SceneNode trees, Entity instances, typed component data.
"""

from .scene_graph import MeshInfo, SceneNode
from .loader import (
    AssetLoader, AssetSource, FileAssetSource, MemoryAssetSource, InlineExecutor,
    parse_asset, parse_glb, parse_image,
)
from .components import Component, ComponentRegistry, Schema, parse_attributes, split_attribute_string
from .entity import Entity, MODEL_ERROR, MODEL_LOADED

__all__ = [
    "MeshInfo", "SceneNode",
    "AssetLoader", "AssetSource", "FileAssetSource", "MemoryAssetSource", "InlineExecutor",
    "parse_asset", "parse_glb", "parse_image",
    "Component", "ComponentRegistry", "Schema", "parse_attributes", "split_attribute_string",
    "Entity", "MODEL_ERROR", "MODEL_LOADED",
]
