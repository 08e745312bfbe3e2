"""Placeholder equipment props so the catalog's asset paths resolve out of the box."""

import logging
from pathlib import Path, PurePosixPath
from typing import Dict, List

from src.modules.m2_mesh_builder import box, build_static_mesh, ellipsoid, tube
from src.modules.m4_asset_exporter import AvatarMaterial, export_static_asset
from src.modules.m5_scene_runtime import MemoryAssetSource
from src.shared.constants import ACCESSORY_ASSET_PATH, OUTFIT_ASSET_PATH, SHOE_ASSET_PATH

log = logging.getLogger(__name__)

_NEON = AvatarMaterial(name="NeonTrim", base_color="#1b1b2f", emissive="#ff00ff",
                       emissive_intensity=0.4, metallic=0.5, roughness=0.4)


def _sneaker() -> bytes:
    sole = box((0.0, -0.035, 0.03), (0.045, 0.012, 0.1))
    upper = box((0.0, 0.0, 0.01), (0.04, 0.03, 0.07))
    return export_static_asset(build_static_mesh("CyberSneaker", [sole, upper]), _NEON)


def _accessory() -> bytes:
    ring = tube((0.0, -0.02, 0.0), (0.0, 0.02, 0.0), 0.06, 0.06, segments=20, rings=2)
    gem = ellipsoid((0.0, 0.04, 0.0), (0.025, 0.025, 0.025), 8, 12)
    return export_static_asset(build_static_mesh("CyberAccessory", [ring, gem]), _NEON)


def _outfit() -> bytes:
    shell = tube((0.0, -0.3, 0.0), (0.0, 0.05, 0.0), 0.16, 0.19, segments=24, rings=6)
    return export_static_asset(build_static_mesh("CyberOutfit", [shell]))


def build_placeholder_assets() -> Dict[str, bytes]:
    """Asset path -> GLB bytes for every equipment asset path in the catalog."""
    return {
        SHOE_ASSET_PATH: _sneaker(),
        ACCESSORY_ASSET_PATH: _accessory(),
        OUTFIT_ASSET_PATH: _outfit(),
    }


def install_placeholder_assets(source: MemoryAssetSource) -> None:
    for path, data in build_placeholder_assets().items():
        source.put(path, data)


def write_placeholder_assets(root: str) -> List[Path]:
    written = []
    for path, data in build_placeholder_assets().items():
        target = Path(root) / PurePosixPath(path.lstrip("/"))
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        written.append(target)
        log.info("[M6] Wrote placeholder %s (%d bytes)", target, len(data))
    return written
