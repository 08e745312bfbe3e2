"""
#WHERE
    Entry point of avatar generation - called by main.py (generate command)
    and tests.

#WHAT
    End-to-end generation: M1 skeleton → M2 skinned mesh → M3 baked clips →
    M4 GLB export → file under the conventional filename.  Optionally
    writes placeholder equipment assets (M6) next to it so the equip and
    inspect commands work offline.

#INPUT
    AvatarPipelineConfig.

#OUTPUT
    Dict with asset path, GLB bytes, size, bone / clip names and per-stage
    timings.  ExportError propagates whole (one failed attempt, no partial
    file is written).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict, Optional

from src.modules.m1_skeleton import build_skeleton
from src.modules.m2_mesh_builder import MeshStyle, build_avatar_mesh
from src.modules.m3_animation_baker import bake_clips
from src.modules.m4_asset_exporter import CYBER_MATERIAL, AvatarMaterial, export_asset
from src.modules.m6_equipment import write_placeholder_assets
from src.shared.constants import (
    AVATAR_ASSET_PATH, AVATAR_GLB_FILENAME, DEFAULT_MAX_ASSET_BYTES, DEFAULT_OUTPUT_DIR,
)
from src.shared.profiling import stage

log = logging.getLogger(__name__)


@dataclass
class AvatarPipelineConfig:
    output_dir: str = DEFAULT_OUTPUT_DIR
    filename: str = AVATAR_GLB_FILENAME
    max_asset_bytes: Optional[int] = DEFAULT_MAX_ASSET_BYTES   # None disables the limit
    detail: float = 1.0                  # M2: multiplies sphere / tube segment counts
    style: MeshStyle = field(default_factory=MeshStyle)
    material: AvatarMaterial = CYBER_MATERIAL
    asset_layout: bool = False           # write under <output_dir>/assets/xr/ like the web root
    with_equipment: bool = False         # M6: placeholder equipment GLBs alongside the avatar
    write_file: bool = True


class AvatarPipeline:
    """Procedural avatar → GLB file.  Stateless between runs."""

    def __init__(self, config: AvatarPipelineConfig | None = None) -> None:
        self.config = config or AvatarPipelineConfig()

    def asset_path(self) -> Path:
        cfg = self.config
        if cfg.asset_layout:
            return Path(cfg.output_dir) / PurePosixPath(AVATAR_ASSET_PATH.lstrip("/")).parent / cfg.filename
        return Path(cfg.output_dir) / cfg.filename

    def run(self) -> Dict[str, Any]:
        cfg = self.config
        if cfg.detail <= 0:
            raise ValueError(f"detail must be positive, got {cfg.detail}")
        timings: Dict[str, float] = {}

        with stage("M1 skeleton", timings):
            skeleton = build_skeleton()
        log.info("[M1] %d bones, root=%s", len(skeleton), skeleton.root)

        with stage("M2 mesh", timings):
            mesh = build_avatar_mesh(skeleton, cfg.style.scaled(cfg.detail))
        log.info("[M2] %d vertices, %d triangles", mesh.vertex_count, mesh.triangle_count)

        with stage("M3 clips", timings):
            clips = bake_clips(skeleton)
        log.info("[M3] clips: %s", [c.name for c in clips])

        with stage("M4 export", timings):
            data = export_asset(mesh, skeleton, clips,
                                max_bytes=cfg.max_asset_bytes, material=cfg.material)
        log.info("[M4] GLB %d bytes", len(data))

        path: Optional[Path] = None
        if cfg.write_file:
            path = self.asset_path()
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(path.suffix + ".tmp")
            tmp.write_bytes(data)
            os.replace(tmp, path)
            log.info("[M4] wrote %s", path)

        equipment = []
        if cfg.with_equipment:
            with stage("M6 placeholders", timings):
                equipment = [str(p) for p in write_placeholder_assets(cfg.output_dir)]

        return {
            "asset_path": str(path) if path is not None else None,
            "asset_bytes": data,
            "size": len(data),
            "bones": skeleton.names(),
            "clips": [c.name for c in clips],
            "vertex_count": mesh.vertex_count,
            "equipment_paths": equipment,
            "timings": timings,
        }
