"""Read-only inspection of a loaded avatar scene."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from src.modules.m5_scene_runtime import SceneNode
from src.shared.transforms import Vec3, quat_to_euler

log = logging.getLogger(__name__)


@dataclass(slots=True)
class DiagnosticsReport:
    model_loaded: bool
    orientation: Optional[Vec3] = None    # Euler XYZ, degrees
    scale: Optional[Vec3] = None
    animation_clips: List[str] = field(default_factory=list)
    detected_bones: List[str] = field(default_factory=list)

    def missing_bones(self, expected: Iterable[str]) -> List[str]:
        present = set(self.detected_bones)
        return [name for name in expected if name not in present]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "modelLoaded": self.model_loaded,
            "orientation": list(self.orientation) if self.orientation is not None else None,
            "scale": list(self.scale) if self.scale is not None else None,
            "animationClips": list(self.animation_clips),
            "detectedBones": list(self.detected_bones),
        }


def _clip_names(root: SceneNode) -> List[str]:
    names: List[str] = []
    for node in root.traverse():
        for clip in node.animations:
            if clip.name not in names:
                names.append(clip.name)
    return names


def inspect(root: Optional[SceneNode]) -> DiagnosticsReport:
    """Snapshot of *root*: joints in traversal order, clip names, root orientation and scale.

    ``None`` (nothing loaded yet) yields an empty report with model_loaded False.
    """
    if root is None:
        return DiagnosticsReport(model_loaded=False)
    report = DiagnosticsReport(
        model_loaded=True,
        orientation=tuple(round(a, 6) for a in quat_to_euler(root.rotation)),
        scale=tuple(root.scale),
        animation_clips=_clip_names(root),
        detected_bones=root.joint_names(),
    )
    log.debug("[M8] %s: %d bones, clips=%s", root.name, len(report.detected_bones), report.animation_clips)
    return report
