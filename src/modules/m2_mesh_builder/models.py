"""
#WHERE
    Used by builder.py, primitives.py, m4_asset_exporter and tests.

#WHAT
    Mesh data models: stylistic parameters (MeshStyle), raw primitive
    geometry (Geometry), per-vertex skin binding view (SkinnedVertex) and the
    packed skinned mesh handed to the exporter (SkinnedMesh).

#INPUT
    numpy arrays produced by primitives.py / builder.py.

#OUTPUT
    MeshStyle, Geometry, SkinnedVertex, SkinnedMesh instances.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, Tuple

import numpy as np

MAX_INFLUENCES = 4


@dataclass(slots=True)
class MeshStyle:
    """Anime-futuristic proportions: oversized head, slender limbs."""
    head_scale: float   = 1.3
    limb_scale: float   = 1.0
    torso_width: float  = 0.17
    hip_width: float    = 0.14
    sphere_lat: int     = 16
    sphere_lon: int     = 24
    tube_segments: int  = 16
    tube_rings: int     = 8

    def scaled(self, detail: float) -> "MeshStyle":
        """Copy with segment counts multiplied by *detail* (floors keep geometry closed)."""
        return MeshStyle(
            head_scale=self.head_scale, limb_scale=self.limb_scale,
            torso_width=self.torso_width, hip_width=self.hip_width,
            sphere_lat=max(4, int(self.sphere_lat * detail)),
            sphere_lon=max(6, int(self.sphere_lon * detail)),
            tube_segments=max(6, int(self.tube_segments * detail)),
            tube_rings=max(2, int(self.tube_rings * detail)),
        )


@dataclass(slots=True)
class Geometry:
    positions: np.ndarray   # (N, 3)
    normals: np.ndarray     # (N, 3) unit length
    uvs: np.ndarray         # (N, 2)
    indices: np.ndarray     # (M, 3) counter-clockwise seen from outside


@dataclass(frozen=True, slots=True)
class SkinnedVertex:
    position: Tuple[float, float, float]
    normal: Tuple[float, float, float]
    influences: Tuple[Tuple[int, float], ...]

    @property
    def weight_sum(self) -> float:
        return sum(w for _, w in self.influences)


@dataclass
class SkinnedMesh:
    name: str
    positions: np.ndarray          # float32 (N, 3)
    normals: np.ndarray            # float32 (N, 3)
    uvs: np.ndarray                # float32 (N, 2)
    indices: np.ndarray            # uint32  (M * 3,)
    joints: np.ndarray             # uint16  (N, 4) indices into joint_names
    weights: np.ndarray            # float32 (N, 4)
    joint_names: Tuple[str, ...]
    parts: Dict[str, Tuple[int, int]] = field(default_factory=dict)

    @property
    def vertex_count(self) -> int:
        return int(self.positions.shape[0])

    @property
    def triangle_count(self) -> int:
        return int(self.indices.shape[0] // 3)

    def vertex(self, i: int) -> SkinnedVertex:
        influences = tuple(
            (int(j), float(w)) for j, w in zip(self.joints[i], self.weights[i]) if w > 0.0
        )
        return SkinnedVertex(
            position=tuple(float(c) for c in self.positions[i]),
            normal=tuple(float(c) for c in self.normals[i]),
            influences=influences,
        )

    def vertices(self) -> Iterator[SkinnedVertex]:
        for i in range(self.vertex_count):
            yield self.vertex(i)

    def validate(self, tolerance: float = 1e-4) -> None:
        """Raise ValueError if any skin binding or index is out of contract."""
        sums = self.weights.astype(np.float64).sum(axis=1)
        bad = np.flatnonzero(np.abs(sums - 1.0) > tolerance)
        if bad.size:
            raise ValueError(f"{bad.size} vertices have weights not summing to 1 (first: {bad[0]})")
        if int(self.joints.max(initial=0)) >= len(self.joint_names):
            raise ValueError("Joint index out of range")
        if self.indices.size and int(self.indices.max()) >= self.vertex_count:
            raise ValueError("Triangle index out of range")
        lengths = np.linalg.norm(self.normals, axis=1)
        if np.any(lengths < 0.5):
            raise ValueError("Degenerate vertex normal")
