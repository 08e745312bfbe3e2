"""Humanoid body assembly: primitive parts placed on the skeleton and skinned to it."""

import logging
from typing import Callable, Dict, List, Sequence, Tuple

import numpy as np

from src.modules.m1_skeleton import (
    Skeleton, SPINE, CHEST, HEAD, LEFT_HAND, RIGHT_HAND,
    LEFT_LEG, RIGHT_LEG, LEFT_FOOT, RIGHT_FOOT,
)
from src.shared.constants import AVATAR_MESH_NODE

from .models import MAX_INFLUENCES, Geometry, MeshStyle, SkinnedMesh
from .primitives import box, ellipsoid, tube

log = logging.getLogger(__name__)

# Maps a part's per-vertex parameter (height or tube t) to {bone: weight}
WeightFn = Callable[[np.ndarray, float], Dict[str, float]]


def _smoothstep(lo: float, hi: float, x: float) -> float:
    t = min(1.0, max(0.0, (x - lo) / (hi - lo)))
    return t * t * (3 - 2 * t)


def _rigid(bone: str) -> WeightFn:
    return lambda _pos, _t: {bone: 1.0}


def _blend(lower: str, upper: str, lo: float, hi: float) -> WeightFn:
    def fn(_pos: np.ndarray, t: float) -> Dict[str, float]:
        s = _smoothstep(lo, hi, t)
        return {lower: 1.0 - s, upper: s}
    return fn


def _leg(leg: str, foot: str) -> WeightFn:
    def fn(_pos: np.ndarray, t: float) -> Dict[str, float]:
        w_spine = 1.0 - _smoothstep(0.0, 0.15, t)
        w_foot = _smoothstep(0.7, 1.0, t)
        return {SPINE: w_spine, foot: w_foot, leg: max(0.0, 1.0 - w_spine - w_foot)}
    return fn


def _pack_influences(weights: Dict[str, float], joint_index: Dict[str, int]) -> Tuple[List[int], List[float]]:
    ranked = sorted(((w, joint_index[b]) for b, w in weights.items() if w > 1e-6), reverse=True)
    ranked = ranked[:MAX_INFLUENCES]
    total = sum(w for w, _ in ranked)
    joints = [j for _, j in ranked] + [0] * (MAX_INFLUENCES - len(ranked))
    values = [w / total for w, _ in ranked] + [0.0] * (MAX_INFLUENCES - len(ranked))
    return joints, values


def _tube_param(geometry: Geometry, start: np.ndarray, end: np.ndarray) -> np.ndarray:
    span = end - start
    return np.clip((geometry.positions - start) @ span / float(span @ span), 0.0, 1.0)


class AvatarMeshBuilder:
    """Builds the single skinned body mesh for a skeleton."""

    def __init__(self, skeleton: Skeleton, style: MeshStyle = None):
        self.skeleton = skeleton
        self.style = style or MeshStyle()
        self._world = {name: skeleton.world_position(name) for name in skeleton.names()}
        self._joint_index = {name: i for i, name in enumerate(skeleton.names())}

    def _part_layout(self) -> List[Tuple[str, Geometry, np.ndarray, WeightFn]]:
        s, w = self.style, self._world
        limb = s.limb_scale
        lat, lon, seg, rings = s.sphere_lat, s.sphere_lon, s.tube_segments, s.tube_rings
        parts = []

        def add_tube(name, start, end, r0, r1, weight_fn):
            start, end = np.asarray(start, float), np.asarray(end, float)
            geo = tube(start, end, r0, r1, seg, rings)
            parts.append((name, geo, _tube_param(geo, start, end), weight_fn))

        head_r = 0.14 * s.head_scale
        head_centre = w[HEAD] + np.array([0.0, head_r * 0.9, 0.0])
        head = ellipsoid(head_centre, (head_r, head_r * 1.1, head_r * 0.95), lat, lon)
        head_param = head.positions[:, 1]
        parts.append(("head", head, head_param,
                      _blend(CHEST, HEAD, w[HEAD][1] - 0.04, w[HEAD][1] + 0.02)))

        add_tube("neck", w[CHEST] + [0, 0.10, 0], w[HEAD] + [0, 0.04, 0],
                 0.05 * limb, 0.045 * limb, _blend(CHEST, HEAD, 0.3, 0.9))
        add_tube("torso", w[SPINE] + [0, -0.05, 0], w[CHEST] + [0, 0.14, 0],
                 s.hip_width, s.torso_width, _blend(SPINE, CHEST, 0.3, 0.7))

        for side, hand, sign in (("left", LEFT_HAND, 1.0), ("right", RIGHT_HAND, -1.0)):
            shoulder = w[CHEST] + [sign * (s.torso_width - 0.01), 0.11, 0.0]
            add_tube(f"{side}_arm", shoulder, w[hand], 0.055 * limb, 0.04 * limb,
                     _blend(CHEST, hand, 0.2, 0.95))
            palm = ellipsoid(w[hand] + [sign * 0.05, 0.0, 0.0], (0.05 * limb,) * 3, lat // 2, lon // 2)
            parts.append((f"{side}_hand", palm, palm.positions[:, 1], _rigid(hand)))

        for side, leg, foot in (("left", LEFT_LEG, LEFT_FOOT), ("right", RIGHT_LEG, RIGHT_FOOT)):
            add_tube(f"{side}_leg", w[leg] + [0, 0.04, 0], w[foot] + [0, 0.06, 0],
                     0.075 * limb, 0.05 * limb, _leg(leg, foot))
            shoe = box(w[foot] + [0.0, -0.03, 0.06], (0.055 * limb, 0.045, 0.12))
            parts.append((f"{side}_foot", shoe, shoe.positions[:, 1], _rigid(foot)))

        return parts

    def build(self) -> SkinnedMesh:
        positions, normals, uvs, indices, joints, weights = [], [], [], [], [], []
        parts: Dict[str, Tuple[int, int]] = {}
        offset = 0
        for name, geo, param, weight_fn in self._part_layout():
            count = geo.positions.shape[0]
            for pos, t in zip(geo.positions, param):
                j, wv = _pack_influences(weight_fn(pos, float(t)), self._joint_index)
                joints.append(j)
                weights.append(wv)
            positions.append(geo.positions)
            normals.append(geo.normals)
            uvs.append(geo.uvs)
            indices.append(geo.indices.reshape(-1) + offset)
            parts[name] = (offset, offset + count)
            offset += count

        mesh = SkinnedMesh(
            name=AVATAR_MESH_NODE,
            positions=np.concatenate(positions).astype(np.float32),
            normals=np.concatenate(normals).astype(np.float32),
            uvs=np.concatenate(uvs).astype(np.float32),
            indices=np.concatenate(indices).astype(np.uint32),
            joints=np.array(joints, dtype=np.uint16),
            weights=np.array(weights, dtype=np.float32),
            joint_names=tuple(self.skeleton.names()),
            parts=parts,
        )
        log.info("Avatar mesh: %d vertices, %d triangles, %d parts",
                 mesh.vertex_count, mesh.triangle_count, len(parts))
        return mesh


def build_avatar_mesh(skeleton: Skeleton, style: MeshStyle = None) -> SkinnedMesh:
    return AvatarMeshBuilder(skeleton, style).build()


def build_static_mesh(name: str, geometries: Sequence[Geometry]) -> SkinnedMesh:
    """Unskinned mesh (all vertices rigid to a single pseudo-joint) for equipment props."""
    positions = np.concatenate([g.positions for g in geometries]).astype(np.float32)
    offsets = np.cumsum([0] + [g.positions.shape[0] for g in geometries[:-1]])
    count = positions.shape[0]
    weights = np.zeros((count, MAX_INFLUENCES), dtype=np.float32)
    weights[:, 0] = 1.0
    return SkinnedMesh(
        name=name,
        positions=positions,
        normals=np.concatenate([g.normals for g in geometries]).astype(np.float32),
        uvs=np.concatenate([g.uvs for g in geometries]).astype(np.float32),
        indices=np.concatenate([g.indices.reshape(-1) + off for g, off in zip(geometries, offsets)]).astype(np.uint32),
        joints=np.zeros((count, MAX_INFLUENCES), dtype=np.uint16),
        weights=weights,
        joint_names=(name,),
    )
