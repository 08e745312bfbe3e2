"""Closed primitive generators (ellipsoid, tapered tube, box) with analytic normals."""

from typing import Sequence

import numpy as np

from .models import Geometry

# (normal, tangent1, tangent2) with tangent1 x tangent2 == normal
_BOX_FACES = (
    ((1, 0, 0),  (0, 1, 0), (0, 0, 1)),
    ((-1, 0, 0), (0, 0, 1), (0, 1, 0)),
    ((0, 1, 0),  (0, 0, 1), (1, 0, 0)),
    ((0, -1, 0), (1, 0, 0), (0, 0, 1)),
    ((0, 0, 1),  (1, 0, 0), (0, 1, 0)),
    ((0, 0, -1), (0, 1, 0), (1, 0, 0)),
)


def _unit(v: np.ndarray) -> np.ndarray:
    n = np.linalg.norm(v, axis=-1, keepdims=True)
    return v / np.maximum(n, 1e-12)


def ellipsoid(center: Sequence[float], radii: Sequence[float],
              lat_segments: int = 16, lon_segments: int = 24) -> Geometry:
    center = np.asarray(center, dtype=np.float64)
    radii = np.asarray(radii, dtype=np.float64)
    positions, normals, uvs, tris = [], [], [], []
    for i in range(lat_segments + 1):
        theta = np.pi * i / lat_segments
        for j in range(lon_segments + 1):
            phi = 2.0 * np.pi * j / lon_segments
            unit = np.array([np.cos(phi) * np.sin(theta), np.cos(theta), np.sin(phi) * np.sin(theta)])
            positions.append(center + unit * radii)
            normals.append(unit / radii)
            uvs.append((j / lon_segments, i / lat_segments))
    stride = lon_segments + 1
    for i in range(lat_segments):
        for j in range(lon_segments):
            a = i * stride + j
            b, c = a + 1, a + stride
            d = c + 1
            # pole rows collapse one triangle of each quad
            if i != 0:
                tris.append((a, b, c))
            if i != lat_segments - 1:
                tris.append((b, d, c))
    return Geometry(
        positions=np.array(positions),
        normals=_unit(np.array(normals)),
        uvs=np.array(uvs),
        indices=np.array(tris, dtype=np.int64),
    )


def tube(start: Sequence[float], end: Sequence[float], start_radius: float, end_radius: float,
         segments: int = 16, rings: int = 8) -> Geometry:
    """Capped, tapered cylinder from *start* to *end*."""
    p0 = np.asarray(start, dtype=np.float64)
    p1 = np.asarray(end, dtype=np.float64)
    span = p1 - p0
    length = float(np.linalg.norm(span))
    if length <= 0.0:
        raise ValueError("tube start and end must differ")
    axis = span / length
    helper = np.array([0.0, 0.0, 1.0]) if abs(axis[2]) < 0.9 else np.array([1.0, 0.0, 0.0])
    u = _unit(np.cross(helper, axis))
    v = np.cross(axis, u)
    slope = (start_radius - end_radius) / length

    positions, normals, uvs, tris = [], [], [], []
    for i in range(rings + 1):
        t = i / rings
        centre = p0 + span * t
        radius = start_radius + (end_radius - start_radius) * t
        for j in range(segments + 1):
            ang = 2.0 * np.pi * j / segments
            radial = np.cos(ang) * u + np.sin(ang) * v
            positions.append(centre + radial * radius)
            normals.append(radial + axis * slope)
            uvs.append((j / segments, t))
    stride = segments + 1
    for i in range(rings):
        for j in range(segments):
            a = i * stride + j
            b, c = a + 1, a + stride
            d = c + 1
            tris.extend(((a, b, c), (b, d, c)))

    for centre, radius, normal, flip in ((p0, start_radius, -axis, True), (p1, end_radius, axis, False)):
        base = len(positions)
        positions.append(centre)
        normals.append(normal)
        uvs.append((0.5, 0.5))
        for j in range(segments + 1):
            ang = 2.0 * np.pi * j / segments
            radial = np.cos(ang) * u + np.sin(ang) * v
            positions.append(centre + radial * radius)
            normals.append(normal)
            uvs.append((0.5 + 0.5 * np.cos(ang), 0.5 + 0.5 * np.sin(ang)))
        for j in range(segments):
            r0, r1 = base + 1 + j, base + 2 + j
            tris.append((base, r1, r0) if flip else (base, r0, r1))

    return Geometry(
        positions=np.array(positions),
        normals=_unit(np.array(normals)),
        uvs=np.array(uvs),
        indices=np.array(tris, dtype=np.int64),
    )


def box(center: Sequence[float], half_extents: Sequence[float]) -> Geometry:
    c = np.asarray(center, dtype=np.float64)
    h = np.asarray(half_extents, dtype=np.float64)
    positions, normals, uvs, tris = [], [], [], []
    for n, t1, t2 in _BOX_FACES:
        n, t1, t2 = (np.array(x, dtype=np.float64) for x in (n, t1, t2))
        base = len(positions)
        for s1, s2 in ((-1, -1), (1, -1), (1, 1), (-1, 1)):
            positions.append(c + h * (n + s1 * t1 + s2 * t2))
            normals.append(n)
            uvs.append(((s1 + 1) / 2, (s2 + 1) / 2))
        tris.extend(((base, base + 1, base + 2), (base, base + 2, base + 3)))
    return Geometry(
        positions=np.array(positions),
        normals=np.array(normals),
        uvs=np.array(uvs),
        indices=np.array(tris, dtype=np.int64),
    )
