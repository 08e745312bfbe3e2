"""
#WHERE
    Used by m1_skeleton (world matrices), m4_asset_exporter (inverse bind
    matrices), m5_scene_runtime (node transforms), m6_equipment (rotation
    offsets), m7_stance_controller (keyframe sampling), m8_diagnostics.

#WHAT
    Small numpy helpers for glTF-convention transforms: quaternions are
    (x, y, z, w), matrices are 4x4 row-major in memory and transposed to
    column-major only when written to the glTF container.

#INPUT
    Vectors, quaternions, Euler angles in degrees (XYZ order).

#OUTPUT
    numpy arrays / float tuples.
"""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

Vec3 = Tuple[float, float, float]
Quat = Tuple[float, float, float, float]

IDENTITY_QUAT: Quat = (0.0, 0.0, 0.0, 1.0)
ZERO_VEC: Vec3 = (0.0, 0.0, 0.0)
UNIT_SCALE: Vec3 = (1.0, 1.0, 1.0)


def _norm(v: np.ndarray) -> np.ndarray:
    n = np.linalg.norm(v)
    return v / (n + 1e-9)


def axis_angle_to_quat(axis: Sequence[float], angle: float) -> Quat:
    """Returns (x, y, z, w) quaternion for a rotation of *angle* radians."""
    axis = _norm(np.asarray(axis, dtype=np.float64))
    s = np.sin(angle / 2.0)
    return (float(axis[0] * s), float(axis[1] * s),
            float(axis[2] * s), float(np.cos(angle / 2.0)))


def mat_to_quat(rot_mat: np.ndarray) -> Quat:
    """3x3 rotation matrix to (x, y, z, w) quaternion."""
    trace = rot_mat[0, 0] + rot_mat[1, 1] + rot_mat[2, 2]
    if trace > 0:
        s = 0.5 / np.sqrt(trace + 1.0)
        w = 0.25 / s
        x = (rot_mat[2, 1] - rot_mat[1, 2]) * s
        y = (rot_mat[0, 2] - rot_mat[2, 0]) * s
        z = (rot_mat[1, 0] - rot_mat[0, 1]) * s
    elif rot_mat[0, 0] > rot_mat[1, 1] and rot_mat[0, 0] > rot_mat[2, 2]:
        s = 2.0 * np.sqrt(1.0 + rot_mat[0, 0] - rot_mat[1, 1] - rot_mat[2, 2])
        w = (rot_mat[2, 1] - rot_mat[1, 2]) / s
        x = 0.25 * s
        y = (rot_mat[0, 1] + rot_mat[1, 0]) / s
        z = (rot_mat[0, 2] + rot_mat[2, 0]) / s
    elif rot_mat[1, 1] > rot_mat[2, 2]:
        s = 2.0 * np.sqrt(1.0 + rot_mat[1, 1] - rot_mat[0, 0] - rot_mat[2, 2])
        w = (rot_mat[0, 2] - rot_mat[2, 0]) / s
        x = (rot_mat[0, 1] + rot_mat[1, 0]) / s
        y = 0.25 * s
        z = (rot_mat[1, 2] + rot_mat[2, 1]) / s
    else:
        s = 2.0 * np.sqrt(1.0 + rot_mat[2, 2] - rot_mat[0, 0] - rot_mat[1, 1])
        w = (rot_mat[1, 0] - rot_mat[0, 1]) / s
        x = (rot_mat[0, 2] + rot_mat[2, 0]) / s
        y = (rot_mat[1, 2] + rot_mat[2, 1]) / s
        z = 0.25 * s
    return (float(x), float(y), float(z), float(w))


def quat_to_mat(q: Sequence[float]) -> np.ndarray:
    x, y, z, w = _norm(np.asarray(q, dtype=np.float64))
    return np.array([
        [1 - 2 * (y * y + z * z), 2 * (x * y - z * w),     2 * (x * z + y * w)],
        [2 * (x * y + z * w),     1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
        [2 * (x * z - y * w),     2 * (y * z + x * w),     1 - 2 * (x * x + y * y)],
    ], dtype=np.float64)


def quat_multiply(a: Sequence[float], b: Sequence[float]) -> Quat:
    ax, ay, az, aw = a
    bx, by, bz, bw = b
    return (
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
        aw * bw - ax * bx - ay * by - az * bz,
    )


def quat_slerp(a: Sequence[float], b: Sequence[float], t: float) -> Quat:
    """Shortest-path spherical interpolation; falls back to nlerp for tiny angles."""
    qa = _norm(np.asarray(a, dtype=np.float64))
    qb = _norm(np.asarray(b, dtype=np.float64))
    dot = float(np.dot(qa, qb))
    if dot < 0.0:
        qb, dot = -qb, -dot
    if dot > 0.9995:
        out = _norm(qa + t * (qb - qa))
    else:
        theta = np.arccos(np.clip(dot, -1.0, 1.0))
        sin_t = np.sin(theta)
        out = (np.sin((1 - t) * theta) * qa + np.sin(t * theta) * qb) / sin_t
    return tuple(float(c) for c in out)


def euler_to_quat(degrees: Sequence[float]) -> Quat:
    """Intrinsic XYZ Euler angles (degrees) to quaternion."""
    hx, hy, hz = (np.radians(float(d)) / 2.0 for d in degrees)
    c1, c2, c3 = np.cos(hx), np.cos(hy), np.cos(hz)
    s1, s2, s3 = np.sin(hx), np.sin(hy), np.sin(hz)
    return (
        float(s1 * c2 * c3 + c1 * s2 * s3),
        float(c1 * s2 * c3 - s1 * c2 * s3),
        float(c1 * c2 * s3 + s1 * s2 * c3),
        float(c1 * c2 * c3 - s1 * s2 * s3),
    )


def quat_to_euler(q: Sequence[float]) -> Vec3:
    """Quaternion to intrinsic XYZ Euler angles in degrees."""
    m = quat_to_mat(q)
    y = np.arcsin(np.clip(m[0, 2], -1.0, 1.0))
    if abs(m[0, 2]) < 0.9999999:
        x = np.arctan2(-m[1, 2], m[2, 2])
        z = np.arctan2(-m[0, 1], m[0, 0])
    else:
        # gimbal lock
        x = np.arctan2(m[2, 1], m[1, 1])
        z = 0.0
    return (float(np.degrees(x)), float(np.degrees(y)), float(np.degrees(z)))


def trs_matrix(translation: Sequence[float] = ZERO_VEC,
               rotation: Sequence[float] = IDENTITY_QUAT,
               scale: Sequence[float] = UNIT_SCALE) -> np.ndarray:
    m = np.eye(4, dtype=np.float64)
    m[:3, :3] = quat_to_mat(rotation) * np.asarray(scale, dtype=np.float64)
    m[:3, 3] = translation
    return m


def decompose_matrix(m: np.ndarray) -> Tuple[Vec3, Quat, Vec3]:
    """Split a 4x4 affine matrix (no shear) into translation, rotation, scale."""
    m = np.asarray(m, dtype=np.float64)
    translation = tuple(float(c) for c in m[:3, 3])
    basis = m[:3, :3]
    scale = np.linalg.norm(basis, axis=0)
    if np.linalg.det(basis) < 0:
        scale[0] = -scale[0]
    rot = basis / np.where(scale == 0, 1.0, scale)
    return translation, mat_to_quat(rot), tuple(float(c) for c in scale)
