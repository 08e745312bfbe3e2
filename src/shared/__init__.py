"""
#WHERE
    Imported by every pipeline module (M1–M8), session.py and tests.

#WHAT
    Shared error taxonomy, transform helpers and avatar constants.

#INPUT
    None (constant registries).

#OUTPUT
    Error classes; quaternion / matrix helpers; asset path constants.
"""

from .errors import (
    AvatarPipelineError,
    ExportError,
    AssetLoadError,
    AttachmentResolutionError,
    InvalidStanceError,
)
from .transforms import (
    IDENTITY_QUAT,
    UNIT_SCALE,
    ZERO_VEC,
    axis_angle_to_quat,
    decompose_matrix,
    euler_to_quat,
    quat_slerp,
    quat_to_euler,
    trs_matrix,
)

__all__ = [
    "AvatarPipelineError",
    "ExportError",
    "AssetLoadError",
    "AttachmentResolutionError",
    "InvalidStanceError",
    "IDENTITY_QUAT",
    "UNIT_SCALE",
    "ZERO_VEC",
    "axis_angle_to_quat",
    "decompose_matrix",
    "euler_to_quat",
    "quat_slerp",
    "quat_to_euler",
    "trs_matrix",
]
