"""Fixed NuVerse avatar skeleton: nine bones rooted at the pelvis-level Spine."""

from src.shared.transforms import IDENTITY_QUAT, UNIT_SCALE

from .models import Bone, Skeleton

SPINE      = "Spine"
CHEST      = "Chest"
HEAD       = "Head"
LEFT_HAND  = "LeftHand"
RIGHT_HAND = "RightHand"
LEFT_LEG   = "LeftLeg"
RIGHT_LEG  = "RightLeg"
LEFT_FOOT  = "LeftFoot"
RIGHT_FOOT = "RightFoot"

# Parent-first order; this is also the glTF skin joint order.
BONE_NAMES = (
    SPINE, CHEST, HEAD,
    LEFT_HAND, RIGHT_HAND,
    LEFT_LEG, RIGHT_LEG,
    LEFT_FOOT, RIGHT_FOOT,
)

# (name, parent, rest translation relative to parent) - metres, Y-up, +X = avatar's left
_REST_LAYOUT = (
    (SPINE,      None,       (0.0,   0.95, 0.0)),
    (CHEST,      SPINE,      (0.0,   0.32, 0.0)),
    (HEAD,       CHEST,      (0.0,   0.20, 0.0)),
    (LEFT_HAND,  CHEST,      (0.55,  0.05, 0.0)),
    (RIGHT_HAND, CHEST,      (-0.55, 0.05, 0.0)),
    (LEFT_LEG,   SPINE,      (0.10, -0.06, 0.0)),
    (RIGHT_LEG,  SPINE,      (-0.10, -0.06, 0.0)),
    (LEFT_FOOT,  LEFT_LEG,   (0.0,  -0.80, 0.0)),
    (RIGHT_FOOT, RIGHT_LEG,  (0.0,  -0.80, 0.0)),
)


def build_skeleton() -> Skeleton:
    bones = tuple(
        Bone(name=name, parent=parent, rest_translation=translation,
             rest_rotation=IDENTITY_QUAT, rest_scale=UNIT_SCALE)
        for name, parent, translation in _REST_LAYOUT
    )
    return Skeleton(bones=bones, root=SPINE)
