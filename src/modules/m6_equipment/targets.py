"""Attachment target registry: supported mount points and their alternate bone names."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple


class AttachmentCategory(str, Enum):
    FEET  = "feet"
    LEGS  = "legs"
    TORSO = "torso"
    HANDS = "hands"
    HEAD  = "head"
    BACK  = "back"


@dataclass(frozen=True, slots=True)
class AttachmentTarget:
    category: AttachmentCategory
    primary_bone: str
    fallback_bones: Tuple[str, ...]
    description: str


# Fallbacks absorb naming skew between the generated rig and Mixamo / VRM / Blender style rigs.
ATTACHMENT_TARGETS: Dict[str, AttachmentTarget] = {
    "LeftFoot": AttachmentTarget(
        AttachmentCategory.FEET, "LeftFoot",
        ("Left_Foot", "leftFoot", "foot_L", "Foot_L", "L_Foot", "LeftLeg"),
        "Left foot attachment point for shoes and footwear"),
    "RightFoot": AttachmentTarget(
        AttachmentCategory.FEET, "RightFoot",
        ("Right_Foot", "rightFoot", "foot_R", "Foot_R", "R_Foot", "RightLeg"),
        "Right foot attachment point for shoes and footwear"),
    "LeftLeg": AttachmentTarget(
        AttachmentCategory.LEGS, "LeftLeg",
        ("Left_Leg", "leftLeg", "leg_L", "Leg_L", "L_Leg", "LeftLowerLeg", "LeftUpLeg"),
        "Left leg attachment point for leg accessories"),
    "RightLeg": AttachmentTarget(
        AttachmentCategory.LEGS, "RightLeg",
        ("Right_Leg", "rightLeg", "leg_R", "Leg_R", "R_Leg", "RightLowerLeg", "RightUpLeg"),
        "Right leg attachment point for leg accessories"),
    "Spine": AttachmentTarget(
        AttachmentCategory.TORSO, "Spine",
        ("spine", "Spine1", "Spine2", "Chest", "chest", "Torso", "torso", "Hips"),
        "Spine/torso attachment point for back accessories and chest items"),
    "Chest": AttachmentTarget(
        AttachmentCategory.TORSO, "Chest",
        ("chest", "Spine2", "UpperChest", "upperChest", "Spine1", "Spine"),
        "Chest attachment point for torso accessories and outfits"),
    "LeftHand": AttachmentTarget(
        AttachmentCategory.HANDS, "LeftHand",
        ("Left_Hand", "leftHand", "hand_L", "Hand_L", "L_Hand", "LeftWrist", "LeftForeArm"),
        "Left hand attachment point for held items and hand accessories"),
    "RightHand": AttachmentTarget(
        AttachmentCategory.HANDS, "RightHand",
        ("Right_Hand", "rightHand", "hand_R", "Hand_R", "R_Hand", "RightWrist", "RightForeArm"),
        "Right hand attachment point for held items and hand accessories"),
    "Head": AttachmentTarget(
        AttachmentCategory.HEAD, "Head",
        ("head", "HEAD", "Neck", "neck"),
        "Head attachment point for headwear and head accessories"),
    "Back": AttachmentTarget(
        AttachmentCategory.BACK, "Spine",
        ("spine", "Spine1", "Spine2", "back", "Back", "Chest"),
        "Back attachment point for backpacks and back accessories"),
}


def get_bone_candidates(target_name: str) -> List[str]:
    """Primary bone followed by fallbacks; unknown targets map to themselves."""
    target = ATTACHMENT_TARGETS.get(target_name)
    if target is None:
        return [target_name]
    return [target.primary_bone, *target.fallback_bones]


def get_fallback_bones(target_name: str, primary: str) -> Tuple[str, ...]:
    """Candidates of *target_name* minus *primary*, order kept."""
    return tuple(b for b in get_bone_candidates(target_name) if b != primary)


def get_targets_by_category(category: AttachmentCategory) -> List[AttachmentTarget]:
    category = AttachmentCategory(category)
    return [t for t in ATTACHMENT_TARGETS.values() if t.category is category]


def is_known_target(name: str) -> bool:
    return name in ATTACHMENT_TARGETS
