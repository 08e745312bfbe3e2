"""
#WHERE
    Imported by session.py, main.py and tests.

#WHAT
    Stance Controller Module (Module 7) - animation mixer over a loaded
    avatar, the Idle/Action/Victory state machine and its declarative
    scene component.

#INPUT
    Loaded avatar SceneNode (with clips), stance requests.

#OUTPUT
    Posed joints; one active clip at a time.
"""

from .mixer import AnimationAction, AnimationMixer
from .controller import Stance, StanceController
from .component import COMPONENT_NAME, AvatarAnimationComponent, register_avatar_animation

__all__ = [
    "AnimationAction", "AnimationMixer", "Stance", "StanceController",
    "COMPONENT_NAME", "AvatarAnimationComponent", "register_avatar_animation",
]
