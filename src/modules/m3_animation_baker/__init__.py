"""
#WHERE
    Imported by pipeline.py, m4_asset_exporter, m5_scene_runtime,
    m7_stance_controller and tests.

#WHAT
    Animation Clip Baker Module (Module 3) - synthesizes the looping
    Idle (spine sway), Action (limb swing / punch) and Victory (raised
    arms, bounce) keyframe clips over the Module 1 skeleton.

#INPUT
    Skeleton.

#OUTPUT
    List[AnimationClip] named exactly "Idle", "Action", "Victory".
"""

from .models import LINEAR, STEP, AnimationClip, Channel, Keyframe, Track
from .baker import ClipBaker, bake_clips

__all__ = ["LINEAR", "STEP", "AnimationClip", "Channel", "Keyframe", "Track", "ClipBaker", "bake_clips"]
