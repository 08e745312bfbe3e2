"""Procedural keyframe clips for the three avatar stances."""

import logging
from typing import List, Sequence, Tuple

import numpy as np

from src.modules.m1_skeleton import (
    Skeleton, SPINE, CHEST, HEAD, LEFT_HAND, RIGHT_HAND, LEFT_LEG, RIGHT_LEG,
)
from src.shared.constants import CLIP_ACTION, CLIP_IDLE, CLIP_NAMES, CLIP_VICTORY
from src.shared.transforms import axis_angle_to_quat, quat_multiply

from .models import AnimationClip, Channel, Keyframe, Track

log = logging.getLogger(__name__)

_X = (1.0, 0.0, 0.0)
_Y = (0.0, 1.0, 0.0)
_Z = (0.0, 0.0, 1.0)


class ClipBaker:
    """Bakes Idle / Action / Victory against a skeleton's rest pose."""

    def __init__(self, skeleton: Skeleton):
        self.skeleton = skeleton

    # ── track helpers ────────────────────────────────────────────────────

    def _check_bone(self, bone: str) -> None:
        if bone not in self.skeleton:
            raise ValueError(f"Animation track references unknown bone: {bone}")

    def _rotation(self, bone: str, axis: Sequence[float],
                  keys: Sequence[Tuple[float, float]]) -> Track:
        """Rotation track from (time, degrees) pairs about *axis*, on top of the rest rotation."""
        self._check_bone(bone)
        rest = self.skeleton.get(bone).rest_rotation
        frames = tuple(
            Keyframe(t, quat_multiply(rest, axis_angle_to_quat(axis, np.radians(deg))))
            for t, deg in keys
        )
        return Track(bone, Channel.ROTATION, frames)

    def _translation(self, bone: str, keys: Sequence[Tuple[float, Sequence[float]]]) -> Track:
        """Translation track from (time, offset-from-rest) pairs."""
        self._check_bone(bone)
        rest = np.asarray(self.skeleton.get(bone).rest_translation, dtype=np.float64)
        frames = tuple(
            Keyframe(t, tuple(float(c) for c in rest + np.asarray(offset, dtype=np.float64)))
            for t, offset in keys
        )
        return Track(bone, Channel.TRANSLATION, frames)

    # ── clips ────────────────────────────────────────────────────────────

    def bake_idle(self) -> AnimationClip:
        tracks = (
            self._rotation(SPINE, _Z, [(0.0, 0), (0.5, 2), (1.0, 0), (1.5, -2), (2.0, 0)]),
            self._rotation(CHEST, _X, [(0.0, 0), (1.0, 3), (2.0, 0)]),
            self._rotation(HEAD, _X, [(0.0, 0), (1.0, -2), (2.0, 0)]),
        )
        return AnimationClip(CLIP_IDLE, 2.0, tracks)

    def bake_action(self) -> AnimationClip:
        times = (0.0, 0.3, 0.6, 1.0)
        tracks = (
            self._translation(RIGHT_HAND, list(zip(times, [
                (0, 0, 0), (0.10, -0.05, -0.15), (0.20, 0.05, 0.45), (0, 0, 0)]))),
            self._translation(LEFT_HAND, list(zip(times, [
                (0, 0, 0), (-0.15, 0.05, 0.20), (-0.10, 0.0, 0.05), (0, 0, 0)]))),
            self._rotation(SPINE, _Y, list(zip(times, [0, 12, -12, 0]))),
            self._rotation(LEFT_LEG, _X, list(zip(times, [0, -15, 15, 0]))),
            self._rotation(RIGHT_LEG, _X, list(zip(times, [0, 15, -15, 0]))),
        )
        return AnimationClip(CLIP_ACTION, 1.0, tracks)

    def bake_victory(self) -> AnimationClip:
        times = (0.0, 0.5, 1.0, 1.5, 2.0)
        tracks = (
            self._translation(LEFT_HAND, list(zip(times, [
                (0, 0, 0), (-0.25, 0.55, 0), (-0.20, 0.52, 0.05), (-0.25, 0.55, 0), (0, 0, 0)]))),
            self._translation(RIGHT_HAND, list(zip(times, [
                (0, 0, 0), (0.25, 0.55, 0), (0.20, 0.52, 0.05), (0.25, 0.55, 0), (0, 0, 0)]))),
            self._translation(SPINE, [
                (t, (0.0, 0.1 if i % 2 else 0.0, 0.0))
                for i, t in enumerate(np.linspace(0.0, 2.0, 9).tolist())
            ]),
            self._rotation(HEAD, _X, list(zip(times, [0, -10, -6, -10, 0]))),
        )
        return AnimationClip(CLIP_VICTORY, 2.0, tracks)

    def bake(self) -> List[AnimationClip]:
        bakers = {CLIP_IDLE: self.bake_idle, CLIP_ACTION: self.bake_action, CLIP_VICTORY: self.bake_victory}
        clips = [bakers[name]() for name in CLIP_NAMES]
        for clip in clips:
            clip.validate()
        log.info("Baked clips: %s", ", ".join(f"{c.name}({len(c.tracks)} tracks)" for c in clips))
        return clips


def bake_clips(skeleton: Skeleton) -> List[AnimationClip]:
    return ClipBaker(skeleton).bake()
