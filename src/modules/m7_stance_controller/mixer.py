"""Clip playback on a loaded avatar: sample tracks, write joint TRS."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from src.modules.m3_animation_baker import AnimationClip, Channel
from src.modules.m5_scene_runtime import SceneNode
from src.shared.transforms import quat_slerp

log = logging.getLogger(__name__)

_ATTRS = {Channel.TRANSLATION: "translation", Channel.ROTATION: "rotation", Channel.SCALE: "scale"}
_REST_SLOT = {Channel.TRANSLATION: 0, Channel.ROTATION: 1, Channel.SCALE: 2}


def _lerp(a: Tuple[float, ...], b: Tuple[float, ...], u: float) -> Tuple[float, ...]:
    return tuple(x + (y - x) * u for x, y in zip(a, b))


class AnimationAction:
    """One clip bound to a mixer.  Loops when the clip does; otherwise holds the last frame."""

    def __init__(self, clip: AnimationClip):
        self.clip = clip
        self.time = 0.0
        self.weight = 1.0
        self.playing = False
        self._fade_duration = 0.0
        self._fade_elapsed = 0.0

    @property
    def name(self) -> str:
        return self.clip.name

    def __repr__(self) -> str:
        return f"<AnimationAction {self.name!r} t={self.time:.3f} w={self.weight:.2f}>"

    def play(self, fade_in: float = 0.0) -> "AnimationAction":
        self.time = 0.0
        self.playing = True
        self._fade_duration = max(0.0, float(fade_in))
        self._fade_elapsed = 0.0
        self.weight = 0.0 if self._fade_duration > 0 else 1.0
        return self

    def stop(self) -> None:
        self.playing = False
        self.time = 0.0
        self.weight = 0.0

    def advance(self, dt: float) -> None:
        if not self.playing:
            return
        if self.clip.duration <= 0:
            # single-pose clip: every keyframe sits at t=0
            self.time = 0.0
        elif self.clip.loop:
            self.time = (self.time + dt) % self.clip.duration
        else:
            self.time = min(self.time + dt, self.clip.duration)
        if self._fade_duration > 0:
            self._fade_elapsed += dt
            self.weight = min(1.0, self._fade_elapsed / self._fade_duration)

class AnimationMixer:
    """Plays the clips stored on an asset root against that root's joints."""

    def __init__(self, root: SceneNode):
        self.root = root
        self.clips: Dict[str, AnimationClip] = {c.name: c for c in root.animations}
        self._bones: Dict[str, SceneNode] = {}
        for joint in root.joints():
            self._bones.setdefault(joint.name, joint)
        self._rest = {name: (n.translation, n.rotation, n.scale) for name, n in self._bones.items()}
        self._actions: Dict[str, AnimationAction] = {}

    def clip_names(self) -> List[str]:
        return list(self.clips)

    def clip_action(self, name: str) -> AnimationAction:
        action = self._actions.get(name)
        if action is None:
            try:
                clip = self.clips[name]
            except KeyError:
                raise KeyError(f"No clip named {name!r} on {self.root.name!r}") from None
            action = self._actions[name] = AnimationAction(clip)
        return action

    def play(self, name: str, fade_in: float = 0.0) -> AnimationAction:
        return self.clip_action(name).play(fade_in)

    def stop(self, name: str) -> None:
        action = self._actions.get(name)
        if action is not None and action.playing:
            action.stop()
            self._reset_bones(action.clip)

    def stop_all(self) -> None:
        for name in list(self._actions):
            self.stop(name)

    @property
    def active_actions(self) -> List[AnimationAction]:
        return [a for a in self._actions.values() if a.playing]

    def _reset_bones(self, clip: AnimationClip) -> None:
        for bone_name in clip.bone_names():
            node = self._bones.get(bone_name)
            if node is not None:
                node.translation, node.rotation, node.scale = self._rest[bone_name]

    def update(self, dt: float) -> None:
        """Advance active actions by *dt* seconds and pose the joints."""
        for action in self.active_actions:
            action.advance(dt)
            self._apply(action)

    def _apply(self, action: AnimationAction) -> None:
        for track in action.clip.tracks:
            node = self._bones.get(track.bone_name)
            if node is None:
                continue
            attr = _ATTRS[track.channel]
            rest = self._rest[track.bone_name][_REST_SLOT[track.channel]]
            value = track.sample(action.time)
            if action.weight < 1.0:
                if track.channel is Channel.ROTATION:
                    value = quat_slerp(rest, value, action.weight)
                else:
                    value = _lerp(rest, value, action.weight)
            setattr(node, attr, tuple(float(c) for c in value))

    def pose_at(self, name: str, time: float) -> Dict[str, Dict[str, Tuple[float, ...]]]:
        """Sampled values of clip *name* at *time*, bone -> channel -> value."""
        clip = self.clip_action(name).clip
        pose: Dict[str, Dict[str, Tuple[float, ...]]] = {}
        for track in clip.tracks:
            pose.setdefault(track.bone_name, {})[track.channel.value] = track.sample(time)
        return pose

    def bone(self, name: str) -> Optional[SceneNode]:
        return self._bones.get(name)
