"""
#WHERE
    Used by baker.py, m4_asset_exporter (samplers/channels), m5_scene_runtime
    (clips reconstructed on load), m7_stance_controller (playback sampling).

#WHAT
    Keyframe animation data models.  Rotation values are (x, y, z, w)
    quaternions; translation and scale values are 3-vectors.

#INPUT
    Bone names, channel, (time, value) keyframes.

#OUTPUT
    Channel enum, Keyframe / Track / AnimationClip dataclasses.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

import numpy as np

from src.shared.transforms import quat_slerp


class Channel(str, Enum):
    TRANSLATION = "translation"
    ROTATION    = "rotation"
    SCALE       = "scale"

    @property
    def width(self) -> int:
        return 4 if self is Channel.ROTATION else 3


@dataclass(frozen=True, slots=True)
class Keyframe:
    time: float
    value: Tuple[float, ...]


LINEAR = "LINEAR"
STEP = "STEP"       # hold each keyframe value until the next one


@dataclass(frozen=True, slots=True)
class Track:
    bone_name: str
    channel: Channel
    keyframes: Tuple[Keyframe, ...]
    interpolation: str = LINEAR

    def times(self) -> np.ndarray:
        return np.array([k.time for k in self.keyframes], dtype=np.float32)

    def values(self) -> np.ndarray:
        return np.array([k.value for k in self.keyframes], dtype=np.float32)

    def validate(self, duration: float) -> None:
        if not self.keyframes:
            raise ValueError(f"Track {self.bone_name}.{self.channel.value} has no keyframes")
        times = [k.time for k in self.keyframes]
        if any(b <= a for a, b in zip(times, times[1:])):
            raise ValueError(f"Track {self.bone_name}.{self.channel.value}: keyframe times must increase")
        if times[0] < 0.0 or times[-1] > duration + 1e-6:
            raise ValueError(f"Track {self.bone_name}.{self.channel.value}: keyframes outside [0, {duration}]")
        for k in self.keyframes:
            if len(k.value) != self.channel.width:
                raise ValueError(f"Track {self.bone_name}.{self.channel.value}: bad value width")

    def is_loop_safe(self, tolerance: float = 1e-5) -> bool:
        first, last = self.keyframes[0].value, self.keyframes[-1].value
        return all(abs(a - b) <= tolerance for a, b in zip(first, last))

    def sample(self, t: float) -> Tuple[float, ...]:
        """Value at time *t* (clamped to the keyframe range)."""
        frames = self.keyframes
        if t <= frames[0].time:
            return tuple(frames[0].value)
        if t >= frames[-1].time:
            return tuple(frames[-1].value)
        for a, b in zip(frames, frames[1:]):
            if a.time <= t <= b.time:
                if self.interpolation == STEP:
                    return tuple(b.value if t >= b.time else a.value)
                u = (t - a.time) / (b.time - a.time)
                if self.channel is Channel.ROTATION:
                    return quat_slerp(a.value, b.value, u)
                return tuple(float(x + (y - x) * u) for x, y in zip(a.value, b.value))
        return tuple(frames[-1].value)


@dataclass(frozen=True, slots=True)
class AnimationClip:
    name: str
    duration: float
    tracks: Tuple[Track, ...]
    loop: bool = True

    def bone_names(self) -> List[str]:
        seen: List[str] = []
        for track in self.tracks:
            if track.bone_name not in seen:
                seen.append(track.bone_name)
        return seen

    def validate(self) -> None:
        if self.duration <= 0:
            raise ValueError(f"Clip {self.name!r} must have positive duration")
        for track in self.tracks:
            track.validate(self.duration)
            if self.loop and not track.is_loop_safe():
                raise ValueError(
                    f"Looping clip {self.name!r}: {track.bone_name}.{track.channel.value} "
                    "first and last keyframes differ"
                )
