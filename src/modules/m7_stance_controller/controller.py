"""
#WHERE
    Used by component.py, session.py and tests.

#WHAT
    Stance state machine {Idle, Action, Victory}.  Starts in Idle; every
    transition is an explicit request.  A transition stops the outgoing
    clip and starts the matching clip from time 0, looping, fading its
    weight in over CROSSFADE_SECONDS.  Re-selecting the active stance is
    a no-op.

#INPUT
    AnimationMixer bound to a loaded avatar root, stance names.

#OUTPUT
    Exactly one playing AnimationAction.  InvalidStanceError leaves the
    previous stance in place.
"""

import logging
from enum import Enum
from typing import Optional, Union

from src.shared.constants import CLIP_ACTION, CLIP_IDLE, CLIP_VICTORY, CROSSFADE_SECONDS
from src.shared.errors import InvalidStanceError

from .mixer import AnimationAction, AnimationMixer

log = logging.getLogger(__name__)


class Stance(str, Enum):
    IDLE    = CLIP_IDLE
    ACTION  = CLIP_ACTION
    VICTORY = CLIP_VICTORY

    @property
    def clip_name(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Union[str, "Stance"]) -> "Stance":
        if isinstance(value, Stance):
            return value
        for stance in cls:
            if stance.value.lower() == str(value).strip().lower():
                return stance
        raise InvalidStanceError(str(value), [s.value for s in cls])


class StanceController:
    def __init__(self, mixer: AnimationMixer, initial: Union[str, Stance] = Stance.IDLE,
                 crossfade: float = CROSSFADE_SECONDS):
        self.mixer = mixer
        self.crossfade = crossfade
        self._stance: Optional[Stance] = None
        self._action: Optional[AnimationAction] = None
        self._enter(Stance.parse(initial), fade_in=0.0)

    @property
    def stance(self) -> Stance:
        return self._stance

    @property
    def current_action(self) -> Optional[AnimationAction]:
        return self._action

    def set_stance(self, value: Union[str, Stance]) -> bool:
        """Switch stance.  Returns False when *value* is already active."""
        stance = Stance.parse(value)
        if stance is self._stance:
            log.debug("[M7] Stance %s already active", stance.value)
            return False
        self._enter(stance, fade_in=self.crossfade)
        return True

    def _enter(self, stance: Stance, fade_in: float) -> None:
        if stance.clip_name not in self.mixer.clips:
            raise InvalidStanceError(stance.clip_name, self.mixer.clip_names())
        previous = self._stance
        if self._action is not None:
            self.mixer.stop(self._action.name)
        self._action = self.mixer.play(stance.clip_name, fade_in=fade_in)
        self._stance = stance
        log.info("[M7] Stance %s -> %s", previous.value if previous else "-", stance.value)

    def update(self, dt: float) -> None:
        self.mixer.update(dt)
