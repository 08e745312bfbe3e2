"""Declarative "avatar-animation-controller" component driving a StanceController."""

import logging
from typing import Any, Dict, Optional

from src.modules.m5_scene_runtime import MODEL_LOADED, Component, ComponentRegistry
from src.shared.errors import InvalidStanceError

from .controller import Stance, StanceController
from .mixer import AnimationMixer

log = logging.getLogger(__name__)

COMPONENT_NAME = "avatar-animation-controller"


class AvatarAnimationComponent(Component):
    schema = {"stance": ("string", Stance.IDLE.value)}

    def init(self) -> None:
        self.controller: Optional[StanceController] = None
        self.entity.on(MODEL_LOADED, self._on_model_loaded)
        if self.entity.is_loaded:
            self._on_model_loaded(self.entity.object3d)

    def _on_model_loaded(self, root: Any) -> None:
        if self.controller is not None:
            self.controller.mixer.stop_all()
            self.controller = None
        try:
            self.controller = StanceController(AnimationMixer(root), initial=self.data["stance"])
            return
        except InvalidStanceError as e:
            log.warning("[M7] %s: %s; falling back to %s", self.entity.name, e, Stance.IDLE.value)
        try:
            self.controller = StanceController(AnimationMixer(root))
            self.data["stance"] = Stance.IDLE.value
        except InvalidStanceError as e:
            log.warning("[M7] %s: no playable clips, animation disabled (%s)", self.entity.name, e)

    def update(self, old_data: Dict[str, Any]) -> None:
        if self.controller is None or old_data.get("stance") == self.data["stance"]:
            return
        try:
            self.controller.set_stance(self.data["stance"])
        except InvalidStanceError as e:
            log.warning("[M7] %s: %s", self.entity.name, e)
            self.data["stance"] = self.controller.stance.value

    def tick(self, dt: float) -> None:
        if self.controller is not None:
            self.controller.update(dt)

    def remove(self) -> None:
        self.entity.off(MODEL_LOADED, self._on_model_loaded)
        if self.controller is not None:
            self.controller.mixer.stop_all()
            self.controller = None


def register_avatar_animation(registry: ComponentRegistry) -> bool:
    return registry.register(COMPONENT_NAME, AvatarAnimationComponent)
