"""
#WHERE
    Used by main.py (inspect / equip commands) and tests.

#WHAT
    Scene composition for one avatar instance.  An AvatarSession owns the
    avatar entity, its equipment attacher and stance component; nothing is
    shared between sessions.  Order after load: diagnostics -> attach
    equipped look -> stance playback.  All of it runs from the avatar's
    model-loaded event, never before.

#INPUT
    AssetLoader, AvatarAssetProvider, EquippedLook, initial stance.

#OUTPUT
    DiagnosticsReport, AttachmentReport, live StanceController.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Optional, Protocol, Union

from src.modules.m5_scene_runtime import (
    MODEL_ERROR, MODEL_LOADED, AssetLoader, ComponentRegistry, Entity, SceneNode,
)
from src.modules.m6_equipment import (
    DEFAULT_CATALOG, AttachmentReport, EquipmentAttacher, EquipmentCatalog, EquippedLook,
    register_equipment_attachment,
)
from src.modules.m7_stance_controller import (
    COMPONENT_NAME as ANIMATION_COMPONENT, Stance, StanceController, register_avatar_animation,
)
from src.modules.m8_diagnostics import DiagnosticsReport, inspect
from src.shared.constants import AVATAR_ASSET_PATH

log = logging.getLogger(__name__)


# ── Avatar asset manifest ────────────────────────────────────────────────────

class AvatarAssetProvider(Protocol):
    def avatar_asset_path(self) -> str: ...


@dataclass(frozen=True)
class StaticAvatarAssetProvider:
    path: str = AVATAR_ASSET_PATH

    def avatar_asset_path(self) -> str:
        return self.path


def get_avatar_asset_path() -> str:
    return AVATAR_ASSET_PATH


def get_animation_clip_name(stance: Union[str, Stance]) -> str:
    """"idle" -> "Idle"; raises InvalidStanceError for anything else."""
    return Stance.parse(stance).clip_name


def register_avatar_components(registry: ComponentRegistry) -> None:
    register_equipment_attachment(registry)
    register_avatar_animation(registry)


# ── Session ──────────────────────────────────────────────────────────────────

class AvatarSession:
    """One avatar scene: load, inspect, equip, animate, tear down."""

    def __init__(self, loader: AssetLoader,
                 provider: Optional[AvatarAssetProvider] = None,
                 look: Optional[EquippedLook] = None,
                 stance: Union[str, Stance] = Stance.IDLE,
                 catalog: EquipmentCatalog = DEFAULT_CATALOG,
                 registry: Optional[ComponentRegistry] = None,
                 name: str = "avatar"):
        self.loader = loader
        self.provider = provider or StaticAvatarAssetProvider()
        self.look = look or EquippedLook()
        self.registry = registry or ComponentRegistry()
        register_avatar_components(self.registry)

        self.avatar = Entity(name, self.registry)
        self.attacher = EquipmentAttacher(self.avatar, loader, catalog)
        self.diagnostics: DiagnosticsReport = inspect(None)
        self.attachment_report: Optional[AttachmentReport] = None
        self.load_error: Optional[BaseException] = None

        self.avatar.on(MODEL_LOADED, self._on_avatar_loaded)
        self.avatar.on(MODEL_ERROR, self._on_avatar_error)
        self.avatar.set_attribute(ANIMATION_COMPONENT, {"stance": Stance.parse(stance).value})

    def __enter__(self) -> "AvatarSession":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ── lifecycle ────────────────────────────────────────────────────────

    def start(self) -> Future:
        """Begin loading the avatar.  The future resolves once the scene is composed.

        Composition runs on the thread that created the session: during
        ``tick`` or ``wait`` when the loader finishes on a worker thread.
        """
        path = self.provider.avatar_asset_path()
        log.info("Loading avatar %s", path)
        return self.avatar.load_model(self.loader, path)

    def wait(self, timeout: Optional[float] = None) -> SceneNode:
        """Block until the avatar scene is composed; re-raises the load error."""
        return self.avatar.wait_loaded(timeout)

    def show(self, root: SceneNode) -> None:
        """Compose the scene around an already-parsed avatar root."""
        self.avatar.set_model(root)

    def _on_avatar_loaded(self, root: SceneNode) -> None:
        self.load_error = None
        self.diagnostics = inspect(root)
        log.info("Avatar ready: %d bones, clips=%s",
                 len(self.diagnostics.detected_bones), self.diagnostics.animation_clips)
        # mounts from a previous model belong to the old tree
        self.attacher.detach_all()
        self.attachment_report = self.attacher.attach(self.look)
        for failure in self.attachment_report.failures:
            log.warning("Equipment %s (%s) not attached: %s",
                        failure.item_id, failure.slot, failure.reason)

    def _on_avatar_error(self, error: BaseException) -> None:
        self.load_error = error

    def close(self) -> None:
        self.attacher.detach_all()
        self.avatar.teardown()

    # ── runtime operations ───────────────────────────────────────────────

    @property
    def is_ready(self) -> bool:
        return self.avatar.is_loaded

    @property
    def controller(self) -> Optional[StanceController]:
        component = self.avatar.components.get(ANIMATION_COMPONENT)
        return component.controller if component is not None else None

    @property
    def stance(self) -> Optional[Stance]:
        controller = self.controller
        return controller.stance if controller is not None else None

    def equip(self, look: EquippedLook) -> AttachmentReport:
        """Apply *look* to the loaded avatar; slots that did not change are kept."""
        self.look = look
        self.attachment_report = self.attacher.attach(look)
        return self.attachment_report

    def set_stance(self, stance: Union[str, Stance]) -> bool:
        """Switch stance.  InvalidStanceError leaves the current stance playing."""
        controller = self.controller
        if controller is None:
            raise RuntimeError("Avatar not loaded; stance changes need a loaded model")
        changed = controller.set_stance(stance)
        self.avatar.components[ANIMATION_COMPONENT].data["stance"] = controller.stance.value
        return changed

    def inspect(self) -> DiagnosticsReport:
        self.diagnostics = inspect(self.avatar.object3d)
        return self.diagnostics

    def tick(self, dt: float) -> None:
        self.avatar.tick(dt)
