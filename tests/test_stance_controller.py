"""Tests for Stance Controller - mixer playback, crossfade, stance transitions."""

import pytest

from src.modules.m3_animation_baker import AnimationClip, Channel, Keyframe, Track
from src.modules.m4_asset_exporter import export_asset
from src.modules.m5_scene_runtime import ComponentRegistry, Entity, parse_glb
from src.modules.m7_stance_controller import (
    COMPONENT_NAME, AnimationMixer, Stance, StanceController, register_avatar_animation,
)
from src.shared.constants import AVATAR_ASSET_PATH, CLIP_NAMES, CROSSFADE_SECONDS
from src.shared.errors import InvalidStanceError
from src.shared.transforms import axis_angle_to_quat


@pytest.fixture
def avatar_root(loader):
    return loader.load_now(AVATAR_ASSET_PATH)


class TestStanceParsing:

    def test_case_insensitive(self):
        assert Stance.parse("victory") is Stance.VICTORY
        assert Stance.parse(" Idle ") is Stance.IDLE

    def test_invalid(self):
        with pytest.raises(InvalidStanceError, match="Dance"):
            Stance.parse("Dance")


class TestAnimationMixer:

    @pytest.fixture(autouse=True)
    def _mixer(self, avatar_root):
        self.root = avatar_root
        self.mixer = AnimationMixer(avatar_root)

    def test_clips_from_asset(self):
        assert self.mixer.clip_names() == list(CLIP_NAMES)

    def test_unknown_clip(self):
        with pytest.raises(KeyError):
            self.mixer.play("Dance")

    def test_update_poses_bones(self):
        self.mixer.play("Victory")
        hand = self.mixer.bone("LeftHand")
        rest_y = hand.translation[1]
        self.mixer.update(0.5)
        assert hand.translation[1] > rest_y + 0.4

    def test_loop_wraps_time(self):
        action = self.mixer.play("Action")
        self.mixer.update(1.25)
        assert action.time == pytest.approx(0.25)

    def test_stop_restores_rest_pose(self):
        spine = self.mixer.bone("Spine")
        rest = spine.rotation
        self.mixer.play("Idle")
        self.mixer.update(0.5)
        assert spine.rotation != pytest.approx(rest)
        self.mixer.stop("Idle")
        assert spine.rotation == rest
        assert self.mixer.active_actions == []

    def test_fade_in_blends_from_rest(self):
        hand = self.mixer.bone("LeftHand")
        rest_y = hand.translation[1]
        action = self.mixer.play("Victory", fade_in=1.0)
        self.mixer.update(0.5)
        assert action.weight == pytest.approx(0.5)
        full_y = action.clip.tracks[0].sample(0.5)[1]
        assert hand.translation[1] == pytest.approx(rest_y + 0.5 * (full_y - rest_y), abs=1e-5)

    def test_pose_at(self):
        pose = self.mixer.pose_at("Victory", 0.0)
        assert set(pose) == {"LeftHand", "RightHand", "Spine", "Head"}


class TestStanceController:

    @pytest.fixture(autouse=True)
    def _controller(self, avatar_root):
        self.mixer = AnimationMixer(avatar_root)
        self.controller = StanceController(self.mixer)

    def _active(self):
        return [a.name for a in self.mixer.active_actions]

    def test_initial_idle(self):
        assert self.controller.stance is Stance.IDLE
        assert self._active() == ["Idle"]
        assert self.controller.current_action.weight == 1.0

    def test_action_then_victory(self):
        self.controller.set_stance("Action")
        self.controller.set_stance("Victory")
        assert self._active() == ["Victory"]

    def test_same_stance_is_noop(self):
        self.controller.set_stance("Action")
        self.controller.update(0.4)
        action = self.controller.current_action
        assert self.controller.set_stance("action") is False
        assert self._active() == ["Action"]
        assert action.time == pytest.approx(0.4)

    def test_transition_restarts_from_zero_with_crossfade(self):
        self.controller.update(0.7)
        self.controller.set_stance(Stance.VICTORY)
        action = self.controller.current_action
        assert action.time == 0.0 and action.weight == 0.0
        self.controller.update(CROSSFADE_SECONDS)
        assert action.weight == pytest.approx(1.0)

    def test_invalid_stance_keeps_previous(self):
        self.controller.set_stance("Action")
        with pytest.raises(InvalidStanceError):
            self.controller.set_stance("Dance")
        assert self.controller.stance is Stance.ACTION
        assert self._active() == ["Action"]

    def test_missing_clip_keeps_previous(self):
        self.mixer.clips = {k: v for k, v in self.mixer.clips.items() if k != "Victory"}
        with pytest.raises(InvalidStanceError, match="Victory"):
            self.controller.set_stance("Victory")
        assert self._active() == ["Idle"]

    def test_model_without_clips(self, avatar_root):
        avatar_root.animations = []
        with pytest.raises(InvalidStanceError):
            StanceController(AnimationMixer(avatar_root))


class TestAnimationComponent:

    @pytest.fixture(autouse=True)
    def _entity(self, loader):
        self.loader = loader
        self.registry = ComponentRegistry()
        register_avatar_animation(self.registry)
        self.avatar = Entity("avatar", self.registry)

    def test_controller_created_on_load(self):
        comp = self.avatar.set_attribute(COMPONENT_NAME, "stance: Victory")
        assert comp.controller is None
        self.avatar.load_model(self.loader, AVATAR_ASSET_PATH)
        assert comp.controller.stance is Stance.VICTORY

    def test_attribute_change_switches_stance(self):
        self.avatar.load_model(self.loader, AVATAR_ASSET_PATH)
        comp = self.avatar.set_attribute(COMPONENT_NAME)
        self.avatar.set_attribute(COMPONENT_NAME, "stance: Action")
        assert [a.name for a in comp.controller.mixer.active_actions] == ["Action"]

    def test_invalid_attribute_reverts(self):
        self.avatar.load_model(self.loader, AVATAR_ASSET_PATH)
        comp = self.avatar.set_attribute(COMPONENT_NAME)
        self.avatar.set_attribute(COMPONENT_NAME, "stance: Dance")
        assert comp.controller.stance is Stance.IDLE
        assert comp.data["stance"] == "Idle"

    def test_tick_advances_mixer(self):
        self.avatar.load_model(self.loader, AVATAR_ASSET_PATH)
        comp = self.avatar.set_attribute(COMPONENT_NAME)
        self.avatar.tick(0.25)
        assert comp.controller.current_action.time == pytest.approx(0.25)

    def test_model_without_clips_disables_animation(self):
        comp = self.avatar.set_attribute(COMPONENT_NAME, "stance: Action")
        root = self.loader.load_now(AVATAR_ASSET_PATH)
        root.animations = []
        self.avatar.set_model(root)
        assert comp.controller is None
        assert self.avatar.when_loaded().result() is root

    def test_remove_stops_playback(self):
        self.avatar.load_model(self.loader, AVATAR_ASSET_PATH)
        comp = self.avatar.set_attribute(COMPONENT_NAME)
        mixer = comp.controller.mixer
        self.avatar.remove_attribute(COMPONENT_NAME)
        assert mixer.active_actions == []
        assert comp.controller is None


class TestSinglePoseClip:

    def test_tick_holds_single_pose(self, skeleton, avatar_mesh):
        nod = axis_angle_to_quat((1.0, 0.0, 0.0), 0.3)
        pose = AnimationClip("Idle", 0.0, (Track("Head", Channel.ROTATION, (Keyframe(0.0, nod),)),))
        root = parse_glb(export_asset(avatar_mesh, skeleton, [pose]))
        assert root.animations[0].duration == 0.0

        controller = StanceController(AnimationMixer(root))
        controller.update(1 / 60)
        controller.update(1 / 60)
        assert controller.current_action.time == 0.0
        assert controller.mixer.bone("Head").rotation == pytest.approx(nod, abs=1e-6)
