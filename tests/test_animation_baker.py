"""Tests for Animation Clip Baker - clip names, loop safety, sampling."""

import numpy as np
import pytest

from src.modules.m1_skeleton import Bone, Skeleton
from src.modules.m3_animation_baker import STEP, AnimationClip, Channel, ClipBaker, Keyframe, Track
from src.shared.constants import CLIP_NAMES


class TestBakedClips:

    @pytest.fixture(autouse=True)
    def _clips(self, skeleton, clips):
        self.skeleton = skeleton
        self.clips = clips

    def test_clip_names_exact(self):
        assert [c.name for c in self.clips] == list(CLIP_NAMES)

    def test_all_clips_loop_and_validate(self):
        for clip in self.clips:
            assert clip.loop
            clip.validate()

    def test_first_and_last_keyframes_match(self):
        for clip in self.clips:
            for track in clip.tracks:
                assert track.is_loop_safe(), f"{clip.name}:{track.bone_name}.{track.channel.value}"

    def test_tracks_reference_skeleton_bones(self):
        for clip in self.clips:
            assert set(clip.bone_names()) <= set(self.skeleton.names())

    def test_times_bounded_by_duration(self):
        for clip in self.clips:
            for track in clip.tracks:
                times = track.times()
                assert np.all(np.diff(times) > 0)
                assert times[0] >= 0.0 and times[-1] <= clip.duration + 1e-6

    def test_idle_sways_spine(self):
        idle = self.clips[0]
        spine = next(t for t in idle.tracks if t.bone_name == "Spine")
        assert spine.channel is Channel.ROTATION
        assert spine.sample(0.5) != pytest.approx(spine.sample(0.0))

    def test_victory_raises_hands(self):
        victory = self.clips[2]
        hand = next(t for t in victory.tracks if t.bone_name == "LeftHand")
        rest_y = self.skeleton.get("LeftHand").rest_translation[1]
        assert hand.sample(0.5)[1] > rest_y + 0.4

    def test_baking_is_deterministic(self):
        again = ClipBaker(self.skeleton).bake()
        assert again == self.clips


class TestBakerValidation:

    def test_unknown_bone_fails_fast(self):
        tiny = Skeleton((Bone("Spine", None, (0, 1, 0)),), "Spine")
        with pytest.raises(ValueError, match="unknown bone: Chest"):
            ClipBaker(tiny).bake()


class TestTrack:

    def test_sample_interpolates_translation(self):
        track = Track("Spine", Channel.TRANSLATION,
                      (Keyframe(0.0, (0.0, 0.0, 0.0)), Keyframe(1.0, (2.0, 0.0, 0.0))))
        assert track.sample(0.25) == pytest.approx((0.5, 0.0, 0.0))

    def test_step_sample_holds_previous_value(self):
        track = Track("Spine", Channel.TRANSLATION,
                      (Keyframe(0.0, (0.0, 0.0, 0.0)), Keyframe(1.0, (2.0, 0.0, 0.0))),
                      interpolation=STEP)
        assert track.sample(0.75) == pytest.approx((0.0, 0.0, 0.0))
        assert track.sample(1.0) == pytest.approx((2.0, 0.0, 0.0))

    def test_sample_clamps_outside_range(self):
        track = Track("Spine", Channel.TRANSLATION,
                      (Keyframe(0.0, (1.0, 0.0, 0.0)), Keyframe(1.0, (2.0, 0.0, 0.0))))
        assert track.sample(-1.0) == pytest.approx((1.0, 0.0, 0.0))
        assert track.sample(5.0) == pytest.approx((2.0, 0.0, 0.0))

    def test_non_monotonic_times_rejected(self):
        track = Track("Spine", Channel.TRANSLATION,
                      (Keyframe(0.5, (0.0, 0.0, 0.0)), Keyframe(0.5, (1.0, 0.0, 0.0))))
        with pytest.raises(ValueError, match="must increase"):
            track.validate(1.0)

    def test_wrong_value_width_rejected(self):
        track = Track("Spine", Channel.ROTATION, (Keyframe(0.0, (0.0, 0.0, 0.0)),))
        with pytest.raises(ValueError, match="width"):
            track.validate(1.0)

    def test_looping_clip_must_close(self):
        track = Track("Spine", Channel.TRANSLATION,
                      (Keyframe(0.0, (0.0, 0.0, 0.0)), Keyframe(1.0, (1.0, 0.0, 0.0))))
        with pytest.raises(ValueError, match="first and last"):
            AnimationClip("Idle", 1.0, (track,)).validate()
        AnimationClip("Idle", 1.0, (track,), loop=False).validate()
