"""Tests for Skeleton Definition - bone tree and rest pose."""

import numpy as np
import pytest

from src.modules.m1_skeleton import BONE_NAMES, Bone, Skeleton, build_skeleton


class TestBuildSkeleton:

    def setup_method(self):
        self.skeleton = build_skeleton()

    def test_has_nine_bones(self):
        assert len(self.skeleton) == 9

    def test_names_match_declared_order(self):
        assert self.skeleton.names() == list(BONE_NAMES)

    def test_root_is_spine(self):
        assert self.skeleton.root == "Spine"
        assert self.skeleton.get("Spine").parent is None

    def test_every_non_root_parent_exists(self):
        for bone in self.skeleton.bones:
            if bone.name != self.skeleton.root:
                assert bone.parent in self.skeleton

    def test_children(self):
        assert sorted(self.skeleton.children("Chest")) == ["Head", "LeftHand", "RightHand"]
        assert self.skeleton.children("LeftFoot") == []

    def test_world_positions_accumulate(self):
        head = self.skeleton.world_position("Head")
        assert np.allclose(head, [0.0, 0.95 + 0.32 + 0.20, 0.0])
        foot = self.skeleton.world_position("LeftFoot")
        assert foot[1] == pytest.approx(0.95 - 0.06 - 0.80)
        assert foot[0] > 0

    def test_hands_are_mirrored(self):
        left = self.skeleton.world_position("LeftHand")
        right = self.skeleton.world_position("RightHand")
        assert left[0] == pytest.approx(-right[0])

    def test_index_of_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown bone"):
            self.skeleton.index_of("Tail")


class TestSkeletonValidation:

    def test_duplicate_names_rejected(self):
        bones = (Bone("A", None, (0, 0, 0)), Bone("A", "A", (0, 1, 0)))
        with pytest.raises(ValueError, match="Duplicate"):
            Skeleton(bones, "A")

    def test_parent_must_precede_child(self):
        bones = (Bone("A", None, (0, 0, 0)), Bone("C", "B", (0, 1, 0)), Bone("B", "A", (0, 1, 0)))
        with pytest.raises(ValueError, match="must be defined before"):
            Skeleton(bones, "A")

    def test_second_root_rejected(self):
        bones = (Bone("A", None, (0, 0, 0)), Bone("B", None, (0, 1, 0)))
        with pytest.raises(ValueError, match="no parent"):
            Skeleton(bones, "A")

    def test_missing_root_rejected(self):
        with pytest.raises(ValueError):
            Skeleton((Bone("A", None, (0, 0, 0)),), "Root")
