"""Tests for Equipment - targets, catalog, resolver, attacher, attachment component."""

import numpy as np
import pytest

from src.modules.m5_scene_runtime import AssetLoader, ComponentRegistry, Entity, InlineExecutor, SceneNode
from src.modules.m6_equipment import (
    ATTACHMENT_TARGETS, COMPONENT_NAME, DEFAULT_CATALOG, AttachmentCategory, AttachmentConfig,
    EquipmentAttacher, EquipmentCatalog, EquipmentMapping, EquippedLook,
    get_accessory_attachment, get_all_equipped_attachments, get_bone_candidates, get_mapping,
    get_outfit_attachment, get_shoe_attachment, get_targets_by_category, is_known_target,
    register_equipment_attachment, resolve_bone,
)
from src.shared.constants import AVATAR_ASSET_PATH, SHOE_ASSET_PATH
from src.shared.errors import AttachmentResolutionError


def _rig(*names):
    """Minimal loaded-avatar stand-in: a Scene root with a chain of joints."""
    root = SceneNode("Scene")
    parent = root
    for name in names:
        parent = parent.add(SceneNode(name, is_joint=True))
    return root


class TestTargets:

    def test_ten_targets(self):
        assert len(ATTACHMENT_TARGETS) == 10

    def test_candidates_start_with_primary(self):
        assert get_bone_candidates("LeftFoot")[:3] == ["LeftFoot", "Left_Foot", "leftFoot"]

    def test_back_uses_spine(self):
        assert get_bone_candidates("Back")[0] == "Spine"

    def test_unknown_target_maps_to_itself(self):
        assert get_bone_candidates("Tail") == ["Tail"]
        assert not is_known_target("Tail")

    def test_targets_by_category(self):
        feet = get_targets_by_category(AttachmentCategory.FEET)
        assert {t.primary_bone for t in feet} == {"LeftFoot", "RightFoot"}
        assert len(get_targets_by_category("torso")) == 2


class TestCatalog:

    def test_six_items_per_slot(self):
        for slot in ("shoes", "accessories", "outfits"):
            assert len(DEFAULT_CATALOG.slots[slot]) == 6

    def test_shoes_alternate_feet(self):
        assert get_shoe_attachment("shoe-1").attachment_bone == "LeftFoot"
        assert get_shoe_attachment("shoe-2").attachment_bone == "RightFoot"
        assert get_shoe_attachment("shoe-1").asset_path == SHOE_ASSET_PATH

    def test_fallbacks_exclude_primary(self):
        mapping = get_outfit_attachment("outfit-3")
        assert mapping.attachment_bone == "Chest"
        assert "Chest" not in mapping.fallback_bones
        assert "Spine" in mapping.fallback_bones

    def test_accessory_offsets_and_scale(self):
        assert get_accessory_attachment("accessory-1").offset == (0.0, 0.1, 0.0)
        back = get_accessory_attachment("accessory-4")
        assert back.attachment_bone == "Spine"
        assert back.scale == (1.2, 1.2, 1.2)

    def test_unknown_or_empty_ids(self):
        assert get_mapping("shoes", "shoe-99") is None
        assert get_mapping("shoes", None) is None
        with pytest.raises(ValueError, match="Unknown equipment slot"):
            get_mapping("hats", "hat-1")

    def test_equipped_attachments_in_slot_order(self):
        look = EquippedLook(shoes="shoe-1", accessories="accessory-2", outfits="outfit-3")
        assert [m.slot for m in get_all_equipped_attachments(look)] == ["shoes", "accessories", "outfits"]

    def test_look_from_dict_validation(self):
        assert EquippedLook.from_dict({"shoes": "shoe-1", "accessories": None, "outfits": None}) \
            == EquippedLook(shoes="shoe-1")
        assert EquippedLook.from_dict({"shoes": "shoe-1"}) is None
        assert EquippedLook.from_dict({"shoes": 3, "accessories": None, "outfits": None}) is None
        assert EquippedLook.from_dict("nope") is None


class TestResolver:

    def setup_method(self):
        self.mapping = EquipmentMapping("ring", "/x.glb", "RightHand", ("RightArm", "Spine"))

    def test_first_present_fallback(self):
        assert resolve_bone({"Head", "Spine"}, self.mapping) == "Spine"

    def test_primary_wins(self):
        assert resolve_bone({"RightHand", "Spine"}, self.mapping) == "RightHand"

    def test_fallback_order_respected(self):
        assert resolve_bone({"Spine", "RightArm"}, self.mapping) == "RightArm"

    def test_nothing_matches(self):
        with pytest.raises(AttachmentResolutionError) as err:
            resolve_bone({"Head"}, self.mapping)
        assert err.value.candidates == ["RightHand", "RightArm", "Spine"]
        assert err.value.item_id == "ring"

    def test_case_sensitive(self):
        with pytest.raises(AttachmentResolutionError):
            resolve_bone({"righthand", "spine"}, self.mapping)


class TestEquipmentAttacher:

    @pytest.fixture(autouse=True)
    def _avatar(self, loader):
        self.loader = loader
        self.avatar = Entity("avatar")
        self.avatar.set_model(loader.load_now(AVATAR_ASSET_PATH))
        self.attacher = EquipmentAttacher(self.avatar, loader)

    def _children_named(self, bone, prefix="equipment:"):
        node = self.avatar.object3d.find(bone, joints_only=True)
        return [c for c in node.children if c.name.startswith(prefix)]

    def test_two_items_attached(self):
        report = self.attacher.attach(EquippedLook(shoes="shoe-1", outfits="outfit-3"))
        assert report.ok
        assert report.bones() == {"shoe-1": "LeftFoot", "outfit-3": "Chest"}
        assert {a.slot for a in report.attached} == {"shoes", "outfits"}

    def test_offset_and_scale_applied(self):
        report = self.attacher.attach(EquippedLook(accessories="accessory-4"))
        node = report.attached[0].node
        assert node.parent.name == "Spine"
        assert node.translation == pytest.approx((0.0, 0.2, -0.1))
        assert node.scale == pytest.approx((1.2, 1.2, 1.2))

    def test_attached_node_follows_bone(self):
        report = self.attacher.attach(EquippedLook(shoes="shoe-1"))
        foot = self.avatar.object3d.find("LeftFoot", joints_only=True)
        before = report.attached[0].node.world_position()
        foot.translation = (foot.translation[0] + 0.5, foot.translation[1], foot.translation[2])
        assert np.allclose(report.attached[0].node.world_position() - before, [0.5, 0, 0])

    def test_idempotent(self):
        look = EquippedLook(shoes="shoe-1", outfits="outfit-3")
        first = self.attacher.attach(look)
        second = self.attacher.attach(look)
        assert len(self._children_named("LeftFoot")) == 1
        assert len(self._children_named("Chest")) == 1
        assert [a.node for a in first.attached] == [a.node for a in second.attached]

    def test_changed_slot_replaced(self):
        self.attacher.attach(EquippedLook(shoes="shoe-1"))
        self.attacher.attach(EquippedLook(shoes="shoe-2"))
        assert self._children_named("LeftFoot") == []
        assert len(self._children_named("RightFoot")) == 1

    def test_cleared_slot_removed(self):
        self.attacher.attach(EquippedLook(shoes="shoe-1", outfits="outfit-3"))
        report = self.attacher.attach(EquippedLook(outfits="outfit-3"))
        assert self._children_named("LeftFoot") == []
        assert [a.item_id for a in report.attached] == ["outfit-3"]

    def test_failure_isolated(self):
        catalog = EquipmentCatalog({
            **DEFAULT_CATALOG.slots,
            "accessories": {"halo": EquipmentMapping("halo", SHOE_ASSET_PATH, "Halo", ("Aura",),
                                                     slot="accessories")},
        })
        attacher = EquipmentAttacher(self.avatar, self.loader, catalog)
        report = attacher.attach(EquippedLook(shoes="shoe-1", accessories="halo", outfits="outfit-3"))
        assert sorted(a.slot for a in report.attached) == ["outfits", "shoes"]
        assert len(report.failures) == 1
        failure = report.failures[0]
        assert failure.slot == "accessories" and failure.candidates == ["Halo", "Aura"]

    def test_missing_asset_isolated(self, placeholder_assets):
        from src.modules.m5_scene_runtime import MemoryAssetSource
        partial = MemoryAssetSource({SHOE_ASSET_PATH: placeholder_assets[SHOE_ASSET_PATH]})
        attacher = EquipmentAttacher(self.avatar, AssetLoader(partial, executor=InlineExecutor()))
        report = attacher.attach(EquippedLook(shoes="shoe-1", outfits="outfit-1"))
        assert [a.item_id for a in report.attached] == ["shoe-1"]
        assert report.failures[0].item_id == "outfit-1"

    def test_unknown_item_reported(self):
        report = self.attacher.attach(EquippedLook(shoes="shoe-404"))
        assert report.attached == []
        assert report.failures[0].reason == "unknown item"

    def test_fallback_on_alternate_rig(self, loader):
        avatar = Entity("mixamo")
        avatar.set_model(_rig("Hips", "spine", "LeftUpLeg", "Left_Foot"))
        report = EquipmentAttacher(avatar, loader).attach(EquippedLook(shoes="shoe-1", outfits="outfit-1"))
        assert report.bones() == {"shoe-1": "Left_Foot"}
        assert report.failures[0].item_id == "outfit-1"

    def test_attach_before_load_fails_fast(self, loader):
        with pytest.raises(RuntimeError):
            EquipmentAttacher(Entity("empty"), loader).attach(EquippedLook(shoes="shoe-1"))

    def test_detach_all(self):
        self.attacher.attach(EquippedLook(shoes="shoe-1", outfits="outfit-3"))
        self.attacher.detach_all()
        assert self.attacher.attachments == []
        assert self._children_named("Chest") == []

    def test_separate_avatars_do_not_share_nodes(self, loader):
        other = Entity("other")
        other.set_model(loader.load_now(AVATAR_ASSET_PATH))
        a = self.attacher.attach(EquippedLook(shoes="shoe-1")).attached[0].node
        b = EquipmentAttacher(other, loader).attach(EquippedLook(shoes="shoe-1")).attached[0].node
        assert a is not b
        assert a.children[0] is not b.children[0]


class TestAttachmentComponent:

    @pytest.fixture(autouse=True)
    def _scene(self, loader):
        self.loader = loader
        self.registry = ComponentRegistry()
        register_equipment_attachment(self.registry)
        self.avatar = Entity("avatar", self.registry)
        self.shoe = self.avatar.append_child(Entity("shoe", self.registry))

    def _bone(self, name):
        return self.avatar.object3d.find(name, joints_only=True)

    def test_registration_idempotent(self):
        assert register_equipment_attachment(self.registry) is False
        assert COMPONENT_NAME in self.registry

    def test_waits_for_both_models(self):
        comp = self.shoe.set_attribute(COMPONENT_NAME, "targetBone: LeftFoot; offsetY: 0.05")
        assert not comp.attached
        self.shoe.load_model(self.loader, SHOE_ASSET_PATH)
        assert not comp.attached
        self.avatar.load_model(self.loader, AVATAR_ASSET_PATH)
        assert comp.attached
        assert self.shoe.object3d.parent is self._bone("LeftFoot")
        assert self.shoe.object3d.translation == pytest.approx((0.0, 0.05, 0.0))

    def test_fallback_bones_attribute(self):
        self.avatar.set_model(_rig("Hips", "foot_L"))
        self.shoe.load_model(self.loader, SHOE_ASSET_PATH)
        comp = self.shoe.set_attribute(COMPONENT_NAME, "targetBone: LeftFoot; fallbackBones: L_Foot, foot_L")
        assert comp.resolved_bone_name == "foot_L"

    def test_unresolved_stays_detached(self):
        self.avatar.set_model(_rig("Hips"))
        self.shoe.load_model(self.loader, SHOE_ASSET_PATH)
        comp = self.shoe.set_attribute(COMPONENT_NAME, "targetBone: LeftFoot")
        assert not comp.attached
        assert self.shoe.object3d.parent is None

    def test_update_reattaches(self):
        self.avatar.load_model(self.loader, AVATAR_ASSET_PATH)
        self.shoe.load_model(self.loader, SHOE_ASSET_PATH)
        self.shoe.set_attribute(COMPONENT_NAME, "targetBone: LeftFoot")
        self.shoe.set_attribute(COMPONENT_NAME, "targetBone: RightFoot")
        assert self.shoe.object3d.parent is self._bone("RightFoot")
        assert [c for c in self._bone("LeftFoot").children if c is self.shoe.object3d] == []

    def test_remove_detaches(self):
        self.avatar.load_model(self.loader, AVATAR_ASSET_PATH)
        self.shoe.load_model(self.loader, SHOE_ASSET_PATH)
        self.shoe.set_attribute(COMPONENT_NAME, "targetBone: LeftFoot")
        self.shoe.remove_attribute(COMPONENT_NAME)
        assert self.shoe.object3d.parent is None

    def test_explicit_attach_requires_models(self):
        comp = self.shoe.set_attribute(COMPONENT_NAME)
        with pytest.raises(RuntimeError):
            comp.attach(AttachmentConfig("LeftFoot"))

    def test_explicit_attach_with_typed_config(self):
        self.avatar.load_model(self.loader, AVATAR_ASSET_PATH)
        self.shoe.load_model(self.loader, SHOE_ASSET_PATH)
        comp = self.shoe.set_attribute(COMPONENT_NAME)
        bone = comp.attach(AttachmentConfig.from_mapping(get_shoe_attachment("shoe-2")))
        assert bone == "RightFoot"
        assert comp.data["targetBone"] == "RightFoot"

    def test_avatar_teardown_detaches_children(self):
        self.avatar.load_model(self.loader, AVATAR_ASSET_PATH)
        self.shoe.load_model(self.loader, SHOE_ASSET_PATH)
        comp = self.shoe.set_attribute(COMPONENT_NAME, "targetBone: LeftFoot")
        self.avatar.teardown()
        assert not comp.attached
        assert self.shoe.is_torn_down
