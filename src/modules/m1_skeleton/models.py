"""
#WHERE
    Used by definition.py, m2_mesh_builder (skin weights), m3_animation_baker
    (track validation), m4_asset_exporter (joint nodes, inverse binds).

#WHAT
    Bone and Skeleton data models.  A Skeleton is an ordered, single-rooted
    bone tree in which every parent precedes its children.

#INPUT
    Bone names, parent names, rest-pose local TRS.

#OUTPUT
    Bone, Skeleton dataclass instances.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from src.shared.transforms import IDENTITY_QUAT, UNIT_SCALE, ZERO_VEC, Quat, Vec3, trs_matrix


@dataclass(frozen=True, slots=True)
class Bone:
    name: str
    parent: Optional[str] = None
    rest_translation: Vec3 = ZERO_VEC
    rest_rotation: Quat = IDENTITY_QUAT
    rest_scale: Vec3 = UNIT_SCALE

    def local_matrix(self) -> np.ndarray:
        return trs_matrix(self.rest_translation, self.rest_rotation, self.rest_scale)


@dataclass(frozen=True)
class Skeleton:
    bones: Tuple[Bone, ...]
    root: str
    _index: Dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        index: Dict[str, int] = {}
        for i, bone in enumerate(self.bones):
            if bone.name in index:
                raise ValueError(f"Duplicate bone name: {bone.name}")
            if bone.parent is None:
                if bone.name != self.root:
                    raise ValueError(f"Bone {bone.name!r} has no parent but root is {self.root!r}")
            elif bone.parent not in index:
                raise ValueError(
                    f"Parent {bone.parent!r} of bone {bone.name!r} must be defined before it"
                )
            index[bone.name] = i
        if self.root not in index:
            raise ValueError(f"Root bone {self.root!r} not in skeleton")
        object.__setattr__(self, "_index", index)

    def __len__(self) -> int:
        return len(self.bones)

    def __contains__(self, name: str) -> bool:
        return name in self._index

    def names(self) -> List[str]:
        return [b.name for b in self.bones]

    def index_of(self, name: str) -> int:
        try:
            return self._index[name]
        except KeyError:
            raise ValueError(f"Unknown bone: {name}") from None

    def get(self, name: str) -> Bone:
        return self.bones[self.index_of(name)]

    def children(self, name: str) -> List[str]:
        return [b.name for b in self.bones if b.parent == name]

    def world_matrices(self) -> Dict[str, np.ndarray]:
        """Rest-pose bone-to-armature matrices, keyed by bone name."""
        world: Dict[str, np.ndarray] = {}
        for bone in self.bones:
            local = bone.local_matrix()
            world[bone.name] = local if bone.parent is None else world[bone.parent] @ local
        return world

    def world_position(self, name: str) -> np.ndarray:
        return self.world_matrices()[name][:3, 3].copy()
