"""Minimal retained scene graph: named TRS nodes, joint flags, clips on the asset root."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

import numpy as np

from src.shared.transforms import IDENTITY_QUAT, UNIT_SCALE, ZERO_VEC, trs_matrix


@dataclass(frozen=True, slots=True)
class MeshInfo:
    name: str
    vertex_count: int
    skinned: bool = False


class SceneNode:
    """A transform node.  Joints are nodes referenced by a skin in the loaded asset."""

    def __init__(self, name: str = "",
                 translation: Tuple[float, float, float] = ZERO_VEC,
                 rotation: Tuple[float, float, float, float] = IDENTITY_QUAT,
                 scale: Tuple[float, float, float] = UNIT_SCALE,
                 is_joint: bool = False,
                 mesh: Optional[MeshInfo] = None,
                 sprite: Optional[Tuple[int, int]] = None):
        self.name = name
        self.translation = tuple(float(c) for c in translation)
        self.rotation = tuple(float(c) for c in rotation)
        self.scale = tuple(float(c) for c in scale)
        self.is_joint = is_joint
        self.mesh = mesh
        self.sprite = sprite
        self.parent: Optional[SceneNode] = None
        self.children: List[SceneNode] = []
        self.animations: list = []
        self.user_data: dict = {}

    def __repr__(self) -> str:
        kind = "Joint" if self.is_joint else "Node"
        return f"<{kind} {self.name!r} children={len(self.children)}>"

    # ── hierarchy ────────────────────────────────────────────────────────

    def add(self, child: "SceneNode") -> "SceneNode":
        """Append *child*, detaching it from any previous parent."""
        if child is self or child.is_ancestor_of(self):
            raise ValueError(f"Cannot parent {child.name!r} under its own subtree")
        if child.parent is not None:
            child.parent.remove(child)
        child.parent = self
        self.children.append(child)
        return child

    def remove(self, child: "SceneNode") -> None:
        if child in self.children:
            self.children.remove(child)
            child.parent = None

    def detach(self) -> None:
        if self.parent is not None:
            self.parent.remove(self)

    def is_ancestor_of(self, node: "SceneNode") -> bool:
        current = node.parent
        while current is not None:
            if current is self:
                return True
            current = current.parent
        return False

    def traverse(self) -> Iterator["SceneNode"]:
        """Depth-first, pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def find(self, name: str, joints_only: bool = False) -> Optional["SceneNode"]:
        for node in self.traverse():
            if node.name == name and (node.is_joint or not joints_only):
                return node
        return None

    def joints(self) -> List["SceneNode"]:
        return [n for n in self.traverse() if n.is_joint]

    def joint_names(self) -> List[str]:
        return [n.name for n in self.joints()]

    # ── transforms ───────────────────────────────────────────────────────

    def local_matrix(self) -> np.ndarray:
        return trs_matrix(self.translation, self.rotation, self.scale)

    def world_matrix(self) -> np.ndarray:
        m = self.local_matrix()
        node = self.parent
        while node is not None:
            m = node.local_matrix() @ m
            node = node.parent
        return m

    def world_position(self) -> np.ndarray:
        return self.world_matrix()[:3, 3].copy()

    # ── copying ──────────────────────────────────────────────────────────

    def clone(self) -> "SceneNode":
        """Deep copy of the subtree; animation clips are immutable and shared."""
        copy = SceneNode(self.name, self.translation, self.rotation, self.scale,
                         self.is_joint, self.mesh, self.sprite)
        copy.animations = list(self.animations)
        copy.user_data = dict(self.user_data)
        for child in self.children:
            copy.add(child.clone())
        return copy
