"""GLB assembly via pygltflib: node graph, skinned mesh, skin and animations."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np
import pygltflib

from src.modules.m1_skeleton import Skeleton
from src.modules.m2_mesh_builder import SkinnedMesh
from src.modules.m3_animation_baker import AnimationClip
from src.shared.constants import AVATAR_ROOT_NODE, DEFAULT_MAX_ASSET_BYTES
from src.shared.errors import ExportError

from .material import CYBER_MATERIAL, AvatarMaterial

log = logging.getLogger(__name__)

_ACCESSOR_TYPES = {1: pygltflib.SCALAR, 2: pygltflib.VEC2, 3: pygltflib.VEC3,
                   4: pygltflib.VEC4, 16: pygltflib.MAT4}
_COMPONENT_TYPES = {np.dtype(np.float32): pygltflib.FLOAT,
                    np.dtype(np.uint16): pygltflib.UNSIGNED_SHORT,
                    np.dtype(np.uint32): pygltflib.UNSIGNED_INT}


class _BufferBuilder:
    """Packs numpy arrays into one 4-byte aligned binary blob, one view + accessor each."""

    def __init__(self, gltf: pygltflib.GLTF2):
        self.gltf = gltf
        self.blob = bytearray()

    def _align(self, alignment: int = 4) -> None:
        remainder = len(self.blob) % alignment
        if remainder:
            self.blob.extend(b"\x00" * (alignment - remainder))

    def add(self, array: np.ndarray, target: Optional[int] = None, bounds: bool = False) -> int:
        array = np.ascontiguousarray(array)
        width = 1 if array.ndim == 1 else int(np.prod(array.shape[1:]))
        self._align()
        offset = len(self.blob)
        data = array.tobytes()
        self.blob.extend(data)

        view_idx = len(self.gltf.bufferViews)
        self.gltf.bufferViews.append(pygltflib.BufferView(
            buffer=0, byteOffset=offset, byteLength=len(data), target=target,
        ))
        flat = array.reshape(array.shape[0], width)
        accessor = pygltflib.Accessor(
            bufferView=view_idx,
            byteOffset=0,
            componentType=_COMPONENT_TYPES[array.dtype],
            count=int(array.shape[0]),
            type=_ACCESSOR_TYPES[width],
        )
        if bounds:
            accessor.min = [float(v) for v in flat.min(axis=0)]
            accessor.max = [float(v) for v in flat.max(axis=0)]
        self.gltf.accessors.append(accessor)
        return len(self.gltf.accessors) - 1

    def finish(self) -> None:
        self._align()
        self.gltf.buffers = [pygltflib.Buffer(byteLength=len(self.blob))]
        self.gltf.set_binary_blob(bytes(self.blob))


def _new_gltf() -> pygltflib.GLTF2:
    return pygltflib.GLTF2(
        asset=pygltflib.Asset(version="2.0", generator="nuverse-avatar"),
        scene=0,
        scenes=[pygltflib.Scene(nodes=[])],
        nodes=[], meshes=[], accessors=[], bufferViews=[], buffers=[],
        materials=[], skins=[], animations=[],
    )


def _add_mesh(gltf: pygltflib.GLTF2, buf: _BufferBuilder, mesh: SkinnedMesh,
              material: AvatarMaterial, skinned: bool) -> int:
    attributes = pygltflib.Attributes(
        POSITION=buf.add(mesh.positions, pygltflib.ARRAY_BUFFER, bounds=True),
        NORMAL=buf.add(mesh.normals, pygltflib.ARRAY_BUFFER),
        TEXCOORD_0=buf.add(mesh.uvs, pygltflib.ARRAY_BUFFER),
    )
    if skinned:
        attributes.JOINTS_0 = buf.add(mesh.joints, pygltflib.ARRAY_BUFFER)
        attributes.WEIGHTS_0 = buf.add(mesh.weights, pygltflib.ARRAY_BUFFER)
    indices = buf.add(mesh.indices, pygltflib.ELEMENT_ARRAY_BUFFER)

    gltf.materials.append(material.to_gltf())
    gltf.meshes.append(pygltflib.Mesh(
        name=mesh.name,
        primitives=[pygltflib.Primitive(attributes=attributes, indices=indices,
                                        material=len(gltf.materials) - 1)],
    ))
    return len(gltf.meshes) - 1


def _add_skeleton(gltf: pygltflib.GLTF2, skeleton: Skeleton) -> Dict[str, int]:
    node_of: Dict[str, int] = {}
    for bone in skeleton.bones:
        node_of[bone.name] = len(gltf.nodes)
        gltf.nodes.append(pygltflib.Node(
            name=bone.name,
            translation=list(bone.rest_translation),
            rotation=list(bone.rest_rotation),
            scale=list(bone.rest_scale),
        ))
    for bone in skeleton.bones:
        if bone.parent is not None:
            parent = gltf.nodes[node_of[bone.parent]]
            parent.children = (parent.children or []) + [node_of[bone.name]]
    return node_of


def _add_animation(gltf: pygltflib.GLTF2, buf: _BufferBuilder, clip: AnimationClip,
                   node_of: Dict[str, int]) -> None:
    samplers, channels = [], []
    for track in clip.tracks:
        samplers.append(pygltflib.AnimationSampler(
            input=buf.add(track.times(), bounds=True),
            output=buf.add(track.values()),
            interpolation=track.interpolation,
        ))
        channels.append(pygltflib.AnimationChannel(
            sampler=len(samplers) - 1,
            target=pygltflib.AnimationChannelTarget(node=node_of[track.bone_name],
                                                    path=track.channel.value),
        ))
    gltf.animations.append(pygltflib.Animation(
        name=clip.name, samplers=samplers, channels=channels,
        extras={"loop": clip.loop, "duration": clip.duration},
    ))


def _check_references(mesh: SkinnedMesh, skeleton: Skeleton, clips: Sequence[AnimationClip]) -> None:
    if list(mesh.joint_names) != skeleton.names():
        raise ExportError(f"Mesh {mesh.name!r} is bound to joints {list(mesh.joint_names)}, "
                          f"skeleton has {skeleton.names()}")
    for clip in clips:
        for track in clip.tracks:
            if track.bone_name not in skeleton:
                raise ExportError(
                    f"Clip {clip.name!r} track references bone {track.bone_name!r} absent from skeleton"
                )


def _to_bytes(gltf: pygltflib.GLTF2, max_bytes: Optional[int]) -> bytes:
    data = b"".join(gltf.save_to_bytes())
    if max_bytes is not None and len(data) > max_bytes:
        raise ExportError(
            f"Exported asset is {len(data)} bytes, limit is {max_bytes}; reduce mesh detail"
        )
    return data


def export_asset(mesh: SkinnedMesh, skeleton: Skeleton, clips: Sequence[AnimationClip], *,
                 max_bytes: Optional[int] = DEFAULT_MAX_ASSET_BYTES,
                 material: AvatarMaterial = CYBER_MATERIAL) -> bytes:
    """Serialize skinned mesh + skeleton + clips into a single GLB buffer.

    Scene layout: ``NuVerseAvatar`` (root) -> [root bone, ``AvatarBody`` mesh node].
    """
    _check_references(mesh, skeleton, clips)
    try:
        gltf = _new_gltf()
        buf = _BufferBuilder(gltf)

        gltf.nodes.append(pygltflib.Node(name=AVATAR_ROOT_NODE, children=[]))
        node_of = _add_skeleton(gltf, skeleton)
        mesh_idx = _add_mesh(gltf, buf, mesh, material, skinned=True)

        world = skeleton.world_matrices()
        inverse_binds = np.stack([np.linalg.inv(world[name]).T for name in skeleton.names()])
        gltf.skins.append(pygltflib.Skin(
            name=f"{AVATAR_ROOT_NODE}Skin",
            joints=[node_of[name] for name in skeleton.names()],
            skeleton=node_of[skeleton.root],
            inverseBindMatrices=buf.add(inverse_binds.reshape(len(skeleton), 16).astype(np.float32)),
        ))

        mesh_node = len(gltf.nodes)
        gltf.nodes.append(pygltflib.Node(name=mesh.name, mesh=mesh_idx, skin=0))
        gltf.nodes[0].children = [node_of[skeleton.root], mesh_node]
        gltf.scenes[0].nodes = [0]

        for clip in clips:
            _add_animation(gltf, buf, clip, node_of)

        buf.finish()
        data = _to_bytes(gltf, max_bytes)
    except ExportError:
        raise
    except Exception as e:
        raise ExportError(f"Failed to export avatar asset: {e}") from e

    log.info("Exported avatar asset: %d bytes, %d joints, %d clips",
             len(data), len(skeleton), len(clips))
    return data


def export_static_asset(mesh: SkinnedMesh, material: AvatarMaterial = CYBER_MATERIAL, *,
                        max_bytes: Optional[int] = DEFAULT_MAX_ASSET_BYTES) -> bytes:
    """Single unskinned mesh node (equipment props)."""
    try:
        gltf = _new_gltf()
        buf = _BufferBuilder(gltf)
        mesh_idx = _add_mesh(gltf, buf, mesh, material, skinned=False)
        gltf.nodes.append(pygltflib.Node(name=mesh.name, mesh=mesh_idx))
        gltf.scenes[0].nodes = [0]
        buf.finish()
        return _to_bytes(gltf, max_bytes)
    except ExportError:
        raise
    except Exception as e:
        raise ExportError(f"Failed to export static asset {mesh.name!r}: {e}") from e
