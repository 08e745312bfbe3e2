"""
#WHERE
    Used by entity.py (avatar model loading), m6_equipment (equipment
    assets), session.py, main.py and tests.

#WHAT
    Asset sources and the scene loader.  GLB buffers are parsed with
    pygltflib into a SceneNode tree (joint flags from skins, clips from
    animations); 2D images are decoded with Pillow into a sprite node.
    Loading is asynchronous: ``AssetLoader.load`` returns a Future.

#INPUT
    Relative asset paths ("/assets/xr/..."), an AssetSource.

#OUTPUT
    SceneNode roots (fresh clone per request).  AssetLoadError on
    missing, corrupt or unsupported files.
"""

from __future__ import annotations

import io
import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, List, Optional, Protocol

import numpy as np
import pygltflib
from PIL import Image, UnidentifiedImageError

from src.modules.m3_animation_baker import LINEAR, STEP, AnimationClip, Channel, Keyframe, Track
from src.shared.errors import AssetLoadError
from src.shared.transforms import decompose_matrix

from .scene_graph import MeshInfo, SceneNode

log = logging.getLogger(__name__)

GLB_MAGIC = b"glTF"
IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".webp", ".gif"}

_DTYPES = {
    pygltflib.BYTE: np.int8, pygltflib.UNSIGNED_BYTE: np.uint8,
    pygltflib.SHORT: np.int16, pygltflib.UNSIGNED_SHORT: np.uint16,
    pygltflib.UNSIGNED_INT: np.uint32, pygltflib.FLOAT: np.float32,
}
_WIDTHS = {pygltflib.SCALAR: 1, pygltflib.VEC2: 2, pygltflib.VEC3: 3,
           pygltflib.VEC4: 4, pygltflib.MAT4: 16}
_CHANNELS = {c.value: c for c in Channel}


# ── Asset sources ────────────────────────────────────────────────────────────

class AssetSource(Protocol):
    def read(self, path: str) -> bytes: ...


class FileAssetSource:
    """Serves "/assets/..." paths from a directory on disk."""

    def __init__(self, root: str):
        self.root = Path(root).resolve()

    def resolve(self, path: str) -> Path:
        full = (self.root / PurePosixPath(path.lstrip("/"))).resolve()
        if self.root != full and self.root not in full.parents:
            raise AssetLoadError(path, "path escapes asset root")
        return full

    def read(self, path: str) -> bytes:
        full = self.resolve(path)
        try:
            return full.read_bytes()
        except OSError as e:
            raise AssetLoadError(path, f"{type(e).__name__}: {e}") from e


class MemoryAssetSource:
    """In-process asset table (generated assets, previews, tests)."""

    def __init__(self, assets: Optional[Dict[str, bytes]] = None):
        self.assets: Dict[str, bytes] = dict(assets or {})

    def put(self, path: str, data: bytes) -> None:
        self.assets[path] = data

    def read(self, path: str) -> bytes:
        try:
            return self.assets[path]
        except KeyError:
            raise AssetLoadError(path, "not found") from None


# ── Parsing ──────────────────────────────────────────────────────────────────

def _read_accessor(gltf: pygltflib.GLTF2, blob: bytes, index: int) -> np.ndarray:
    acc = gltf.accessors[index]
    view = gltf.bufferViews[acc.bufferView]
    dtype = np.dtype(_DTYPES[acc.componentType])
    width = _WIDTHS[acc.type]
    start = (view.byteOffset or 0) + (acc.byteOffset or 0)
    item = dtype.itemsize * width
    stride = view.byteStride or item
    if stride == item:
        flat = np.frombuffer(blob, dtype=dtype, count=acc.count * width, offset=start)
    else:
        rows = [np.frombuffer(blob, dtype=dtype, count=width, offset=start + i * stride)
                for i in range(acc.count)]
        flat = np.concatenate(rows) if rows else np.zeros(0, dtype=dtype)
    out = flat.reshape(acc.count, width)
    if acc.normalized and np.issubdtype(dtype, np.integer):
        # unsigned ints map to [0, 1], signed to [-1, 1]
        info = np.iinfo(dtype)
        out = np.maximum(out.astype(np.float64) / info.max, -1.0)
    return out


def _read_clips(gltf: pygltflib.GLTF2, blob: bytes) -> List[AnimationClip]:
    clips = []
    for i, anim in enumerate(gltf.animations or []):
        tracks = []
        for channel in anim.channels:
            path = channel.target.path
            if path not in _CHANNELS or channel.target.node is None:
                continue
            sampler = anim.samplers[channel.sampler]
            times = _read_accessor(gltf, blob, sampler.input)[:, 0]
            values = _read_accessor(gltf, blob, sampler.output).astype(np.float64)
            if sampler.interpolation == "CUBICSPLINE":
                values = values.reshape(len(times), 3, -1)[:, 1]
            node = gltf.nodes[channel.target.node]
            tracks.append(Track(
                bone_name=node.name or f"node_{channel.target.node}",
                channel=_CHANNELS[path],
                keyframes=tuple(Keyframe(float(t), tuple(float(c) for c in v))
                                for t, v in zip(times, values)),
                interpolation=STEP if sampler.interpolation == STEP else LINEAR,
            ))
        extras = anim.extras or {}
        duration = max([float(t.keyframes[-1].time) for t in tracks] + [float(extras.get("duration", 0.0))])
        clips.append(AnimationClip(
            name=anim.name or f"animation_{i}",
            duration=duration,
            tracks=tuple(tracks),
            loop=bool(extras.get("loop", True)),
        ))
    return clips


def parse_glb(data: bytes, source: str = "<memory>") -> SceneNode:
    """Parse a GLB buffer into a SceneNode tree under a synthetic "Scene" root."""
    if data[:4] != GLB_MAGIC:
        raise AssetLoadError(source, "not a binary glTF container")
    try:
        gltf = pygltflib.GLTF2.load_from_bytes(data)
        blob = gltf.binary_blob() or b""
        joint_ids = {j for skin in gltf.skins or [] for j in skin.joints}

        nodes: List[SceneNode] = []
        for i, n in enumerate(gltf.nodes or []):
            if n.matrix:
                translation, rotation, scale = decompose_matrix(np.array(n.matrix).reshape(4, 4).T)
            else:
                translation = n.translation or (0.0, 0.0, 0.0)
                rotation = n.rotation or (0.0, 0.0, 0.0, 1.0)
                scale = n.scale or (1.0, 1.0, 1.0)
            mesh = None
            if n.mesh is not None:
                gmesh = gltf.meshes[n.mesh]
                count = sum(gltf.accessors[p.attributes.POSITION].count for p in gmesh.primitives)
                mesh = MeshInfo(gmesh.name or f"mesh_{n.mesh}", count, skinned=n.skin is not None)
            nodes.append(SceneNode(n.name or f"node_{i}", translation, rotation, scale,
                                   is_joint=i in joint_ids, mesh=mesh))
        for i, n in enumerate(gltf.nodes or []):
            for c in n.children or []:
                nodes[i].add(nodes[c])

        root = SceneNode("Scene")
        if gltf.scenes:
            top = gltf.scenes[gltf.scene or 0].nodes or []
        else:
            top = [i for i, node in enumerate(nodes) if node.parent is None]
        for i in top:
            root.add(nodes[i])
        root.animations = _read_clips(gltf, blob)
    except AssetLoadError:
        raise
    except Exception as e:
        raise AssetLoadError(source, f"corrupt glTF: {e}") from e
    return root


def parse_image(data: bytes, source: str = "<memory>") -> SceneNode:
    try:
        with Image.open(io.BytesIO(data)) as img:
            size = img.size
    except (UnidentifiedImageError, OSError) as e:
        raise AssetLoadError(source, f"unreadable image: {e}") from e
    root = SceneNode("Scene")
    root.add(SceneNode(PurePosixPath(source).stem, sprite=size))
    return root


def parse_asset(data: bytes, source: str) -> SceneNode:
    if PurePosixPath(source).suffix.lower() in IMAGE_SUFFIXES:
        return parse_image(data, source)
    return parse_glb(data, source)


# ── Loader ───────────────────────────────────────────────────────────────────

class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn: Callable, /, *args, **kwargs) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except BaseException as e:
            future.set_exception(e)
        return future


class AssetLoader:
    """Fetches and parses assets; parsed templates are cached, callers get clones."""

    def __init__(self, source: AssetSource, executor: Optional[Executor] = None):
        self.source = source
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="asset-loader")
        self._cache: Dict[str, SceneNode] = {}
        self._lock = threading.Lock()

    def _template(self, path: str) -> SceneNode:
        with self._lock:
            cached = self._cache.get(path)
        if cached is not None:
            return cached
        root = parse_asset(self.source.read(path), path)
        with self._lock:
            self._cache.setdefault(path, root)
        log.info("Loaded asset %s (%d nodes, %d clips)",
                 path, sum(1 for _ in root.traverse()) - 1, len(root.animations))
        return root

    def load_now(self, path: str) -> SceneNode:
        return self._template(path).clone()

    def load(self, path: str) -> Future:
        return self._executor.submit(self.load_now, path)

    def invalidate(self, path: Optional[str] = None) -> None:
        with self._lock:
            if path is None:
                self._cache.clear()
            else:
                self._cache.pop(path, None)

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def __enter__(self) -> "AssetLoader":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
