"""Shared fixtures: a generated avatar GLB, in-memory asset sources and a manual executor."""

from concurrent.futures import Executor, Future

import pytest

from src.modules.m1_skeleton import build_skeleton
from src.modules.m2_mesh_builder import MeshStyle, build_avatar_mesh
from src.modules.m3_animation_baker import bake_clips
from src.modules.m4_asset_exporter import export_asset
from src.modules.m5_scene_runtime import AssetLoader, InlineExecutor, MemoryAssetSource
from src.modules.m6_equipment import build_placeholder_assets
from src.shared.constants import AVATAR_ASSET_PATH


class DeferredExecutor(Executor):
    """Queues work until run_all(), so tests control when loads complete."""

    def __init__(self):
        self.pending = []

    def submit(self, fn, /, *args, **kwargs) -> Future:
        future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run_all(self) -> None:
        while self.pending:
            future, fn, args, kwargs = self.pending.pop(0)
            try:
                future.set_result(fn(*args, **kwargs))
            except Exception as e:
                future.set_exception(e)


@pytest.fixture(scope="session")
def skeleton():
    return build_skeleton()


@pytest.fixture(scope="session")
def avatar_mesh(skeleton):
    return build_avatar_mesh(skeleton, MeshStyle().scaled(0.5))


@pytest.fixture(scope="session")
def clips(skeleton):
    return bake_clips(skeleton)


@pytest.fixture(scope="session")
def avatar_glb(skeleton, avatar_mesh, clips):
    return export_asset(avatar_mesh, skeleton, clips)


@pytest.fixture(scope="session")
def placeholder_assets():
    return build_placeholder_assets()


@pytest.fixture
def source(avatar_glb, placeholder_assets):
    src = MemoryAssetSource(placeholder_assets)
    src.put(AVATAR_ASSET_PATH, avatar_glb)
    return src


@pytest.fixture
def loader(source):
    with AssetLoader(source, executor=InlineExecutor()) as loader:
        yield loader


@pytest.fixture
def deferred():
    return DeferredExecutor()
