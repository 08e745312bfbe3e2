"""Scene entities: own a loaded model, dispatch load events, host components.

Everything that touches the scene graph runs on the thread that created the
entity.  Loads finishing on a loader worker are queued and run by
``process_pending`` (called from ``tick`` and ``wait_loaded``).
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from concurrent.futures import Future
from typing import Any, Callable, Dict, List, Optional, Union

from .components import Component, ComponentRegistry, parse_attributes
from .loader import AssetLoader
from .scene_graph import SceneNode

log = logging.getLogger(__name__)

MODEL_LOADED = "model-loaded"
MODEL_ERROR = "model-error"

_POLL_SECONDS = 0.05


class Entity:
    """Owner of one model subtree.  Nothing is shared across entities."""

    def __init__(self, name: str, registry: Optional[ComponentRegistry] = None):
        self.name = name
        self.registry = registry or ComponentRegistry()
        self.object3d: Optional[SceneNode] = None
        self.model_path: Optional[str] = None
        self.parent: Optional[Entity] = None
        self.children: List[Entity] = []
        self.components: Dict[str, Component] = {}
        self._listeners: Dict[str, List[Callable[..., Any]]] = {}
        self._loaded: Optional[Future] = None
        self._torn_down = False
        self._owner = threading.get_ident()
        self._pending: "queue.SimpleQueue[Callable[[], None]]" = queue.SimpleQueue()

    def __repr__(self) -> str:
        state = "torn-down" if self._torn_down else ("loaded" if self.is_loaded else "empty")
        return f"<Entity {self.name!r} {state}>"

    @property
    def is_loaded(self) -> bool:
        return self.object3d is not None

    @property
    def is_torn_down(self) -> bool:
        return self._torn_down

    # ── hierarchy ────────────────────────────────────────────────────────

    def append_child(self, child: "Entity") -> "Entity":
        if child.parent is not None:
            child.parent.children.remove(child)
        child.parent = self
        self.children.append(child)
        return child

    # ── events ───────────────────────────────────────────────────────────

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        self._listeners.setdefault(event, []).append(handler)

    def off(self, event: str, handler: Callable[..., Any]) -> None:
        handlers = self._listeners.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: str, *args: Any) -> None:
        for handler in list(self._listeners.get(event, [])):
            handler(*args)

    # ── owner-thread dispatch ────────────────────────────────────────────

    def _post(self, fn: Callable[[], None]) -> None:
        if threading.get_ident() == self._owner:
            fn()
        else:
            self._pending.put(fn)

    def process_pending(self, timeout: Optional[float] = None) -> int:
        """Run queued load completions on the calling thread; returns how many ran.

        With *timeout*, blocks up to that long for the first one.
        """
        ran = 0
        block = timeout is not None
        while True:
            try:
                fn = self._pending.get(timeout=timeout) if block else self._pending.get_nowait()
            except queue.Empty:
                return ran
            block = False
            fn()
            ran += 1

    # ── model loading ────────────────────────────────────────────────────

    def load_model(self, loader: AssetLoader, path: str) -> Future:
        """Start loading *path*.  The returned future resolves after model-loaded handlers ran."""
        if self._torn_down:
            raise RuntimeError(f"Entity {self.name!r} has been torn down")
        self.model_path = path
        done: Future = Future()
        self._loaded = done
        loader.load(path).add_done_callback(
            lambda f: self._post(lambda: self._on_load_done(path, f, done)))
        return done

    def set_model(self, root: SceneNode) -> None:
        """Install an already-parsed model and fire model-loaded synchronously."""
        done: Future = Future()
        self._loaded = done
        self._complete(root, done)

    def _on_load_done(self, path: str, pending: Future, done: Future) -> None:
        if self._torn_down or done is not self._loaded:
            log.debug("Dropping load of %s for %r (torn down or superseded)", path, self.name)
            done.cancel()
            return
        error = pending.exception()
        if error is not None:
            log.error("Model load failed for %r: %s", self.name, error)
            self.emit(MODEL_ERROR, error)
            done.set_exception(error)
            return
        self._complete(pending.result(), done)

    def _complete(self, root: SceneNode, done: Future) -> None:
        previous = self.object3d
        if previous is not None:
            previous.detach()
        self.object3d = root
        log.info("%s loaded for %r", self.model_path or root.name, self.name)
        try:
            self.emit(MODEL_LOADED, root)
        except Exception as e:
            log.exception("model-loaded handler failed on %r", self.name)
            done.set_exception(e)
            return
        done.set_result(root)

    def when_loaded(self) -> Future:
        if self._loaded is None:
            raise RuntimeError(f"Entity {self.name!r} has no model load in progress")
        return self._loaded

    def wait_loaded(self, timeout: Optional[float] = None) -> SceneNode:
        """Pump load completions on this thread until the current load finishes."""
        done = self.when_loaded()
        deadline = None if timeout is None else time.monotonic() + timeout
        while not done.done():
            wait = _POLL_SECONDS
            if deadline is not None:
                wait = min(wait, deadline - time.monotonic())
                if wait <= 0:
                    raise TimeoutError(f"Model for {self.name!r} not loaded within {timeout}s")
            self.process_pending(timeout=wait)
        return done.result()

    def require_model(self) -> SceneNode:
        if self.object3d is None:
            raise RuntimeError(f"Entity {self.name!r} has no loaded model; wait for {MODEL_LOADED}")
        return self.object3d

    # ── components ───────────────────────────────────────────────────────

    def set_attribute(self, name: str, value: Union[str, Dict[str, Any], None] = None) -> Component:
        cls = self.registry.get(name)
        component = self.components.get(name)
        if component is None:
            component = cls(self, parse_attributes(cls.schema, value))
            self.components[name] = component
            component.init()
            component.update({})
        else:
            old = dict(component.data)
            component.data = {**component.data, **parse_attributes(cls.schema, value, partial=True)}
            component.update(old)
        return component

    def remove_attribute(self, name: str) -> None:
        component = self.components.pop(name, None)
        if component is not None:
            component.remove()

    def tick(self, dt: float) -> None:
        """Deliver finished loads, then advance components and child entities."""
        self.process_pending()
        for component in list(self.components.values()):
            component.tick(dt)
        for child in list(self.children):
            child.tick(dt)

    def teardown(self) -> None:
        """Remove components and model; later load completions become no-ops."""
        for child in list(self.children):
            child.teardown()
        for name in list(self.components):
            self.remove_attribute(name)
        if self.object3d is not None:
            self.object3d.detach()
            self.object3d = None
        self._listeners.clear()
        self._torn_down = True
        # queued completions now only cancel their futures
        self.process_pending()
        log.debug("Entity %r torn down", self.name)
