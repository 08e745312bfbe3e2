"""Declarative, attribute-configured behaviours attachable to entities."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple, Type, Union

log = logging.getLogger(__name__)

# attribute name -> (type, default); types: "string", "number", "boolean", "array"
Schema = Dict[str, Tuple[str, Any]]


def _coerce(kind: str, raw: Any, key: str) -> Any:
    if kind == "string":
        return "" if raw is None else str(raw).strip()
    if kind == "number":
        try:
            return float(raw)
        except (TypeError, ValueError):
            raise ValueError(f"Attribute {key!r} expects a number, got {raw!r}") from None
    if kind == "boolean":
        if isinstance(raw, bool):
            return raw
        return str(raw).strip().lower() in ("true", "1", "yes", "on")
    if kind == "array":
        if isinstance(raw, (list, tuple)):
            return [str(v).strip() for v in raw if str(v).strip()]
        return [part.strip() for part in str(raw).split(",") if part.strip()]
    raise ValueError(f"Unknown schema type {kind!r} for {key!r}")


def split_attribute_string(value: str) -> Dict[str, str]:
    """"targetBone: LeftFoot; offsetY: 0.1" -> {"targetBone": "LeftFoot", "offsetY": "0.1"}"""
    pairs: Dict[str, str] = {}
    for chunk in value.split(";"):
        if not chunk.strip():
            continue
        key, sep, raw = chunk.partition(":")
        if not sep:
            raise ValueError(f"Malformed attribute segment: {chunk.strip()!r}")
        pairs[key.strip()] = raw.strip()
    return pairs


def parse_attributes(schema: Schema, value: Union[str, Dict[str, Any], None],
                     partial: bool = False) -> Dict[str, Any]:
    """Typed attribute values; defaults fill unset keys unless *partial*."""
    raw = split_attribute_string(value) if isinstance(value, str) else dict(value or {})
    unknown = set(raw) - set(schema)
    if unknown:
        raise ValueError(f"Unknown attributes: {sorted(unknown)}")
    data: Dict[str, Any] = {}
    for key, (kind, default) in schema.items():
        if key in raw:
            data[key] = _coerce(kind, raw[key], key)
        elif not partial:
            data[key] = list(default) if isinstance(default, list) else default
    return data


class Component:
    """Base behaviour.  Lifecycle: init() -> update(old) ... -> remove()."""

    schema: Schema = {}

    def __init__(self, entity, data: Dict[str, Any]):
        self.entity = entity
        self.data = data

    def init(self) -> None:
        pass

    def update(self, old_data: Dict[str, Any]) -> None:
        pass

    def tick(self, dt: float) -> None:
        pass

    def remove(self) -> None:
        pass


class ComponentRegistry:
    def __init__(self):
        self._components: Dict[str, Type[Component]] = {}

    def register(self, name: str, cls: Type[Component]) -> bool:
        """Register *cls* under *name*; re-registering an existing name is a no-op."""
        if name in self._components:
            log.debug("Component %r already registered", name)
            return False
        self._components[name] = cls
        return True

    def get(self, name: str) -> Type[Component]:
        try:
            return self._components[name]
        except KeyError:
            raise ValueError(f"Unknown component: {name}") from None

    def __contains__(self, name: str) -> bool:
        return name in self._components

    def names(self) -> List[str]:
        return sorted(self._components)
