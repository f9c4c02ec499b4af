"""Host protocols and the snapshot records that cross the host boundary."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from variant_wiring.types import Reaction


class HostError(Exception):
    """Exception raised by host operations (rejected bind, missing node, ...)."""


@dataclass(frozen=True)
class NodeInfo:
    """Read-only view of a scene node. ``kind`` uses host names, e.g. ``"INSTANCE"``."""

    id: str
    name: str
    kind: str
    children: tuple[str, ...] = ()


@dataclass(frozen=True)
class PropertyDefinition:
    kind: str  # "VARIANT", "TEXT", "BOOLEAN", ...
    options: tuple[str, ...] = ()


@dataclass(frozen=True)
class VariantSetInfo:
    id: str
    name: str
    definitions: dict[str, PropertyDefinition] = field(default_factory=dict)


@dataclass(frozen=True)
class ComponentInfo:
    """A main component. ``variant_set`` is None for standalone components."""

    id: str
    name: str
    variant_set: VariantSetInfo | None = None


@dataclass(frozen=True)
class VariableInfo:
    id: str
    name: str
    collection_id: str


@runtime_checkable
class SceneGraph(Protocol):
    """Scene queries and reaction storage.

    Every call may suspend. Implementations raise on failure; callers decide
    whether a failure is fatal.
    """

    async def selection(self) -> list[str]:
        ...

    async def node(self, node_id: str) -> NodeInfo | None:
        ...

    async def main_component(self, instance_id: str) -> ComponentInfo | None:
        """Resolve an instance's definition. None if it was deleted."""
        ...

    async def instance_properties(self, instance_id: str) -> dict[str, Any]:
        """Raw current property values, see ``extract_property_value``."""
        ...

    async def set_reactions(self, node_id: str, reactions: list[Reaction]) -> None:
        ...

    async def reactions(self, node_id: str) -> list[Reaction]:
        ...

    async def all_reactions(self) -> dict[str, list[Reaction]]:
        """Reactions of every node on the current page, keyed by node id."""
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class VariableStore(Protocol):
    """Typed variables grouped into named collections."""

    async def collections(self) -> dict[str, str]:
        """Map collection name to collection id."""
        ...

    async def create_collection(self, name: str) -> str:
        ...

    async def create_variable(
        self, name: str, collection_id: str, resolved_type: str
    ) -> str:
        ...

    async def set_value(self, variable_id: str, value: str | bool) -> None:
        ...

    async def bind_property(
        self, instance_id: str, prop: str, variable_id: str
    ) -> None:
        """Make the variable the live source of an instance property."""
        ...

    async def variables(self, collection_id: str) -> list[VariableInfo]:
        ...

    async def remove_variable(self, variable_id: str) -> None:
        ...


@runtime_checkable
class ClientStorage(Protocol):
    """Persistent key-value storage private to the plugin."""

    async def get(self, key: str) -> str | None:
        ...

    async def set(self, key: str, value: str) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


@dataclass(frozen=True)
class Host:
    """The three host collaborators a session talks to."""

    scene: SceneGraph
    variables: VariableStore
    storage: ClientStorage


def extract_property_value(raw: Any) -> str:
    """Normalize a raw host property value to a string.

    Hosts report values either as plain strings or as objects carrying a
    ``value`` (or, failing that, ``name``) field.
    """
    if isinstance(raw, str):
        return raw
    if isinstance(raw, dict):
        if "value" in raw:
            return str(raw["value"])
        if "name" in raw:
            return str(raw["name"])
        return str(raw)
    for attr in ("value", "name"):
        if hasattr(raw, attr):
            return str(getattr(raw, attr))
    return "" if raw is None else str(raw)
