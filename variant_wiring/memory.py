"""In-memory host for tests, demos, and offline runs.

Conforms to the SceneGraph, VariableStore, and ClientStorage protocols.
Deterministic: ids are sequential and iteration follows insertion order.
Supports failure injection per node so partial-failure paths can be driven.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from variant_wiring.host import (
    ComponentInfo,
    Host,
    HostError,
    NodeInfo,
    PropertyDefinition,
    VariableInfo,
    VariantSetInfo,
    extract_property_value,
)
from variant_wiring.types import Reaction


@dataclass
class _Node:
    id: str
    name: str
    kind: str
    children: list[str] = field(default_factory=list)
    component_id: str | None = None
    properties: dict[str, Any] = field(default_factory=dict)
    bindings: dict[str, str] = field(default_factory=dict)
    reactions: list[Reaction] = field(default_factory=list)


@dataclass
class _Variable:
    id: str
    name: str
    collection_id: str
    resolved_type: str
    value: str | bool | None = None


class MemoryScene:
    """Scene graph and variable store backed by plain dicts.

    Args:
        reject_bind: Instance ids whose property binding raises HostError.
        reject_reactions: Node ids whose ``set_reactions`` raises HostError.
    """

    def __init__(
        self,
        reject_bind: set[str] | None = None,
        reject_reactions: set[str] | None = None,
    ) -> None:
        self.reject_bind: set[str] = set(reject_bind or ())
        self.reject_reactions: set[str] = set(reject_reactions or ())
        self.closed: bool = False
        self._nodes: dict[str, _Node] = {}
        self._roots: list[str] = []
        self._selection: list[str] = []
        self._components: dict[str, tuple[str, str | None]] = {}
        self._variant_sets: dict[str, VariantSetInfo] = {}
        self._collections: dict[str, str] = {}
        self._variables: dict[str, _Variable] = {}
        self._next_id: int = 1

    def _new_id(self, prefix: str) -> str:
        nid = f"{prefix}:{self._next_id}"
        self._next_id += 1
        return nid

    # --- Scene construction ---

    def add_variant_set(
        self,
        set_id: str,
        name: str,
        definitions: dict[str, PropertyDefinition] | None = None,
    ) -> None:
        self._variant_sets[set_id] = VariantSetInfo(set_id, name, dict(definitions or {}))

    def add_component(
        self, component_id: str, name: str, variant_set_id: str | None = None
    ) -> None:
        self._components[component_id] = (name, variant_set_id)

    def remove_component(self, component_id: str) -> None:
        """Delete a main component. Instances of it stop resolving."""
        self._components.pop(component_id, None)

    def add_node(
        self,
        node_id: str,
        name: str,
        kind: str = "FRAME",
        parent: str | None = None,
        component_id: str | None = None,
        properties: dict[str, Any] | None = None,
    ) -> str:
        self._nodes[node_id] = _Node(
            node_id, name, kind,
            component_id=component_id,
            properties=dict(properties or {}),
        )
        if parent is None:
            self._roots.append(node_id)
        else:
            self._nodes[parent].children.append(node_id)
        return node_id

    def add_instance(
        self,
        node_id: str,
        name: str,
        component_id: str,
        properties: dict[str, Any] | None = None,
        parent: str | None = None,
    ) -> str:
        return self.add_node(
            node_id, name, "INSTANCE", parent,
            component_id=component_id, properties=properties,
        )

    def select(self, *node_ids: str) -> None:
        self._selection = list(node_ids)

    def set_property(self, node_id: str, prop: str, value: Any) -> None:
        """Overwrite a static property value and drop any binding on it."""
        node = self._nodes[node_id]
        node.properties[prop] = value
        node.bindings.pop(prop, None)

    # --- SceneGraph ---

    async def selection(self) -> list[str]:
        return list(self._selection)

    async def node(self, node_id: str) -> NodeInfo | None:
        node = self._nodes.get(node_id)
        if node is None:
            return None
        return NodeInfo(node.id, node.name, node.kind, tuple(node.children))

    async def main_component(self, instance_id: str) -> ComponentInfo | None:
        node = self._nodes.get(instance_id)
        if node is None or node.component_id is None:
            return None
        entry = self._components.get(node.component_id)
        if entry is None:
            return None
        name, set_id = entry
        variant_set = self._variant_sets.get(set_id) if set_id else None
        return ComponentInfo(node.component_id, name, variant_set)

    async def instance_properties(self, instance_id: str) -> dict[str, Any]:
        node = self._nodes.get(instance_id)
        if node is None:
            raise HostError(f"No node {instance_id!r}")
        values = dict(node.properties)
        for prop, var_id in node.bindings.items():
            var = self._variables.get(var_id)
            if var is not None and var.value is not None:
                values[prop] = var.value
        return values

    async def set_reactions(self, node_id: str, reactions: list[Reaction]) -> None:
        if node_id in self.reject_reactions:
            raise HostError(f"Node {node_id!r} rejected reactions")
        node = self._nodes.get(node_id)
        if node is None:
            raise HostError(f"No node {node_id!r}")
        node.reactions = list(reactions)

    async def reactions(self, node_id: str) -> list[Reaction]:
        node = self._nodes.get(node_id)
        return list(node.reactions) if node is not None else []

    async def all_reactions(self) -> dict[str, list[Reaction]]:
        return {nid: list(n.reactions) for nid, n in self._nodes.items() if n.reactions}

    async def close(self) -> None:
        self.closed = True

    # --- VariableStore ---

    async def collections(self) -> dict[str, str]:
        return dict(self._collections)

    async def create_collection(self, name: str) -> str:
        cid = self._new_id("VariableCollectionId")
        self._collections[name] = cid
        return cid

    async def create_variable(
        self, name: str, collection_id: str, resolved_type: str
    ) -> str:
        if collection_id not in self._collections.values():
            raise HostError(f"No collection {collection_id!r}")
        vid = self._new_id("VariableID")
        self._variables[vid] = _Variable(vid, name, collection_id, resolved_type)
        return vid

    async def set_value(self, variable_id: str, value: str | bool) -> None:
        var = self._variables.get(variable_id)
        if var is None:
            raise HostError(f"No variable {variable_id!r}")
        var.value = value

    async def bind_property(
        self, instance_id: str, prop: str, variable_id: str
    ) -> None:
        if instance_id in self.reject_bind:
            raise HostError(f"Instance {instance_id!r} rejected binding {prop!r}")
        node = self._nodes.get(instance_id)
        if node is None or prop not in node.properties:
            raise HostError(f"Instance {instance_id!r} has no property {prop!r}")
        if variable_id not in self._variables:
            raise HostError(f"No variable {variable_id!r}")
        node.bindings[prop] = variable_id

    async def variables(self, collection_id: str) -> list[VariableInfo]:
        return [
            VariableInfo(v.id, v.name, v.collection_id)
            for v in self._variables.values()
            if v.collection_id == collection_id
        ]

    async def remove_variable(self, variable_id: str) -> None:
        if self._variables.pop(variable_id, None) is None:
            raise HostError(f"No variable {variable_id!r}")
        for node in self._nodes.values():
            for prop in [p for p, v in node.bindings.items() if v == variable_id]:
                del node.bindings[prop]

    # --- Inspection helpers ---

    def variable_names(self) -> list[str]:
        return [v.name for v in self._variables.values()]

    def variable_value(self, variable_id: str) -> str | bool | None:
        return self._variables[variable_id].value

    def binding(self, instance_id: str, prop: str) -> str | None:
        return self._nodes[instance_id].bindings.get(prop)

    def value_of(self, instance_id: str, prop: str) -> str:
        """Current value of an instance property, following bindings."""
        node = self._nodes[instance_id]
        var_id = node.bindings.get(prop)
        var = self._variables.get(var_id) if var_id is not None else None
        if var is not None and var.value is not None:
            return extract_property_value(var.value)
        return extract_property_value(node.properties.get(prop))

    def click(self, node_id: str) -> None:
        """Run every click reaction on a node, all assignments as one batch."""
        pending: dict[str, str] = {}
        for reaction in self._nodes[node_id].reactions:
            if reaction.trigger != "ON_CLICK":
                continue
            for action in reaction.actions:
                pending[action.variable_id] = action.value
        for var_id, value in pending.items():
            if var_id in self._variables:
                self._variables[var_id].value = value


class MemoryStorage:
    """Dict-backed client storage. ``fail=True`` makes every call raise."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self._data: dict[str, str] = {}

    def _check(self) -> None:
        if self.fail:
            raise HostError("client storage unavailable")

    async def get(self, key: str) -> str | None:
        self._check()
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._check()
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._check()
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)

    def snapshot(self) -> dict[str, str]:
        return copy.deepcopy(self._data)


def memory_host(scene: MemoryScene | None = None, storage: MemoryStorage | None = None) -> Host:
    """Bundle a MemoryScene (as scene and variable store) with MemoryStorage."""
    scene = scene if scene is not None else MemoryScene()
    return Host(
        scene=scene,
        variables=scene,
        storage=storage if storage is not None else MemoryStorage(),
    )
