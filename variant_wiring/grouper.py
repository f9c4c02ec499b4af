"""Instance discovery and grouping by component family."""
from __future__ import annotations

import logging

from variant_wiring.host import SceneGraph
from variant_wiring.types import Group, InstanceRef

logger = logging.getLogger(__name__)

INSTANCE = "INSTANCE"
VARIANT = "VARIANT"


async def find_nested_instances(scene: SceneGraph, container_id: str) -> list[str]:
    """Return descendant instance ids of a container, container excluded.

    Depth-first, parents before children, siblings in scene order. Instances
    nested inside other instances are included.
    """
    root = await scene.node(container_id)
    if root is None:
        return []

    found: list[str] = []
    stack = list(reversed(root.children))
    while stack:
        node = await scene.node(stack.pop())
        if node is None:
            continue
        if node.kind == INSTANCE:
            found.append(node.id)
        stack.extend(reversed(node.children))
    return found


async def group_instances(scene: SceneGraph, instance_ids: list[str]) -> list[Group]:
    """Group instances by variant set, or by main component when standalone.

    Instances whose main component cannot be resolved are skipped. Groups are
    returned in the order their key was first seen.
    """
    groups: dict[str, Group] = {}

    for instance_id in instance_ids:
        component = await scene.main_component(instance_id)
        if component is None:
            logger.debug(f"Skipping {instance_id}: main component not found")
            continue

        variant_set = component.variant_set
        if variant_set is not None:
            key, name = variant_set.id, variant_set.name
        else:
            key, name = component.id, component.name

        group = groups.get(key)
        if group is None:
            group = groups[key] = Group(id=key, name=name)

        node = await scene.node(instance_id)
        group.instances.append(InstanceRef(instance_id, node.name if node else ""))

        if variant_set is None:
            continue
        props = await scene.instance_properties(instance_id)
        for prop in props:
            definition = variant_set.definitions.get(prop)
            if definition is not None and definition.kind == VARIANT:
                group.add_values(prop, definition.options)
            else:
                group.properties.setdefault(prop, [])

    return list(groups.values())
