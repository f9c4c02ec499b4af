"""Variant property resolution for a group."""
from __future__ import annotations

from dataclasses import dataclass

from variant_wiring.grouper import VARIANT
from variant_wiring.host import SceneGraph, VariantSetInfo
from variant_wiring.types import InstanceRef


@dataclass(frozen=True)
class ResolvedProperty:
    name: str | None
    is_variant: bool

    @property
    def ok(self) -> bool:
        return self.is_variant and self.name is not None


NOT_APPLICABLE = ResolvedProperty(None, False)


def _match(variant_set: VariantSetInfo, candidate: str) -> str | None:
    wanted = candidate.lower()
    for name, definition in variant_set.definitions.items():
        if definition.kind == VARIANT and name.lower() == wanted:
            return name
    return None


async def resolve_variant_property(
    scene: SceneGraph, candidate: str, instances: list[InstanceRef]
) -> ResolvedProperty:
    """Resolve a user-typed property name to the family's variant property.

    Matching is case-insensitive and returns the declared casing. Every
    distinct variant set among the resolvable instances must declare the
    property as a variant; a standalone component anywhere in the group
    makes the property not applicable.
    """
    if not instances or not candidate:
        return NOT_APPLICABLE

    canonical: str | None = None
    seen: set[str] = set()
    for ref in instances:
        component = await scene.main_component(ref.id)
        if component is None:
            continue
        variant_set = component.variant_set
        if variant_set is None:
            return NOT_APPLICABLE
        if variant_set.id in seen:
            continue
        seen.add(variant_set.id)
        name = _match(variant_set, candidate)
        if name is None:
            return NOT_APPLICABLE
        if canonical is None:
            canonical = name

    if canonical is None:
        return NOT_APPLICABLE
    return ResolvedProperty(canonical, True)
