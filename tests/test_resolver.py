"""Tests for variant_wiring.resolver — variant property resolution."""
from __future__ import annotations

from variant_wiring import InstanceRef, resolve_variant_property
from variant_wiring.host import PropertyDefinition

TABS = [InstanceRef("tab-0"), InstanceRef("tab-1"), InstanceRef("tab-2")]


async def test_case_insensitive_match_returns_canonical_name(scene) -> None:
    resolved = await resolve_variant_property(scene, "state", TABS)
    assert resolved.name == "State"
    assert resolved.is_variant
    assert resolved.ok


async def test_exact_match(scene) -> None:
    assert (await resolve_variant_property(scene, "State", TABS)).name == "State"


async def test_non_variant_property_is_not_applicable(scene) -> None:
    resolved = await resolve_variant_property(scene, "Label", TABS)
    assert resolved.name is None
    assert resolved.is_variant is False


async def test_unknown_property(scene) -> None:
    assert not (await resolve_variant_property(scene, "Size", TABS)).ok


async def test_empty_group(scene) -> None:
    assert not (await resolve_variant_property(scene, "State", [])).ok


async def test_standalone_component(scene) -> None:
    assert not (await resolve_variant_property(scene, "Glyph", [InstanceRef("icon")])).ok


async def test_unresolvable_instances_are_ignored(scene) -> None:
    scene.add_instance("ghost", "Ghost", "comp:deleted", {"State": "x"})
    refs = [InstanceRef("ghost"), *TABS]
    assert (await resolve_variant_property(scene, "state", refs)).name == "State"


async def test_every_variant_set_must_declare_property(scene) -> None:
    scene.add_variant_set("set:old-tab", "Tab (old)", {
        "Status": PropertyDefinition("VARIANT", ("on", "off")),
    })
    scene.add_component("comp:old-tab", "Status=on", "set:old-tab")
    scene.add_instance("old", "Old", "comp:old-tab", {"Status": "on"})
    refs = [*TABS, InstanceRef("old")]
    assert not (await resolve_variant_property(scene, "State", refs)).ok
