"""Tests for variant_wiring.grouper — discovery and grouping."""
from __future__ import annotations

from variant_wiring import MemoryScene, find_nested_instances, group_instances
from variant_wiring.host import PropertyDefinition


async def test_nested_instances_exclude_container(scene) -> None:
    found = await find_nested_instances(scene, "card")
    assert "card" not in found
    assert found == ["tab-0", "tab-1", "tab-2", "icon"]


async def test_traversal_is_depth_first_parents_first() -> None:
    scene = MemoryScene()
    scene.add_component("c", "C")
    scene.add_instance("root", "Root", "c")
    scene.add_instance("a", "A", "c", parent="root")
    scene.add_instance("a1", "A1", "c", parent="a")
    scene.add_node("f", "F", parent="root")
    scene.add_instance("f1", "F1", "c", parent="f")
    scene.add_instance("b", "B", "c", parent="root")
    assert await find_nested_instances(scene, "root") == ["a", "a1", "f1", "b"]


async def test_unknown_container() -> None:
    assert await find_nested_instances(MemoryScene(), "missing") == []


async def test_groups_by_variant_set_then_component(scene) -> None:
    groups = await group_instances(scene, await find_nested_instances(scene, "card"))
    assert [g.id for g in groups] == ["set:tab", "comp:icon"]
    tabs, icon = groups
    assert tabs.name == "Tab"
    assert [i.id for i in tabs.instances] == ["tab-0", "tab-1", "tab-2"]
    assert [i.name for i in tabs.instances] == ["Tab 1", "Tab 2", "Tab 3"]
    assert icon.name == "Icon"
    assert [i.id for i in icon.instances] == ["icon"]


async def test_variant_values_and_non_variant_keys(scene) -> None:
    groups = await group_instances(scene, ["tab-0", "tab-1"])
    assert groups[0].properties == {
        "State": ["default", "hover", "active"],
        "Label": [],
    }


async def test_standalone_component_has_no_properties(scene) -> None:
    groups = await group_instances(scene, ["icon"])
    assert groups[0].properties == {}


async def test_unresolvable_instances_are_skipped(scene) -> None:
    scene.add_instance("ghost", "Ghost", "comp:deleted", {"State": "x"}, parent="row")
    groups = await group_instances(scene, ["ghost", "tab-0"])
    assert [g.id for g in groups] == ["set:tab"]
    assert [i.id for i in groups[0].instances] == ["tab-0"]


async def test_values_listed_once_per_group() -> None:
    scene = MemoryScene()
    scene.add_variant_set("vs", "Chip", {
        "Size": PropertyDefinition("VARIANT", ("sm", "md")),
    })
    scene.add_component("chip-sm", "Size=sm", "vs")
    scene.add_instance("x", "X", "chip-sm", {"Size": "sm"})
    scene.add_instance("y", "Y", "chip-sm", {"Size": "sm"})
    groups = await group_instances(scene, ["x", "y"])
    assert groups[0].properties == {"Size": ["sm", "md"]}
