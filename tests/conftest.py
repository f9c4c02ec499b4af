"""Shared scene builders for the variant-wiring test suite."""
from __future__ import annotations

import pytest

from variant_wiring import MemoryScene, MemoryStorage, WiringConfig, memory_host
from variant_wiring.host import PropertyDefinition

STATES = ("default", "hover", "active")


def build_tabs_scene(values: tuple[str, ...] = ("default", "hover", "default")) -> MemoryScene:
    """A selected ``card`` instance holding a row of tab instances and an icon.

    Layout::

        card (INSTANCE, selected)
          row (FRAME)
            tab-0 .. tab-n (Tab variant set, ``State`` property)
          icon (standalone Icon component)
    """
    scene = MemoryScene()
    scene.add_variant_set(
        "set:tab",
        "Tab",
        {
            "State": PropertyDefinition("VARIANT", STATES),
            "Label": PropertyDefinition("TEXT"),
        },
    )
    for value in STATES:
        scene.add_component(f"comp:tab-{value}", f"State={value}", "set:tab")
    scene.add_component("comp:icon", "Icon")
    scene.add_component("comp:card", "Card")

    scene.add_instance("card", "Card", "comp:card")
    scene.add_node("row", "Row", "FRAME", parent="card")
    for i, value in enumerate(values):
        scene.add_instance(
            f"tab-{i}",
            f"Tab {i + 1}",
            f"comp:tab-{value}",
            {"State": value, "Label": {"type": "TEXT", "value": f"Tab {i + 1}"}},
            parent="row",
        )
    scene.add_instance("icon", "Icon", "comp:icon", {"Glyph": "star"}, parent="card")
    scene.select("card")
    return scene


def add_dot_group(scene: MemoryScene, sizes: tuple[str, ...] = ("small", "small")) -> None:
    """Add a second variant group to ``card``: dots with a ``Size`` property."""
    scene.add_variant_set(
        "set:dot", "Dot", {"Size": PropertyDefinition("VARIANT", ("small", "large"))}
    )
    for size in ("small", "large"):
        scene.add_component(f"comp:dot-{size}", f"Size={size}", "set:dot")
    for i, size in enumerate(sizes):
        scene.add_instance(
            f"dot-{i}", f"Dot {i + 1}", f"comp:dot-{size}", {"Size": size}, parent="card"
        )


@pytest.fixture
def scene() -> MemoryScene:
    return build_tabs_scene()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def host(scene, storage):
    return memory_host(scene, storage)


@pytest.fixture
def config() -> WiringConfig:
    return WiringConfig()


@pytest.fixture
def make_scene():
    """Builder for tab scenes with custom starting values."""
    return build_tabs_scene


@pytest.fixture
def dots(scene) -> MemoryScene:
    """The default scene with a second variant group of two small dots."""
    add_dot_group(scene)
    return scene
