"""Tab bar -- variant-wiring end to end against the in-memory host.

A card holds three tabs (Tab variant set, ``State`` = default/hover/active).
The script authors "clicking a tab makes it active; a hovered sibling goes
back to how it started", clicks each tab in turn, and prints the row.

Demonstrates:
- Building a scene with MemoryScene
- Driving a Session through the JSON message protocol
- Inspecting compiled reactions and cleaning up orphaned variables

Run: python -m examples.tabs_demo
"""
from __future__ import annotations

import asyncio
import json
import logging

from variant_wiring import RESET_TO_INITIAL, MemoryScene, Session, memory_host, new_interaction_id
from variant_wiring.host import PropertyDefinition
from variant_wiring.protocol import Envelope

STATES = ("default", "hover", "active")


def build_scene() -> MemoryScene:
    scene = MemoryScene()
    scene.add_variant_set("set:tab", "Tab", {"State": PropertyDefinition("VARIANT", STATES)})
    for state in STATES:
        scene.add_component(f"comp:tab-{state}", f"State={state}", "set:tab")
    scene.add_component("comp:card", "Card")

    scene.add_instance("card", "Card", "comp:card")
    for i, state in enumerate(("default", "hover", "default")):
        scene.add_instance(f"tab-{i}", f"Tab {i + 1}", f"comp:tab-{state}", {"State": state}, parent="card")
    scene.select("card")
    return scene


def show(envelope: Envelope) -> None:
    text = envelope.message or json.dumps(envelope.data)[:100]
    print(f"  <- {envelope.type}: {text}")


def row(scene: MemoryScene) -> str:
    return " | ".join(f"{scene.value_of(f'tab-{i}', 'State'):>7}" for i in range(3))


async def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    print("=== Tab bar ===\n")

    scene = build_scene()
    session = Session(memory_host(scene))
    session.outbox.subscribe(show)

    await session.dispatch({"type": "init"})
    await session.dispatch(
        {
            "type": "create-interaction",
            "data": {
                "id": new_interaction_id("set:tab"),
                "component": "set:tab",
                "primaryAction": "state=active",
                "conditionalRules": [
                    {"id": 1, "condition": "state=hover", "action": RESET_TO_INITIAL},
                ],
            },
        }
    )

    print(f"\n  start    {row(scene)}")
    for i in range(3):
        scene.click(f"tab-{i}")
        print(f"  click {i + 1}  {row(scene)}")

    print()
    await session.dispatch({"type": "cleanup"})
    print(f"\nDone. {len(scene.variable_names())} state variables in use.")


if __name__ == "__main__":
    asyncio.run(main())
