"""Turns compiled target tables into host variables and click reactions."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from variant_wiring.host import SceneGraph, VariableStore
from variant_wiring.types import (
    Group,
    Interaction,
    Reaction,
    SetVariable,
    TargetTable,
)

logger = logging.getLogger(__name__)

STRING = "STRING"
BOOLEAN = "BOOLEAN"


@dataclass
class Bindings:
    """Variables created for one interaction, one slot per group instance.

    ``variable_ids[i]`` is None when the variable for instance ``i`` could not
    be created.
    """

    variable_ids: list[str | None] = field(default_factory=list)
    bound: list[bool] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return all(v is None for v in self.variable_ids)


def instance_variable_name(interaction_id: str, index: int, prop: str) -> str:
    return f"{interaction_id}_instance_{index}_{prop}"


async def ensure_collection(variables: VariableStore, name: str) -> str:
    """Return the id of the named collection, creating it if missing."""
    existing = await variables.collections()
    if name in existing:
        return existing[name]
    return await variables.create_collection(name)


async def create_marker_variables(
    variables: VariableStore, collection_id: str, interaction: Interaction
) -> list[str]:
    """Create the boolean ``_primary`` and ``_conditional_<n>`` variables."""
    names = [f"{interaction.id}_primary"]
    names.extend(
        f"{interaction.id}_conditional_{n}"
        for n in range(len(interaction.conditional_rules))
    )
    created = []
    for name in names:
        var_id = await variables.create_variable(name, collection_id, BOOLEAN)
        await variables.set_value(var_id, False)
        created.append(var_id)
    return created


async def bind_state_variables(
    variables: VariableStore,
    collection_id: str,
    interaction: Interaction,
    group: Group,
    prop: str,
    authored_prop: str,
    originals: list[str],
) -> Bindings:
    """Create one string variable per instance, seeded and bound.

    A failed bind leaves that instance on its static value; the variable is
    still created so reactions can address it.
    """
    result = Bindings()
    for i, ref in enumerate(group.instances):
        name = instance_variable_name(interaction.id, i, authored_prop)
        try:
            var_id = await variables.create_variable(name, collection_id, STRING)
            await variables.set_value(var_id, originals[i])
        except Exception:
            logger.error(f"Failed to create variable {name}", exc_info=True)
            result.variable_ids.append(None)
            result.bound.append(False)
            continue
        result.variable_ids.append(var_id)
        try:
            await variables.bind_property(ref.id, prop, var_id)
        except Exception:
            logger.error(
                f"Failed to bind variable to instance {i + 1} ({ref.id})",
                exc_info=True,
            )
            result.bound.append(False)
        else:
            result.bound.append(True)
    return result


def build_reactions(table: TargetTable | None, bindings: Bindings | None, count: int) -> list[Reaction]:
    """One click reaction per instance. Inert when there is nothing to assign.

    Effects addressing an instance whose variable was never created are
    dropped.
    """
    if table is None or bindings is None or bindings.empty:
        return [Reaction() for _ in range(count)]
    reactions = []
    for i in range(count):
        actions = []
        for j, value in table.effects_for(i):
            var_id = bindings.variable_ids[j]
            if var_id is not None:
                actions.append(SetVariable(var_id, value))
        reactions.append(Reaction(tuple(actions)))
    return reactions


async def install_reactions(
    scene: SceneGraph, group: Group, reactions: list[Reaction]
) -> int:
    """Clear reactions on every instance, then install the new ones.

    All clears finish before the first install. Returns the number of
    instances that received their reaction.
    """
    for i, ref in enumerate(group.instances):
        try:
            await scene.set_reactions(ref.id, [])
        except Exception:
            logger.error(f"Failed to clear reactions on instance {i + 1}", exc_info=True)

    installed = 0
    for ref, reaction in zip(group.instances, reactions):
        try:
            await scene.set_reactions(ref.id, [reaction])
        except Exception:
            logger.error(f"Failed to apply reaction to {ref.name or ref.id}", exc_info=True)
        else:
            installed += 1
    return installed
