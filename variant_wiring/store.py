"""InteractionStore: persisted interactions and managed-variable cleanup."""
from __future__ import annotations

import json
import logging
from typing import Iterable

from variant_wiring.config import WiringConfig
from variant_wiring.host import ClientStorage, SceneGraph, VariableStore
from variant_wiring.types import Group, Interaction, ProtocolError

logger = logging.getLogger(__name__)


class InteractionStore:
    """One live interaction per group, keyed by group id.

    Storage failures are logged and swallowed: scene state and persisted state
    may diverge, and the caller carries on with synthesis.
    """

    def __init__(
        self,
        scene: SceneGraph,
        variables: VariableStore,
        storage: ClientStorage,
        config: WiringConfig | None = None,
    ) -> None:
        self.config: WiringConfig = config if config is not None else WiringConfig()
        self._scene = scene
        self._variables = variables
        self._storage = storage
        self._records: dict[str, Interaction] = {}

    async def _collection_id(self) -> str | None:
        return (await self._variables.collections()).get(self.config.collection_name)

    async def retire(self, interaction_id: str) -> int:
        """Remove every managed variable owned by an interaction id.

        Ownership is by name prefix ``<interaction_id>_``, which also covers
        nested interactions. Records of nested interactions on other groups
        are dropped, and any reaction that set a removed variable is cleared.
        Returns the number of variables removed.
        """
        prefix = f"{interaction_id}_"
        for group_id, record in list(self._records.items()):
            if record.id.startswith(prefix):
                await self._drop(group_id)

        collection_id = await self._collection_id()
        if collection_id is None:
            return 0
        removed: set[str] = set()
        for var in await self._variables.variables(collection_id):
            if not var.name.startswith(prefix):
                continue
            try:
                await self._variables.remove_variable(var.id)
            except Exception:
                logger.error(f"Failed to remove variable {var.name}", exc_info=True)
            else:
                removed.add(var.id)
        if removed:
            await self._detach(removed)
        return len(removed)

    async def _detach(self, variable_ids: set[str]) -> None:
        """Clear reactions on every node that still sets one of these variables."""
        for node_id, reactions in (await self._scene.all_reactions()).items():
            if not any(variable_ids.intersection(r.variable_ids()) for r in reactions):
                continue
            try:
                await self._scene.set_reactions(node_id, [])
            except Exception:
                logger.error(f"Failed to clear reactions on {node_id}", exc_info=True)

    async def _drop(self, group_id: str) -> None:
        self._records.pop(group_id, None)
        try:
            await self._storage.delete(self.config.storage_key(group_id))
        except Exception:
            logger.error(f"Error deleting interaction record for {group_id}", exc_info=True)

    async def put(self, interaction: Interaction) -> None:
        """Retire the group's previous interaction, then persist this one.

        Re-putting the same id retires its own variables too, so a recreate
        always starts from a clean namespace.
        """
        previous = await self.get(interaction.group_id)
        if previous is not None and previous.id != interaction.id:
            removed = await self.retire(previous.id)
            logger.debug(f"Retired {previous.id}: {removed} variables removed")
        await self.retire(interaction.id)

        self._records[interaction.group_id] = interaction
        try:
            await self._storage.set(
                self.config.storage_key(interaction.group_id),
                json.dumps(interaction.to_dict()),
            )
        except Exception:
            logger.error("Error storing interaction data", exc_info=True)

    async def get(self, group_id: str) -> Interaction | None:
        """Last interaction for a group: in-memory first, then persisted."""
        record = self._records.get(group_id)
        if record is not None:
            return record
        try:
            stored = await self._storage.get(self.config.storage_key(group_id))
        except Exception:
            logger.error("Error retrieving interaction data", exc_info=True)
            return None
        if not stored:
            return None
        try:
            interaction = Interaction.from_dict(json.loads(stored))
        except (json.JSONDecodeError, ProtocolError):
            logger.error(f"Discarding unreadable interaction record for {group_id}", exc_info=True)
            return None
        self._records[group_id] = interaction
        return interaction

    async def existing(self, groups: Iterable[Group]) -> dict[str, Interaction]:
        """Stored interactions for the given groups, keyed by group id."""
        found: dict[str, Interaction] = {}
        for group in groups:
            interaction = await self.get(group.id)
            if interaction is not None:
                found[group.id] = interaction
        return found

    async def sweep(self) -> int:
        """Delete managed variables that no reaction on the page references.

        Returns the number of variables removed.
        """
        collection_id = await self._collection_id()
        if collection_id is None:
            return 0
        managed = await self._variables.variables(collection_id)
        if not managed:
            return 0

        in_use: set[str] = set()
        for reactions in (await self._scene.all_reactions()).values():
            for reaction in reactions:
                in_use.update(reaction.variable_ids())

        removed = 0
        for var in managed:
            if var.id in in_use:
                continue
            try:
                await self._variables.remove_variable(var.id)
            except Exception:
                logger.error(f"Failed to remove variable {var.name!r}", exc_info=True)
            else:
                removed += 1
        logger.info(f"Removed {removed} orphaned variables")
        return removed

    async def purge_all(self, group_ids: Iterable[str]) -> None:
        """Delete persisted records. Live variables and reactions are untouched."""
        try:
            for group_id in group_ids:
                self._records.pop(group_id, None)
                await self._storage.delete(self.config.storage_key(group_id))
        except Exception:
            logger.error("Error cleaning up stored interactions", exc_info=True)
