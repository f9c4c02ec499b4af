"""Pipeline runs: selection analysis and interaction authoring.

Grouper -> Resolver -> Compiler -> Synthesizer -> Store. State shared between
runs lives on an explicit ``PipelineContext``; nothing is module-global.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

from variant_wiring.compiler import compile_targets, nested_interaction
from variant_wiring.config import WiringConfig
from variant_wiring.grouper import INSTANCE, find_nested_instances, group_instances
from variant_wiring.host import Host, extract_property_value
from variant_wiring.resolver import resolve_variant_property
from variant_wiring.store import InteractionStore
from variant_wiring.synthesizer import (
    Bindings,
    bind_state_variables,
    build_reactions,
    create_marker_variables,
    ensure_collection,
    install_reactions,
)
from variant_wiring.types import (
    Group,
    Interaction,
    PipelineBusyError,
    PropertyValue,
    ProtocolError,
    SelectionError,
    TargetTable,
    UnknownGroupError,
)

logger = logging.getLogger(__name__)


class PipelineContext:
    """Request-scoped state: current groups and the single-flight guard."""

    def __init__(self) -> None:
        self.groups: list[Group] = []
        self.selected_name: str | None = None
        self._token: int = 0
        self._authoring: bool = False

    def begin_analysis(self) -> int:
        """Start a selection analysis. Earlier analyses become stale."""
        self._token += 1
        return self._token

    def is_current(self, token: int) -> bool:
        return token == self._token

    def commit(self, token: int, selected_name: str, groups: list[Group]) -> bool:
        """Store analysis results unless a newer analysis has started."""
        if not self.is_current(token):
            logger.debug(f"Dropping stale analysis {token} (current {self._token})")
            return False
        self.selected_name = selected_name
        self.groups = groups
        return True

    def group(self, group_id: str) -> Group:
        for group in self.groups:
            if group.id == group_id:
                return group
        raise UnknownGroupError(group_id)

    @property
    def busy(self) -> bool:
        return self._authoring

    @contextmanager
    def authoring(self) -> Iterator[None]:
        """Hold the authoring guard. Raises PipelineBusyError if already held."""
        if self._authoring:
            raise PipelineBusyError("Another interaction is still being created")
        self._authoring = True
        try:
            yield
        finally:
            self._authoring = False


@dataclass(frozen=True)
class Analysis:
    selected_name: str
    groups: list[Group]
    existing: dict[str, Interaction]
    current: bool = True


@dataclass
class CompileResult:
    """What one interaction (top-level or nested) produced on its group."""

    interaction_id: str
    group_id: str
    property: str | None
    table: TargetTable | None
    bindings: Bindings | None
    installed: int


@dataclass
class AuthoringResult:
    interaction: Interaction
    group: Group
    results: list[CompileResult] = field(default_factory=list)

    @property
    def main(self) -> CompileResult:
        return self.results[0]


async def analyze_selection(
    host: Host,
    ctx: PipelineContext,
    store: InteractionStore,
    config: WiringConfig,
    token: int | None = None,
) -> Analysis:
    """Group the instances nested in the selected instance.

    Callers that need to tell whether a failed run was already stale start
    the analysis themselves and pass the ``ctx.begin_analysis()`` token.

    Raises:
        SelectionError: Before any mutation, if the selection is unusable.
    """
    if token is None:
        token = ctx.begin_analysis()

    selection = await host.scene.selection()
    if len(selection) != 1:
        raise SelectionError("Please select exactly one component instance.")
    selected = await host.scene.node(selection[0])
    if selected is None or selected.kind != INSTANCE:
        raise SelectionError("Selected element must be a component instance.")

    nested = await find_nested_instances(host.scene, selected.id)
    if not nested:
        raise SelectionError("No nested component instances found in selection.")

    groups = await group_instances(host.scene, nested)
    await ensure_collection(host.variables, config.collection_name)
    existing = await store.existing(groups)

    current = ctx.commit(token, selected.name, groups)
    return Analysis(selected.name, groups, existing, current)


async def _read_values(host: Host, group: Group, prop: str) -> list[str]:
    values = []
    for ref in group.instances:
        try:
            props = await host.scene.instance_properties(ref.id)
        except Exception:
            logger.error(f"Failed to read {prop!r} on {ref.id}", exc_info=True)
            props = {}
        raw = props.get(prop)
        values.append(extract_property_value(raw) if raw else "")
    return values


async def apply_interaction(
    host: Host,
    collection_id: str,
    interaction: Interaction,
    group: Group,
    config: WiringConfig,
) -> CompileResult:
    """Compile an interaction against its group and install the result.

    Without a resolvable variant property every instance gets an inert click
    reaction.
    """
    table: TargetTable | None = None
    bindings: Bindings | None = None
    prop: str | None = None

    primary = PropertyValue.parse(interaction.primary_action)
    resolved = None
    if primary is not None:
        resolved = await resolve_variant_property(
            host.scene, primary.property, group.instances
        )
    if primary is not None and resolved is not None and resolved.ok:
        prop = resolved.name
        originals = await _read_values(host, group, prop)
        bindings = await bind_state_variables(
            host.variables, collection_id, interaction, group,
            prop, primary.property, originals,
        )
        currents = await _read_values(host, group, prop)
        table = compile_targets(
            interaction,
            PropertyValue(prop, primary.value),
            originals,
            currents,
            reset_token=config.reset_token,
        )
    else:
        logger.info(
            f"No variant property for {interaction.primary_action!r} on "
            f"{group.name}; installing inert reactions"
        )

    reactions = build_reactions(table, bindings, len(group.instances))
    installed = await install_reactions(host.scene, group, reactions)
    return CompileResult(interaction.id, group.id, prop, table, bindings, installed)


async def author_interaction(
    host: Host,
    ctx: PipelineContext,
    store: InteractionStore,
    interaction: Interaction,
    config: WiringConfig,
) -> AuthoringResult:
    """Retire, persist, compile, and install an interaction and its nested actions.

    Raises:
        PipelineBusyError: If another authoring run is in flight.
        UnknownGroupError: If the interaction's group is not in the context.
        ProtocolError: If the primary action is not ``prop=value``.
    """
    with ctx.authoring():
        group = ctx.group(interaction.group_id)
        if PropertyValue.parse(interaction.primary_action) is None:
            raise ProtocolError(
                f"Primary action {interaction.primary_action!r} must look like prop=value"
            )

        collection_id = await ensure_collection(host.variables, config.collection_name)
        await store.put(interaction)
        await create_marker_variables(host.variables, collection_id, interaction)

        result = AuthoringResult(interaction, group)
        result.results.append(
            await apply_interaction(host, collection_id, interaction, group, config)
        )

        for nested in interaction.nested_actions:
            try:
                target = ctx.group(nested.target_group_id)
            except UnknownGroupError:
                logger.warning(f"Nested action targets unknown group {nested.target_group_id}")
                continue
            if target.id == group.id:
                logger.warning(f"Nested action on {group.name} targets its own group; skipped")
                continue
            synthetic = nested_interaction(interaction, nested)
            # the target group's own interaction gives way to the nested one
            await store.put(synthetic)
            await create_marker_variables(host.variables, collection_id, synthetic)
            result.results.append(
                await apply_interaction(host, collection_id, synthetic, target, config)
            )
        return result
