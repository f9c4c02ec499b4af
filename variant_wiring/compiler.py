"""State propagation compiler.

Given an interaction and the current values of a group's instances, works out
what every instance must be set to when any one of them is clicked.

Resolution for a sibling ``j`` of the clicked instance, first match wins:

1. a rule whose condition equals ``j``'s current value;
2. the main reset rule (the rule whose condition equals the primary value);
3. ``j``'s original value.

The clicked instance always takes the primary value. Rules whose condition or
action does not parse, or whose action names another property, are inert.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from variant_wiring.types import (
    RESET_TO_INITIAL,
    ConditionalRule,
    Interaction,
    NestedAction,
    PropertyValue,
    TargetTable,
)


@dataclass(frozen=True)
class _Reset:
    """Parsed rule action that restores the captured original."""


_RESET = _Reset()
_Action = PropertyValue | _Reset


@dataclass(frozen=True)
class RuleSet:
    """Conditional rules parsed against one primary property.

    ``by_condition`` maps a condition value to its action. ``main_reset`` is the
    action of the rule whose condition equals the primary value, if any.
    """

    by_condition: dict[str, _Action]
    main_reset: _Action | None


def _parse_action(text: str, prop: str, reset_token: str) -> _Action | None:
    if text == reset_token:
        return _RESET
    parsed = PropertyValue.parse(text)
    if parsed is None or not parsed.matches(prop):
        return None
    return parsed


def build_rule_set(
    rules: Sequence[ConditionalRule],
    primary: PropertyValue,
    reset_token: str = RESET_TO_INITIAL,
) -> RuleSet:
    """Index rules by condition value. Later rules override earlier ones."""
    by_condition: dict[str, _Action] = {}
    main_reset: _Action | None = None
    for rule in rules:
        condition = PropertyValue.parse(rule.condition)
        if condition is None or not condition.matches(primary.property):
            continue
        action = _parse_action(rule.action, primary.property, reset_token)
        if action is None:
            continue
        by_condition[condition.value] = action
        if condition.value == primary.value:
            main_reset = action
    return RuleSet(by_condition, main_reset)


def _apply(action: _Action, original: str) -> str:
    if isinstance(action, _Reset):
        return original
    return action.value


def resolve_sibling(rules: RuleSet, current: str, original: str) -> str:
    """Target value for one non-clicked instance."""
    action = rules.by_condition.get(current)
    if action is not None:
        return _apply(action, original)
    if rules.main_reset is not None:
        return _apply(rules.main_reset, original)
    return original


def compile_targets(
    interaction: Interaction,
    primary: PropertyValue,
    originals: Sequence[str],
    currents: Sequence[str] | None = None,
    reset_token: str = RESET_TO_INITIAL,
) -> TargetTable:
    """Compile the full target table for a group.

    Args:
        interaction: The authored interaction. Only its rules are read here.
        primary: The primary transition with the canonical property name.
        originals: Each instance's value captured before any mutation.
        currents: Each instance's value at compile time. Defaults to
            ``originals``.
        reset_token: Action string meaning "restore the original".

    Raises:
        ValueError: If ``currents`` and ``originals`` differ in length.
    """
    if currents is None:
        currents = originals
    if len(currents) != len(originals):
        raise ValueError(
            f"Got {len(currents)} current values for {len(originals)} instances"
        )

    rules = build_rule_set(interaction.conditional_rules, primary, reset_token)
    siblings = [
        resolve_sibling(rules, current, original)
        for current, original in zip(currents, originals)
    ]

    rows = []
    for i in range(len(originals)):
        row = list(siblings)
        row[i] = primary.value
        rows.append(tuple(row))
    return TargetTable(primary.property, tuple(rows))


def nested_interaction(parent: Interaction, nested: NestedAction) -> Interaction:
    """Synthetic single-transition interaction driving another group.

    The id starts with the parent's id so retiring the parent retires it too.
    """
    return Interaction(
        id=f"{parent.id}_nested_{nested.target_group_id}",
        group_id=nested.target_group_id,
        primary_action=nested.action,
    )
