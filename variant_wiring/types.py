"""Core data types for interactions, groups, and compiled reactions."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

RESET_TO_INITIAL = "RESET_TO_INITIAL"


def new_interaction_id(group_id: str, now_ms: int | None = None) -> str:
    """``<group_id>_<milliseconds>``. The timestamp keeps ids prefix-distinct."""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f"{group_id}_{now_ms}"


class WiringError(Exception):
    """Base class for errors raised by variant-wiring."""


class SelectionError(WiringError):
    """Raised when the current selection cannot be analyzed."""


class PipelineBusyError(WiringError):
    """Raised when an authoring run is requested while another is in flight."""


class UnknownGroupError(WiringError, KeyError):
    """Raised when an interaction names a group that is not in the context."""

    def __init__(self, group_id: str) -> None:
        self.group_id = group_id
        super().__init__(f"Unknown component group {group_id!r}")

    def __str__(self) -> str:
        return str(self.args[0])


class ProtocolError(WiringError, ValueError):
    """Raised on malformed message envelopes or payloads."""


@dataclass(frozen=True, slots=True)
class PropertyValue:
    """A parsed ``prop=value`` pair."""

    property: str
    value: str

    @classmethod
    def parse(cls, text: str | None) -> PropertyValue | None:
        """Split on the first ``=``. Returns None when there is no separator."""
        if not text or "=" not in text:
            return None
        prop, _, value = text.partition("=")
        return cls(prop, value)

    def matches(self, prop: str) -> bool:
        return self.property.lower() == prop.lower()

    def __str__(self) -> str:
        return f"{self.property}={self.value}"


@dataclass(frozen=True, slots=True)
class InstanceRef:
    id: str
    name: str = ""


@dataclass
class Group:
    """Instances sharing one component family (variant set or standalone)."""

    id: str
    name: str
    instances: list[InstanceRef] = field(default_factory=list)
    properties: dict[str, list[str]] = field(default_factory=dict)

    def add_values(self, prop: str, values: list[str] | tuple[str, ...]) -> None:
        known = self.properties.setdefault(prop, [])
        for value in values:
            if value not in known:
                known.append(value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "instances": [{"id": i.id, "name": i.name} for i in self.instances],
            "states": [],
            "properties": {k: list(v) for k, v in self.properties.items()},
        }


@dataclass(frozen=True)
class ConditionalRule:
    id: int
    condition: str
    action: str
    target_component: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "condition": self.condition,
            "action": self.action,
        }
        if self.target_component is not None:
            data["targetComponent"] = self.target_component
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConditionalRule:
        return cls(
            id=int(data.get("id", 0)),
            condition=str(data.get("condition") or ""),
            action=str(data.get("action") or ""),
            target_component=data.get("targetComponent"),
        )


@dataclass(frozen=True)
class NestedAction:
    """Drives a different group from the same activation."""

    target_group_id: str
    action: str

    def to_dict(self) -> dict[str, Any]:
        return {"targetGroupId": self.target_group_id, "action": self.action}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NestedAction:
        target = data.get("targetGroupId", data.get("componentId"))
        if not target:
            raise ProtocolError("Nested action is missing its target component")
        return cls(target_group_id=str(target), action=str(data.get("action") or ""))


@dataclass(frozen=True)
class Interaction:
    """One authored activation rule set for a group.

    Wire names follow the UI payload: ``component`` is the group id and
    ``primaryAction`` the ``prop=value`` primary transition.
    """

    id: str
    group_id: str
    primary_action: str
    conditional_rules: tuple[ConditionalRule, ...] = ()
    nested_actions: tuple[NestedAction, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "component": self.group_id,
            "primaryAction": self.primary_action,
            "conditionalRules": [r.to_dict() for r in self.conditional_rules],
        }
        if self.nested_actions:
            data["nestedActions"] = [n.to_dict() for n in self.nested_actions]
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Interaction:
        """Build from a UI payload or a stored record.

        Raises:
            ProtocolError: If a required field is missing or mistyped.
        """
        if not isinstance(data, dict):
            raise ProtocolError(
                f"Expected interaction object, got {type(data).__name__}"
            )
        for key in ("id", "component", "primaryAction"):
            if not data.get(key):
                raise ProtocolError(f"Interaction is missing {key!r}")
        rules = data.get("conditionalRules") or []
        nested = data.get("nestedActions") or []
        if not isinstance(rules, list) or not isinstance(nested, list):
            raise ProtocolError("conditionalRules and nestedActions must be lists")
        return cls(
            id=str(data["id"]),
            group_id=str(data["component"]),
            primary_action=str(data["primaryAction"]),
            conditional_rules=tuple(
                ConditionalRule.from_dict(r) for r in rules if isinstance(r, dict)
            ),
            nested_actions=tuple(
                NestedAction.from_dict(n) for n in nested if isinstance(n, dict)
            ),
        )


@dataclass(frozen=True, slots=True)
class SetVariable:
    """Assign ``value`` to a string variable."""

    variable_id: str
    value: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "SET_VARIABLE",
            "variableId": self.variable_id,
            "variableValue": {
                "resolvedType": "STRING",
                "type": "STRING",
                "value": self.value,
            },
        }


@dataclass(frozen=True)
class Reaction:
    """A click trigger and the effects it runs as one batch."""

    actions: tuple[SetVariable, ...] = ()
    trigger: str = "ON_CLICK"

    def variable_ids(self) -> list[str]:
        return [a.variable_id for a in self.actions]

    def to_dict(self) -> dict[str, Any]:
        return {
            "trigger": {"type": self.trigger},
            "actions": [a.to_dict() for a in self.actions],
        }


@dataclass(frozen=True)
class TargetTable:
    """Compiled targets. ``rows[i][j]`` is instance j's value when i is clicked."""

    property: str
    rows: tuple[tuple[str, ...], ...]

    def effects_for(self, index: int) -> list[tuple[int, str]]:
        """(instance index, value) pairs for a click on ``index``, self first."""
        row = self.rows[index]
        ordered = [(index, row[index])]
        ordered.extend((j, value) for j, value in enumerate(row) if j != index)
        return ordered
