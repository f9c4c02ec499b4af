"""Tests for variant_wiring.types — parsing and wire conversion."""
from __future__ import annotations

import pytest

from variant_wiring import (
    ConditionalRule,
    Group,
    Interaction,
    NestedAction,
    PropertyValue,
    ProtocolError,
    UnknownGroupError,
    new_interaction_id,
)


class TestPropertyValue:
    def test_parse(self) -> None:
        assert PropertyValue.parse("State=active") == PropertyValue("State", "active")

    def test_parse_splits_on_first_separator(self) -> None:
        assert PropertyValue.parse("Label=a=b") == PropertyValue("Label", "a=b")

    def test_parse_empty_value(self) -> None:
        assert PropertyValue.parse("State=") == PropertyValue("State", "")

    @pytest.mark.parametrize("text", ["", None, "State", "RESET_TO_INITIAL"])
    def test_parse_without_separator(self, text) -> None:
        assert PropertyValue.parse(text) is None

    def test_matches_ignores_case(self) -> None:
        assert PropertyValue("state", "x").matches("STATE")
        assert not PropertyValue("size", "x").matches("state")

    def test_str(self) -> None:
        assert str(PropertyValue("State", "hover")) == "State=hover"


class TestInteractionWire:
    def test_from_ui_payload(self) -> None:
        interaction = Interaction.from_dict(
            {
                "id": "set:tab_1",
                "component": "set:tab",
                "primaryAction": "State=active",
                "conditionalRules": [
                    {"id": 1, "condition": "State=hover", "action": "RESET_TO_INITIAL"},
                    {"id": 2, "condition": "State=active", "action": "State=default",
                     "targetComponent": "comp:icon"},
                ],
                "nestedActions": [{"componentId": "comp:icon", "action": "Glyph=heart"}],
            }
        )
        assert interaction.group_id == "set:tab"
        assert interaction.conditional_rules[0] == ConditionalRule(
            1, "State=hover", "RESET_TO_INITIAL"
        )
        assert interaction.conditional_rules[1].target_component == "comp:icon"
        assert interaction.nested_actions == (NestedAction("comp:icon", "Glyph=heart"),)

    def test_stored_record_reads_back(self) -> None:
        interaction = Interaction(
            "g_1", "g", "State=active",
            (ConditionalRule(1, "State=hover", "State=default", "other"),),
            (NestedAction("h", "Size=large"),),
        )
        assert Interaction.from_dict(interaction.to_dict()) == interaction

    def test_missing_nested_fields_default(self) -> None:
        data = Interaction("g_1", "g", "State=active").to_dict()
        assert "nestedActions" not in data
        assert Interaction.from_dict(data).nested_actions == ()

    @pytest.mark.parametrize("missing", ["id", "component", "primaryAction"])
    def test_missing_required_field(self, missing: str) -> None:
        data = {"id": "g_1", "component": "g", "primaryAction": "State=active"}
        del data[missing]
        with pytest.raises(ProtocolError):
            Interaction.from_dict(data)

    def test_non_object_payload(self) -> None:
        with pytest.raises(ProtocolError):
            Interaction.from_dict(["not", "a", "dict"])

    def test_nested_action_without_target(self) -> None:
        with pytest.raises(ProtocolError):
            NestedAction.from_dict({"action": "State=on"})


class TestGroup:
    def test_add_values_dedupes_in_order(self) -> None:
        group = Group("g", "G")
        group.add_values("State", ["a", "b"])
        group.add_values("State", ["b", "c", "a"])
        assert group.properties["State"] == ["a", "b", "c"]


def test_new_interaction_id() -> None:
    assert new_interaction_id("set:tab", now_ms=1700000000000) == "set:tab_1700000000000"
    assert new_interaction_id("set:tab").startswith("set:tab_")


def test_unknown_group_error_message() -> None:
    err = UnknownGroupError("nope")
    assert isinstance(err, KeyError)
    assert str(err) == "Unknown component group 'nope'"
