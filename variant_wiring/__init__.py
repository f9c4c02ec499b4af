"""variant-wiring - Click-driven state propagation across component instance groups."""
from __future__ import annotations

from variant_wiring.compiler import build_rule_set, compile_targets, nested_interaction
from variant_wiring.config import WiringConfig
from variant_wiring.grouper import find_nested_instances, group_instances
from variant_wiring.host import (
    ClientStorage,
    Host,
    HostError,
    SceneGraph,
    VariableStore,
    extract_property_value,
)
from variant_wiring.memory import MemoryScene, MemoryStorage, memory_host
from variant_wiring.pipeline import PipelineContext, analyze_selection, author_interaction
from variant_wiring.resolver import ResolvedProperty, resolve_variant_property
from variant_wiring.session import Session
from variant_wiring.store import InteractionStore
from variant_wiring.types import (
    RESET_TO_INITIAL,
    ConditionalRule,
    Group,
    InstanceRef,
    Interaction,
    NestedAction,
    PipelineBusyError,
    PropertyValue,
    ProtocolError,
    Reaction,
    SelectionError,
    SetVariable,
    TargetTable,
    UnknownGroupError,
    WiringError,
    new_interaction_id,
)

__all__ = [
    "RESET_TO_INITIAL",
    "ClientStorage",
    "ConditionalRule",
    "Group",
    "Host",
    "HostError",
    "InstanceRef",
    "Interaction",
    "InteractionStore",
    "MemoryScene",
    "MemoryStorage",
    "NestedAction",
    "PipelineBusyError",
    "PipelineContext",
    "PropertyValue",
    "ProtocolError",
    "Reaction",
    "ResolvedProperty",
    "SceneGraph",
    "SelectionError",
    "Session",
    "SetVariable",
    "TargetTable",
    "UnknownGroupError",
    "VariableStore",
    "WiringConfig",
    "WiringError",
    "analyze_selection",
    "author_interaction",
    "build_rule_set",
    "compile_targets",
    "extract_property_value",
    "find_nested_instances",
    "group_instances",
    "memory_host",
    "nested_interaction",
    "resolve_variant_property",
]
