"""Wiring configuration dataclass."""
from __future__ import annotations

from dataclasses import dataclass

from variant_wiring.types import RESET_TO_INITIAL


@dataclass(frozen=True)
class WiringConfig:
    """Immutable configuration for a wiring session.

    Attributes:
        collection_name: Host variable collection holding all managed variables.
        storage_key_prefix: Prefix of persisted interaction keys.
        reset_token: Action string meaning "back to the captured original".
        ui_width: Width of the authoring panel in pixels.
        ui_height: Height of the authoring panel in pixels.
    """

    collection_name: str = "state-machine"
    storage_key_prefix: str = "interaction_"
    reset_token: str = RESET_TO_INITIAL
    ui_width: int = 800
    ui_height: int = 600

    def storage_key(self, group_id: str) -> str:
        return f"{self.storage_key_prefix}{group_id}"
