"""Session: routes UI messages to pipeline runs and posts the replies."""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from variant_wiring import protocol
from variant_wiring.config import WiringConfig
from variant_wiring.host import Host
from variant_wiring.pipeline import (
    AuthoringResult,
    PipelineContext,
    analyze_selection,
    author_interaction,
)
from variant_wiring.protocol import Envelope, Outbox
from variant_wiring.store import InteractionStore
from variant_wiring.types import Interaction

logger = logging.getLogger(__name__)

_Handler = Callable[[Envelope], Awaitable[None]]


class Session:
    """One plugin session bound to a host.

    Every entry point (``dispatch`` and ``selection_changed``) catches all
    failures and reports them as a single ``error`` envelope. Replies are
    delivered to outbox subscribers when the entry point returns.
    """

    def __init__(self, host: Host, config: WiringConfig | None = None) -> None:
        self.config: WiringConfig = config if config is not None else WiringConfig()
        self.host = host
        self.outbox = Outbox()
        self.context = PipelineContext()
        self.store = InteractionStore(
            host.scene, host.variables, host.storage, self.config
        )
        self.closed: bool = False
        self.last_authoring: AuthoringResult | None = None
        self._handlers: dict[str, _Handler] = {}

        self.handle(protocol.INIT, self._on_init)
        self.handle(protocol.CREATE_INTERACTION, self._on_create_interaction)
        self.handle(protocol.GET_COMPONENTS, self._on_get_components)
        self.handle(protocol.CLEANUP, self._on_cleanup)
        self.handle(protocol.CLEANUP_STORED_DATA, self._on_cleanup_stored_data)
        self.handle(protocol.CANCEL, self._on_cancel)

    def handle(self, msg_type: str, handler: _Handler) -> None:
        """Register the handler for a message type. Later calls overwrite."""
        self._handlers[msg_type] = handler

    def _error(self, context: str, exc: BaseException) -> None:
        logger.error(f"{context}: {exc}", exc_info=exc)
        self.outbox.post(protocol.ERROR, None, f"{context}: {exc}")

    async def dispatch(self, raw: str | dict[str, Any] | Envelope) -> None:
        """Handle one inbound message. Never raises."""
        try:
            if self.closed:
                logger.debug("Session closed; ignoring message")
                return
            envelope = raw if isinstance(raw, Envelope) else protocol.decode(raw)
            handler = self._handlers.get(envelope.type)
            if handler is None:
                logger.info(f"Unknown message type: {envelope.type}")
                return
            await handler(envelope)
        except Exception as exc:
            self._error("Message handler", exc)
        finally:
            self.outbox.flush()

    async def selection_changed(self) -> None:
        """Host selection listener: announce, then re-run initialization."""
        if self.closed:
            return
        self.outbox.post(protocol.SELECTION_CHANGED, None, "Analyzing new selection...")
        try:
            await self._initialize()
        finally:
            self.outbox.flush()

    # --- Handlers ---

    async def _initialize(self) -> None:
        token = self.context.begin_analysis()
        try:
            analysis = await analyze_selection(
                self.host, self.context, self.store, self.config, token
            )
        except Exception as exc:
            if not self.context.is_current(token):
                logger.debug(f"Stale analysis failed: {exc}")
                return
            self._error("Initialization failed", exc)
            return
        if not analysis.current:
            return
        self.outbox.post(
            protocol.INIT_SUCCESS,
            {
                "selectedInstance": analysis.selected_name,
                "components": [g.to_dict() for g in analysis.groups],
                "existingInteractions": {
                    gid: i.to_dict() for gid, i in analysis.existing.items()
                },
            },
        )

    async def _on_init(self, envelope: Envelope) -> None:
        await self._initialize()

    async def _on_create_interaction(self, envelope: Envelope) -> None:
        try:
            interaction = Interaction.from_dict(envelope.data)
            result = await author_interaction(
                self.host, self.context, self.store, interaction, self.config
            )
        except Exception as exc:
            self._error("Failed to create interaction", exc)
            return
        self.last_authoring = result
        self.outbox.post(
            protocol.INTERACTION_CREATED,
            None,
            f"Interaction created successfully for {result.group.name or 'Unknown Component'}",
        )

    async def _on_get_components(self, envelope: Envelope) -> None:
        self.outbox.post(
            protocol.COMPONENTS_DATA, [g.to_dict() for g in self.context.groups]
        )

    async def _on_cleanup(self, envelope: Envelope) -> None:
        removed = await self.store.sweep()
        self.outbox.post(
            protocol.CLEANUP_COMPLETE,
            {"removed": removed},
            "Comprehensive cleanup completed successfully",
        )

    async def _on_cleanup_stored_data(self, envelope: Envelope) -> None:
        await self.store.purge_all(g.id for g in self.context.groups)
        self.outbox.post(
            protocol.CLEANUP_COMPLETE,
            None,
            "Stored interaction data cleaned up successfully",
        )

    async def _on_cancel(self, envelope: Envelope) -> None:
        self.closed = True
        await self.host.scene.close()
