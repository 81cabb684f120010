"""
Event Reducer

The single point of mutation of the read model: maps the current state and
the next ledger event to the next state. Unknown event kinds leave the
state untouched, and no handler failure escapes ``reduce``.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Dict

from pydantic import ValidationError

from .diagnostics import DiagnosticChannel, DiagnosticCode
from .events import (
    AccountChangedPayload,
    EventKind,
    LedgerEvent,
    RequestCreatedPayload,
    RequestTransitionPayload,
)
from .lifecycle import RequestLifecycleHandler
from .models import ApplicationState

logger = logging.getLogger(__name__)

EventHandler = Callable[[ApplicationState, LedgerEvent], Awaitable[ApplicationState]]


class EventReducer:
    """Dispatch ledger events to their state transitions."""

    def __init__(self, lifecycle: RequestLifecycleHandler, diagnostics: DiagnosticChannel):
        self.lifecycle = lifecycle
        self.diagnostics = diagnostics
        self._handlers: Dict[str, EventHandler] = {
            EventKind.ACCOUNT_CHANGED.value: self._account_changed,
            EventKind.SYNC_STARTED.value: self._sync_started,
            EventKind.SYNC_FINISHED.value: self._sync_finished,
            EventKind.REQUEST_CREATED.value: self._request_created,
            EventKind.REQUEST_REFUNDED.value: self._request_refunded,
            EventKind.REQUEST_FINALISED.value: self._request_finalised,
        }

    async def reduce(self, state: ApplicationState, event: LedgerEvent) -> ApplicationState:
        handler = self._handlers.get(event.kind)
        if handler is None:
            logger.debug(f"Ignoring unknown event kind {event.kind!r}")
            return state

        try:
            return await handler(state, event)
        except ValidationError as e:
            await self.diagnostics.recoverable(
                DiagnosticCode.INVALID_EVENT,
                f"Malformed {event.kind} payload: {e.error_count()} validation error(s)",
                block_number=event.block_number,
                details={"errors": e.errors(include_url=False, include_context=False, include_input=False)},
            )
        except Exception as e:
            logger.exception(f"Failed to apply {event.kind} event")
            await self.diagnostics.recoverable(
                DiagnosticCode.DROPPED_EVENT,
                f"Failed to apply {event.kind} event: {e}",
                block_number=event.block_number,
            )
        return state

    async def _account_changed(self, state: ApplicationState, event: LedgerEvent) -> ApplicationState:
        payload = AccountChangedPayload.model_validate(event.payload)
        return state.model_copy(update={"account": payload.account})

    async def _sync_started(self, state: ApplicationState, event: LedgerEvent) -> ApplicationState:
        return state.model_copy(update={"is_syncing": True})

    async def _sync_finished(self, state: ApplicationState, event: LedgerEvent) -> ApplicationState:
        return state.model_copy(update={"is_syncing": False})

    async def _request_created(self, state: ApplicationState, event: LedgerEvent) -> ApplicationState:
        payload = RequestCreatedPayload.model_validate(event.payload)
        return await self.lifecycle.create(state, payload, event.block_number)

    async def _request_refunded(self, state: ApplicationState, event: LedgerEvent) -> ApplicationState:
        payload = RequestTransitionPayload.model_validate(event.payload)
        return await self.lifecycle.refund(state, payload.request_id, event.block_number)

    async def _request_finalised(self, state: ApplicationState, event: LedgerEvent) -> ApplicationState:
        payload = RequestTransitionPayload.model_validate(event.payload)
        return await self.lifecycle.finalise(state, payload.request_id, event.block_number)


__all__ = [
    "EventHandler",
    "EventReducer",
]
