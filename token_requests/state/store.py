"""
State Store

Process-wide holder of the read model. Wires an event source to the
reducer, applies events strictly one at a time in log order and publishes
every new snapshot to subscribers.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, AsyncIterable, Awaitable, Callable, List, Mapping, Optional, Union

from pydantic import ValidationError

from ..logging_config import bind_event_context, clear_event_context
from ..providers.base import LedgerCallService
from ..services.bootstrap import BootstrapPipeline, BootstrapResult
from ..services.metadata import MetadataResolver
from .diagnostics import DiagnosticChannel, DiagnosticCode
from .events import LedgerEvent
from .lifecycle import RequestLifecycleHandler
from .models import ApplicationState
from .reducer import EventReducer

logger = logging.getLogger(__name__)

StateCallback = Callable[[ApplicationState], Union[None, Awaitable[None]]]
EventRecord = Union[LedgerEvent, Mapping[str, Any]]


class StateStore:
    """Owns the application state and serializes its updates."""

    def __init__(
        self,
        reducer: EventReducer,
        pipeline: BootstrapPipeline,
        diagnostics: DiagnosticChannel,
        cached_state: Optional[ApplicationState] = None,
    ):
        self.reducer = reducer
        self.pipeline = pipeline
        self.diagnostics = diagnostics

        self._state = cached_state or ApplicationState()
        self._identity: Optional[str] = None
        self._bootstrap: Optional[BootstrapResult] = None
        self._subscribers: List[StateCallback] = []
        self._lock = asyncio.Lock()
        self._applied = 0

    @classmethod
    def build(
        cls,
        call_service: LedgerCallService,
        diagnostics: Optional[DiagnosticChannel] = None,
        cached_state: Optional[ApplicationState] = None,
        network_type: Optional[str] = None,
    ) -> "StateStore":
        """Wire resolver, pipeline, lifecycle and reducer around a call service."""
        diagnostics = diagnostics or DiagnosticChannel()
        resolver = MetadataResolver(call_service, network_type=network_type)
        pipeline = BootstrapPipeline(call_service, resolver, diagnostics)
        lifecycle = RequestLifecycleHandler(call_service, resolver, diagnostics)
        reducer = EventReducer(lifecycle, diagnostics)
        return cls(reducer, pipeline, diagnostics, cached_state=cached_state)

    @property
    def state(self) -> ApplicationState:
        return self._state

    @property
    def identity(self) -> Optional[str]:
        return self._identity

    @property
    def is_initialized(self) -> bool:
        return self._bootstrap is not None

    @property
    def bootstrap_failed(self) -> bool:
        return self._bootstrap is not None and self._bootstrap.failed

    @property
    def applied_events(self) -> int:
        return self._applied

    def subscribe(self, callback: StateCallback) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: StateCallback) -> None:
        self._subscribers = [cb for cb in self._subscribers if cb != callback]

    async def _publish(self, snapshot: ApplicationState) -> None:
        for callback in list(self._subscribers):
            try:
                result = callback(snapshot)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"State subscriber failed: {e}")

    async def initialize(self) -> BootstrapResult:
        """Run the bootstrap pipeline once and publish the seed state."""
        async with self._lock:
            if self._bootstrap is not None:
                return self._bootstrap

            result = await self.pipeline.run(self._state)
            self._bootstrap = result
            self._state = result.state
            self._identity = result.identity

            if result.failed:
                logger.error("Could not start background state sync: bootstrap failed")
            else:
                await self._publish(result.state)
            return result

    async def apply(self, event: EventRecord) -> ApplicationState:
        """Apply a single event and republish the resulting snapshot.

        Snapshots are delivered while the lock is held, so subscribers see
        them in log order. A subscriber must not call ``apply`` itself.
        """
        async with self._lock:
            if not isinstance(event, LedgerEvent):
                try:
                    event = LedgerEvent.from_raw(event)
                except ValidationError as e:
                    await self.diagnostics.recoverable(
                        DiagnosticCode.INVALID_EVENT,
                        f"Malformed event record: {e.error_count()} validation error(s)",
                        details={"errors": e.errors(include_url=False, include_context=False, include_input=False)},
                    )
                    return self._state

            bind_event_context(event.kind, event.block_number)
            previous = self._state
            try:
                current = await self.reducer.reduce(previous, event)
            finally:
                clear_event_context()
            self._state = current
            self._applied += 1

            if current is not previous:
                await self._publish(current)
            return current

    async def run(self, source: AsyncIterable[EventRecord]) -> ApplicationState:
        """Consume an event source in order until it is exhausted."""
        if not self.is_initialized:
            await self.initialize()

        if self.bootstrap_failed:
            logger.error("Not consuming events: the bootstrap pipeline failed")
            return self._state

        async for event in source:
            await self.apply(event)
        return self._state


# Singleton instance
_state_store: Optional[StateStore] = None


def get_state_store() -> Optional[StateStore]:
    """Get the store installed by the host process, if any."""
    return _state_store


def set_state_store(store: Optional[StateStore]) -> None:
    global _state_store
    _state_store = store


__all__ = [
    "StateCallback",
    "EventRecord",
    "StateStore",
    "get_state_store",
    "set_state_store",
]
