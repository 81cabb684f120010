"""
Diagnostics Channel

Structured reports of everything the read model tolerated instead of
raising: dropped events, malformed records, rejected transitions and
bootstrap failures. Every report is logged and fanned out to subscribers.
"""

from __future__ import annotations

import inspect
import logging
from collections import deque
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Union

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    RECOVERABLE = "recoverable"
    FATAL_TO_BOOTSTRAP = "fatal-to-bootstrap"


class DiagnosticCode(str, Enum):
    DROPPED_EVENT = "dropped-event"
    UNKNOWN_REQUEST = "unknown-request"
    REQUEST_ALREADY_TERMINAL = "request-already-terminal"
    INVALID_EVENT = "invalid-event"
    BOOTSTRAP_FAILED = "bootstrap-failed"


class Diagnostic(BaseModel):
    code: DiagnosticCode
    severity: Severity = Severity.RECOVERABLE
    message: str
    request_id: Optional[str] = None
    block_number: Optional[int] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Config:
        frozen = True


DiagnosticCallback = Callable[[Diagnostic], Union[None, Awaitable[None]]]


class DiagnosticChannel:
    """Fan-out channel for diagnostics with a bounded history."""

    def __init__(self, history_size: int = 200):
        self._subscribers: List[DiagnosticCallback] = []
        self._recent: Deque[Diagnostic] = deque(maxlen=history_size)

    def subscribe(self, callback: DiagnosticCallback) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: DiagnosticCallback) -> None:
        self._subscribers = [cb for cb in self._subscribers if cb != callback]

    @property
    def recent(self) -> List[Diagnostic]:
        return list(self._recent)

    async def report(self, diagnostic: Diagnostic) -> Diagnostic:
        """Log a diagnostic and deliver it to every subscriber."""
        log = logger.error if diagnostic.severity is Severity.FATAL_TO_BOOTSTRAP else logger.warning
        log(
            f"{diagnostic.code.value}: {diagnostic.message}",
            extra={"request_id": diagnostic.request_id, "block_number": diagnostic.block_number},
        )

        self._recent.append(diagnostic)

        for callback in list(self._subscribers):
            try:
                result = callback(diagnostic)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Diagnostic subscriber failed: {e}")

        return diagnostic

    async def recoverable(self, code: DiagnosticCode, message: str, **fields: Any) -> Diagnostic:
        return await self.report(Diagnostic(code=code, message=message, **fields))

    async def fatal(self, code: DiagnosticCode, message: str, **fields: Any) -> Diagnostic:
        return await self.report(
            Diagnostic(code=code, severity=Severity.FATAL_TO_BOOTSTRAP, message=message, **fields)
        )


__all__ = [
    "Severity",
    "DiagnosticCode",
    "Diagnostic",
    "DiagnosticCallback",
    "DiagnosticChannel",
]
