"""
Request Lifecycle

Creation and status transitions of token requests. Creation enriches the
request with token metadata and the block timestamp; transitions are
one-shot moves out of PENDING.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..providers.base import LedgerCallService
from ..services.metadata import MetadataResolver
from .diagnostics import DiagnosticChannel, DiagnosticCode
from .events import RequestCreatedPayload
from .models import ApplicationState, RequestStatus, TokenRequest

logger = logging.getLogger(__name__)


def marshall_date(timestamp: int) -> int:
    """Convert a block timestamp in seconds to epoch milliseconds."""
    return int(timestamp) * 1000


class RequestLifecycleHandler:
    """Apply request-created, request-refunded and request-finalised events."""

    def __init__(
        self,
        call_service: LedgerCallService,
        resolver: MetadataResolver,
        diagnostics: DiagnosticChannel,
    ):
        self.call_service = call_service
        self.resolver = resolver
        self.diagnostics = diagnostics

    async def create(
        self,
        state: ApplicationState,
        payload: RequestCreatedPayload,
        block_number: Optional[int],
    ) -> ApplicationState:
        if state.find_request(payload.request_id) is not None:
            await self.diagnostics.recoverable(
                DiagnosticCode.DROPPED_EVENT,
                f"Request #{payload.request_id} was already created",
                request_id=payload.request_id,
                block_number=block_number,
            )
            return state

        if block_number is None:
            await self.diagnostics.recoverable(
                DiagnosticCode.DROPPED_EVENT,
                f"Creation of request #{payload.request_id} has no block number",
                request_id=payload.request_id,
            )
            return state

        # All sub-lookups join here before the event is committed
        deposit, requested, timestamp = await asyncio.gather(
            self.resolver.resolve_or_native(payload.deposit_token),
            self.resolver.resolve_or_native(payload.request_token),
            self.call_service.block_timestamp(block_number),
            return_exceptions=True,
        )

        for result in (deposit, requested, timestamp):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                await self.diagnostics.recoverable(
                    DiagnosticCode.DROPPED_EVENT,
                    f"Could not enrich request #{payload.request_id}: {result}",
                    request_id=payload.request_id,
                    block_number=block_number,
                )
                return state

        try:
            request = TokenRequest(
                request_id=payload.request_id,
                requester_address=payload.requester_address,
                deposit_token=payload.deposit_token,
                deposit_decimals=deposit.decimals,
                deposit_name=deposit.name,
                deposit_symbol=deposit.symbol,
                deposit_amount=payload.deposit_amount,
                request_token=payload.request_token,
                request_decimals=requested.decimals,
                request_name=requested.name,
                request_symbol=requested.symbol,
                request_amount=payload.request_amount,
                request_token_id=payload.request_token_id,
                reference=payload.reference,
                status=RequestStatus.PENDING,
                date=marshall_date(timestamp),
            )
        except (TypeError, ValueError) as e:
            await self.diagnostics.recoverable(
                DiagnosticCode.DROPPED_EVENT,
                f"Could not build request #{payload.request_id}: {e}",
                request_id=payload.request_id,
                block_number=block_number,
            )
            return state

        logger.info(f"Request #{request.request_id} created by {request.requester_address}")
        return state.with_request_appended(request)

    async def transition(
        self,
        state: ApplicationState,
        request_id: str,
        next_status: RequestStatus,
        block_number: Optional[int] = None,
    ) -> ApplicationState:
        request = state.find_request(request_id)

        if request is None:
            await self.diagnostics.recoverable(
                DiagnosticCode.UNKNOWN_REQUEST,
                f"Tried to update request #{request_id} that shouldn't exist!",
                request_id=request_id,
                block_number=block_number,
            )
            return state

        if request.status.is_terminal:
            await self.diagnostics.recoverable(
                DiagnosticCode.REQUEST_ALREADY_TERMINAL,
                f"Request #{request_id} is already {request.status.value}, "
                f"ignoring move to {next_status.value}",
                request_id=request_id,
                block_number=block_number,
                details={"status": request.status.value, "attempted": next_status.value},
            )
            return state

        logger.info(f"Request #{request_id} moved to {next_status.value}")
        return state.with_request_replaced(request.with_status(next_status))

    async def refund(
        self, state: ApplicationState, request_id: str, block_number: Optional[int] = None
    ) -> ApplicationState:
        return await self.transition(state, request_id, RequestStatus.WITHDRAWN, block_number)

    async def finalise(
        self, state: ApplicationState, request_id: str, block_number: Optional[int] = None
    ) -> ApplicationState:
        return await self.transition(state, request_id, RequestStatus.APPROVED, block_number)


__all__ = [
    "marshall_date",
    "RequestLifecycleHandler",
]
