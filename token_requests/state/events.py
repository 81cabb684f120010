"""
Ledger Events

Records of the ordered event log consumed by the state store, and the typed
payloads the reducer validates before applying them.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, field_validator


class EventKind(str, Enum):
    """Event kinds the reducer knows how to apply."""

    ACCOUNT_CHANGED = "account-changed"
    SYNC_STARTED = "sync-started"
    SYNC_FINISHED = "sync-finished"
    REQUEST_CREATED = "request-created"
    REQUEST_REFUNDED = "request-refunded"
    REQUEST_FINALISED = "request-finalised"


# Raw names emitted by the contract and by the host framework
EVENT_NAME_ALIASES: Dict[str, EventKind] = {
    "ACCOUNTS_TRIGGER": EventKind.ACCOUNT_CHANGED,
    "SYNC_STATUS_SYNCING": EventKind.SYNC_STARTED,
    "SYNC_STATUS_SYNCED": EventKind.SYNC_FINISHED,
    "TokenRequestCreated": EventKind.REQUEST_CREATED,
    "TokenRequestRefunded": EventKind.REQUEST_REFUNDED,
    "TokenRequestFinalised": EventKind.REQUEST_FINALISED,
}


def normalize_event_kind(name: str) -> str:
    """Map a raw event name onto its kind; unknown names pass through."""
    alias = EVENT_NAME_ALIASES.get(name)
    if alias is not None:
        return alias.value
    return name


class LedgerEvent(BaseModel):
    """One entry of the event log."""

    # Plain string so kinds unknown to this reader are still representable
    kind: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    block_number: Optional[int] = Field(None, alias="blockNumber")

    class Config:
        populate_by_name = True
        frozen = True

    @field_validator("kind", mode="before")
    @classmethod
    def _normalize_kind(cls, value: Any) -> Any:
        if isinstance(value, EventKind):
            return value.value
        if isinstance(value, str):
            return normalize_event_kind(value)
        return value

    @field_validator("payload", mode="before")
    @classmethod
    def _default_payload(cls, value: Any) -> Any:
        return {} if value is None else value

    @classmethod
    def from_raw(cls, record: Mapping[str, Any]) -> "LedgerEvent":
        """Build an event from either the log schema or the host's raw record.

        The host delivers ``{event, returnValues, blockNumber}``; the log
        schema is ``{kind, payload, blockNumber}``.
        """
        if not isinstance(record, Mapping) or "kind" in record:
            return cls.model_validate(record)
        return cls(
            kind=record.get("event", ""),
            payload=record.get("returnValues") or {},
            block_number=record.get("blockNumber"),
        )


class AccountChangedPayload(BaseModel):
    account: Optional[str] = None


class RequestCreatedPayload(BaseModel):
    request_id: str = Field(..., alias="requestId")
    requester_address: str = Field(..., alias="requesterAddress")
    deposit_token: str = Field(..., alias="depositToken")
    deposit_amount: str = Field(..., alias="depositAmount")
    request_token: str = Field(..., alias="requestToken")
    request_amount: str = Field(..., alias="requestAmount")
    request_token_id: str = Field("", alias="requestTokenId")
    reference: str = ""

    class Config:
        populate_by_name = True

    @field_validator(
        "request_id",
        "deposit_amount",
        "request_amount",
        "request_token_id",
        mode="before",
    )
    @classmethod
    def _stringify_uint(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class RequestTransitionPayload(BaseModel):
    request_id: str = Field(..., alias="requestId")

    class Config:
        populate_by_name = True

    @field_validator("request_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


__all__ = [
    "EventKind",
    "EVENT_NAME_ALIASES",
    "normalize_event_kind",
    "LedgerEvent",
    "AccountChangedPayload",
    "RequestCreatedPayload",
    "RequestTransitionPayload",
]
