"""
Read Model

Immutable snapshots of the token request application state. Every
transition produces a new ``ApplicationState`` through ``model_copy``; the
previous snapshot is never mutated, so readers can hold on to it safely.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator


# The chain's native currency is represented by the zero address
NATIVE_ASSET_ADDRESS = "0x0000000000000000000000000000000000000000"

ETHER_DATA: Dict[str, Any] = {
    "decimals": 18,
    "name": "Ether",
    "symbol": "ETH",
}

# Decimals come back as ints from the ledger but may be opaque strings
# when taken from fallback data
Decimals = Union[int, str]


def is_native_asset(address: Optional[str]) -> bool:
    """Check if an address is the native-asset placeholder."""
    return bool(address) and address.lower() == NATIVE_ASSET_ADDRESS


class RequestStatus(str, Enum):
    """Lifecycle of a token request. Only PENDING may be left."""

    PENDING = "pending"
    APPROVED = "approved"
    WITHDRAWN = "withdrawn"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING


class TokenDescriptor(BaseModel):
    """Display metadata for a token."""

    address: str
    decimals: Decimals = 0
    name: str = ""
    symbol: str = ""

    class Config:
        frozen = True


def native_asset_descriptor() -> TokenDescriptor:
    return TokenDescriptor(address=NATIVE_ASSET_ADDRESS, **ETHER_DATA)


class TokenRequest(BaseModel):
    """A request to exchange a deposit for organization tokens."""

    request_id: str = Field(..., alias="requestId")
    requester_address: str = Field(..., alias="requesterAddress")

    deposit_token: str = Field(..., alias="depositToken")
    deposit_decimals: Decimals = Field(0, alias="depositDecimals")
    deposit_name: str = Field("", alias="depositName")
    deposit_symbol: str = Field("", alias="depositSymbol")
    deposit_amount: str = Field("0", alias="depositAmount")

    request_token: str = Field(..., alias="requestToken")
    request_decimals: Decimals = Field(0, alias="requestDecimals")
    request_name: str = Field("", alias="requestName")
    request_symbol: str = Field("", alias="requestSymbol")
    request_amount: str = Field("0", alias="requestAmount")
    request_token_id: str = Field("", alias="requestTokenId")

    reference: str = ""
    status: RequestStatus = RequestStatus.PENDING
    date: int = Field(..., description="Creation time in epoch milliseconds")

    class Config:
        populate_by_name = True
        frozen = True

    @field_validator(
        "request_id",
        "deposit_amount",
        "request_amount",
        "request_token_id",
        mode="before",
    )
    @classmethod
    def _stringify_uint(cls, value: Any) -> Any:
        # uint256 values may arrive as ints; keep them as exact decimal strings
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    def with_status(self, status: RequestStatus) -> "TokenRequest":
        return self.model_copy(update={"status": status})


class ApplicationState(BaseModel):
    """The read model derived from the ledger event log."""

    account: Optional[str] = None
    is_syncing: bool = Field(False, alias="isSyncing")
    org_tokens: Tuple[TokenDescriptor, ...] = Field(default_factory=tuple, alias="orgTokens")
    accepted_tokens: Tuple[TokenDescriptor, ...] = Field(default_factory=tuple, alias="acceptedTokens")
    requests: Tuple[TokenRequest, ...] = Field(default_factory=tuple)

    # request_id -> position in ``requests``; rebuilt by the helpers below
    request_index: Dict[str, int] = Field(default_factory=dict, exclude=True, repr=False)

    class Config:
        populate_by_name = True
        frozen = True

    def model_post_init(self, __context: Any) -> None:
        super().model_post_init(__context)
        if len(self.request_index) != len(self.requests):
            object.__setattr__(
                self,
                "request_index",
                {request.request_id: i for i, request in enumerate(self.requests)},
            )

    def find_request(self, request_id: Any) -> Optional[TokenRequest]:
        position = self.request_index.get(str(request_id))
        if position is None:
            return None
        return self.requests[position]

    def with_request_appended(self, request: TokenRequest) -> "ApplicationState":
        if request.request_id in self.request_index:
            raise ValueError(f"Request #{request.request_id} already exists")
        index = dict(self.request_index)
        index[request.request_id] = len(self.requests)
        return self.model_copy(
            update={"requests": self.requests + (request,), "request_index": index}
        )

    def with_request_replaced(self, request: TokenRequest) -> "ApplicationState":
        position = self.request_index[request.request_id]
        requests = list(self.requests)
        requests[position] = request
        # positions are unchanged, so the index is shared with the previous snapshot
        return self.model_copy(update={"requests": tuple(requests)})

    def snapshot(self) -> Dict[str, Any]:
        """Serialize with the field names consumed by the UI."""
        return self.model_dump(mode="json", by_alias=True)


__all__ = [
    "NATIVE_ASSET_ADDRESS",
    "ETHER_DATA",
    "Decimals",
    "is_native_asset",
    "RequestStatus",
    "TokenDescriptor",
    "native_asset_descriptor",
    "TokenRequest",
    "ApplicationState",
]
