"""
Token Request Read Model

Immutable application state, the ledger events that drive it, and the
diagnostics reported while applying them. The reducer and the store live in
``token_requests.state.reducer`` and ``token_requests.state.store``.
"""

from .models import (
    NATIVE_ASSET_ADDRESS,
    ETHER_DATA,
    ApplicationState,
    RequestStatus,
    TokenDescriptor,
    TokenRequest,
    is_native_asset,
    native_asset_descriptor,
)
from .events import EventKind, LedgerEvent
from .diagnostics import Diagnostic, DiagnosticChannel, DiagnosticCode, Severity

__all__ = [
    # Models
    "NATIVE_ASSET_ADDRESS",
    "ETHER_DATA",
    "ApplicationState",
    "RequestStatus",
    "TokenDescriptor",
    "TokenRequest",
    "is_native_asset",
    "native_asset_descriptor",
    # Events
    "EventKind",
    "LedgerEvent",
    # Diagnostics
    "Diagnostic",
    "DiagnosticChannel",
    "DiagnosticCode",
    "Severity",
]
