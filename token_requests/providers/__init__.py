from .base import LedgerCallError, LedgerCallService, Provider
from .jsonrpc import JsonRpcLedgerService
from .token_list import KNOWN_TOKENS_FALLBACK, token_data_fallback

__all__ = [
    "Provider",
    "LedgerCallService",
    "LedgerCallError",
    "JsonRpcLedgerService",
    "KNOWN_TOKENS_FALLBACK",
    "token_data_fallback",
]
