"""
Token metadata resolution with per-field fallbacks.

Each of decimals, name and symbol is looked up independently and
concurrently. A field whose lookup fails or comes back empty is taken from
the static fallback table; when the table has nothing either, name and
symbol become ``""`` and decimals becomes ``"0"``. Resolution never raises.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from ..providers.base import LedgerCallService
from ..providers.token_list import token_data_fallback
from ..state.models import TokenDescriptor, is_native_asset, native_asset_descriptor

logger = logging.getLogger(__name__)

FallbackLookup = Callable[[str, str, Optional[str]], Optional[Any]]

FIELD_DEFAULTS = {
    "decimals": "0",
    "name": "",
    "symbol": "",
}


class MetadataResolver:
    """Resolve display metadata for token addresses."""

    def __init__(
        self,
        call_service: LedgerCallService,
        network_type: Optional[str] = None,
        fallback: FallbackLookup = token_data_fallback,
    ):
        self.call_service = call_service
        self.network_type = network_type
        self._fallback = fallback

    async def _load_field(
        self,
        token_address: str,
        field_name: str,
        loader: Callable[[str], Awaitable[Any]],
        network: Optional[str],
    ) -> Any:
        fallback = self._fallback(token_address, field_name, network) or FIELD_DEFAULTS[field_name]
        try:
            value = await loader(token_address)
        except Exception as e:
            # metadata fields are optional on ERC-20 contracts
            logger.debug(f"Falling back for {field_name} of {token_address}: {e}")
            return fallback
        return value or fallback

    async def resolve(self, token_address: str, network: Optional[str] = None) -> TokenDescriptor:
        network = network or self.network_type
        decimals, name, symbol = await asyncio.gather(
            self._load_field(token_address, "decimals", self.call_service.erc20_decimals, network),
            self._load_field(token_address, "name", self.call_service.erc20_name, network),
            self._load_field(token_address, "symbol", self.call_service.erc20_symbol, network),
        )
        return TokenDescriptor(
            address=token_address,
            decimals=decimals,
            name=str(name),
            symbol=str(symbol),
        )

    async def resolve_or_native(self, token_address: str, network: Optional[str] = None) -> TokenDescriptor:
        """Resolve a token, answering the native-asset placeholder locally."""
        if is_native_asset(token_address):
            return native_asset_descriptor()
        return await self.resolve(token_address, network)


__all__ = [
    "FallbackLookup",
    "FIELD_DEFAULTS",
    "MetadataResolver",
]
