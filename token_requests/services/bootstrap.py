"""
Bootstrap Pipeline

One-shot initializer that seeds the read model before live events are
consumed:

1. discover the organization's token managers
2. resolve the token each manager controls, with metadata
3. discover the accepted deposit tokens
4. resolve their metadata; the native asset goes first when accepted
5. mark the seed as syncing until the host reports the log head
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional

from ..providers.base import LedgerCallService
from ..state.diagnostics import DiagnosticChannel, DiagnosticCode
from ..state.models import (
    ApplicationState,
    TokenDescriptor,
    is_native_asset,
    native_asset_descriptor,
)
from .metadata import MetadataResolver

logger = logging.getLogger(__name__)

IDENTITY_PREFIX = "token-request"


@dataclass
class BootstrapResult:
    state: ApplicationState
    identity: Optional[str] = None
    network_type: Optional[str] = None
    failed: bool = False


class BootstrapPipeline:
    """Build the seed state from external discovery calls."""

    def __init__(
        self,
        call_service: LedgerCallService,
        resolver: MetadataResolver,
        diagnostics: DiagnosticChannel,
    ):
        self.call_service = call_service
        self.resolver = resolver
        self.diagnostics = diagnostics

    async def _resolve_manager(self, manager_address: str, network: str) -> TokenDescriptor:
        # a manager whose token cannot be read fails the whole bootstrap
        token_address = await self.call_service.manager_token(manager_address)
        return await self.resolver.resolve(token_address, network)

    async def resolve_org_tokens(self, manager_addresses: List[str], network: str) -> List[TokenDescriptor]:
        """Resolve one token per manager, keeping discovery order."""
        tokens = await asyncio.gather(
            *(self._resolve_manager(address, network) for address in manager_addresses)
        )
        return list(tokens)

    async def resolve_accepted_tokens(self, token_addresses: List[str], network: str) -> List[TokenDescriptor]:
        """Resolve accepted deposit tokens, placing the native asset first."""
        erc20_tokens = await asyncio.gather(
            *(
                self.resolver.resolve(address, network)
                for address in token_addresses
                if not is_native_asset(address)
            )
        )
        accepted = list(erc20_tokens)
        if any(is_native_asset(address) for address in token_addresses):
            accepted.insert(0, native_asset_descriptor())
        return accepted

    @staticmethod
    def identity_for(org_tokens: List[TokenDescriptor]) -> Optional[str]:
        """Label taken from the last manager's token, even when its symbol is empty."""
        if not org_tokens:
            return None
        return f"{IDENTITY_PREFIX} {org_tokens[-1].symbol}"

    async def run(self, cached_state: Optional[ApplicationState] = None) -> BootstrapResult:
        cached_state = cached_state or ApplicationState()

        try:
            manager_addresses = await self.call_service.list_token_managers()
            network = await self.call_service.current_network_type()
            self.resolver.network_type = network

            org_tokens = await self.resolve_org_tokens(manager_addresses, network)

            accepted_addresses = await self.call_service.list_accepted_deposit_tokens()
            accepted_tokens = await self.resolve_accepted_tokens(accepted_addresses, network)
        except Exception as e:
            await self.diagnostics.fatal(
                DiagnosticCode.BOOTSTRAP_FAILED,
                f"Error initializing state: {e}",
            )
            return BootstrapResult(state=cached_state, failed=True)

        logger.info(
            f"Bootstrapped {len(org_tokens)} org token(s) and "
            f"{len(accepted_tokens)} accepted token(s) on {network}"
        )

        state = cached_state.model_copy(
            update={
                "is_syncing": True,
                "org_tokens": tuple(org_tokens),
                "accepted_tokens": tuple(accepted_tokens),
            }
        )
        return BootstrapResult(
            state=state,
            identity=self.identity_for(org_tokens),
            network_type=network,
        )


__all__ = [
    "IDENTITY_PREFIX",
    "BootstrapResult",
    "BootstrapPipeline",
]
