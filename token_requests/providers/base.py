from abc import ABC, abstractmethod
from typing import Any, Dict, List


class LedgerCallError(Exception):
    """Raised when a read-only ledger call fails or returns malformed data."""


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: float = 10

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""
        pass


class LedgerCallService(Provider):
    """Read-only calls against the ledger that the read model depends on.

    Implementations raise on transport or decoding failures; callers decide
    which failures degrade to fallbacks.
    """

    @abstractmethod
    async def list_token_managers(self) -> List[str]:
        """Addresses of the token managers known to the organization"""
        pass

    @abstractmethod
    async def list_accepted_deposit_tokens(self) -> List[str]:
        """Addresses of the tokens accepted as deposits"""
        pass

    @abstractmethod
    async def manager_token(self, manager_address: str) -> str:
        """Address of the token a token manager controls"""
        pass

    @abstractmethod
    async def erc20_decimals(self, token_address: str) -> Any:
        pass

    @abstractmethod
    async def erc20_name(self, token_address: str) -> Any:
        pass

    @abstractmethod
    async def erc20_symbol(self, token_address: str) -> Any:
        pass

    @abstractmethod
    async def block_timestamp(self, block_number: int) -> int:
        """Timestamp of a block in epoch seconds"""
        pass

    @abstractmethod
    async def current_network_type(self) -> str:
        """Network identifier used to key fallback data (main, rinkeby, ...)"""
        pass
