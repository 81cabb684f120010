"""
Ethereum JSON-RPC implementation of the ledger call service.

Reads the token request app, its token managers and ERC-20 metadata with
``eth_call``, and block timestamps with ``eth_getBlockByNumber``.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Dict, List, Optional

import httpx
from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector, is_address, to_checksum_address

from ..config import settings
from .base import LedgerCallError, LedgerCallService

logger = logging.getLogger(__name__)


def _selector(signature: str) -> str:
    return "0x" + function_signature_to_4byte_selector(signature).hex()


GET_TOKEN_MANAGERS_SELECTOR = _selector("getTokenManagers()")
GET_ACCEPTED_DEPOSIT_TOKENS_SELECTOR = _selector("getAcceptedDepositTokens()")
TOKEN_SELECTOR = _selector("token()")
DECIMALS_SELECTOR = _selector("decimals()")
NAME_SELECTOR = _selector("name()")
SYMBOL_SELECTOR = _selector("symbol()")

WORD_SIZE = 32

# eth_chainId -> network type used to key fallback data
NETWORK_TYPES: Dict[int, str] = {
    1: "main",
    3: "ropsten",
    4: "rinkeby",
    5: "goerli",
    42: "kovan",
}
PRIVATE_NETWORK_TYPE = "private"


def _payload(result: str) -> bytes:
    if not isinstance(result, str) or not result.startswith("0x"):
        raise LedgerCallError(f"Unexpected eth_call result: {result!r}")
    try:
        return bytes.fromhex(result[2:])
    except ValueError as e:
        raise LedgerCallError(f"Malformed eth_call result: {result!r}") from e


def _decode_single(abi_type: str, result: str) -> Any:
    try:
        return decode([abi_type], _payload(result))[0]
    except (DecodingError, ValueError) as e:
        raise LedgerCallError(f"Could not decode {abi_type} from {result!r}: {e}") from e


def decode_uint(result: str) -> int:
    return _decode_single("uint256", result)


def decode_address(result: str) -> str:
    return to_checksum_address(_decode_single("address", result))


def decode_address_array(result: str) -> List[str]:
    return [to_checksum_address(address) for address in _decode_single("address[]", result)]


def decode_string(result: str) -> str:
    """Decode an ABI ``string`` return value, accepting ``bytes32`` as well.

    Some tokens (MKR, SAI) predate the ERC-20 metadata convention and return
    a NUL-padded ``bytes32`` for ``name()`` and ``symbol()``.
    """
    if len(_payload(result)) == WORD_SIZE:
        raw = _decode_single("bytes32", result)
        return raw.rstrip(b"\x00").decode("utf-8", errors="replace")
    return _decode_single("string", result)


class JsonRpcLedgerService(LedgerCallService):
    """Ledger call service backed by an Ethereum JSON-RPC endpoint"""

    name = "jsonrpc"

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        app_address: Optional[str] = None,
        network_type: Optional[str] = None,
        timeout_s: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.rpc_url = rpc_url if rpc_url is not None else settings.rpc_url
        self.app_address = app_address if app_address is not None else settings.app_address
        self.network_type_override = network_type if network_type is not None else settings.network_type
        self.timeout_s = timeout_s if timeout_s is not None else settings.call_timeout_seconds
        self._client = client
        self._ids = itertools.count(1)

    async def ready(self) -> bool:
        return bool(self.rpc_url) and is_address(self.app_address)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {
                "status": "unavailable",
                "reason": "RPC URL or app address not configured",
            }

        try:
            network = await self.current_network_type()
            return {"status": "healthy", "network": network}
        except Exception as e:
            return {"status": "error", "reason": str(e)}

    async def _post(self, client: httpx.AsyncClient, payload: Dict[str, Any]) -> httpx.Response:
        response = await client.post(
            self.rpc_url,
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=self.timeout_s,
        )
        response.raise_for_status()
        return response

    async def call(self, method: str, params: List[Any]) -> Any:
        """Issue a JSON-RPC request and return its ``result``."""
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }

        try:
            if self._client is not None:
                response = await self._post(self._client, payload)
            else:
                async with httpx.AsyncClient() as client:
                    response = await self._post(client, payload)
            data = response.json()
        except httpx.HTTPError as e:
            raise LedgerCallError(f"{method} transport error: {e}") from e
        except ValueError as e:
            raise LedgerCallError(f"{method} returned invalid JSON") from e

        if "error" in data:
            raise LedgerCallError(f"{method} error: {data['error']}")

        return data.get("result")

    async def eth_call(self, to: str, data: str) -> str:
        return await self.call("eth_call", [{"to": to, "data": data}, "latest"])

    async def list_token_managers(self) -> List[str]:
        return decode_address_array(await self.eth_call(self.app_address, GET_TOKEN_MANAGERS_SELECTOR))

    async def list_accepted_deposit_tokens(self) -> List[str]:
        return decode_address_array(
            await self.eth_call(self.app_address, GET_ACCEPTED_DEPOSIT_TOKENS_SELECTOR)
        )

    async def manager_token(self, manager_address: str) -> str:
        return decode_address(await self.eth_call(manager_address, TOKEN_SELECTOR))

    async def erc20_decimals(self, token_address: str) -> int:
        return decode_uint(await self.eth_call(token_address, DECIMALS_SELECTOR))

    async def erc20_name(self, token_address: str) -> str:
        return decode_string(await self.eth_call(token_address, NAME_SELECTOR))

    async def erc20_symbol(self, token_address: str) -> str:
        return decode_string(await self.eth_call(token_address, SYMBOL_SELECTOR))

    async def block_timestamp(self, block_number: int) -> int:
        block = await self.call("eth_getBlockByNumber", [hex(block_number), False])
        if not block or "timestamp" not in block:
            raise LedgerCallError(f"Block {block_number} not found")
        return int(block["timestamp"], 16)

    async def current_network_type(self) -> str:
        if self.network_type_override:
            return self.network_type_override
        chain_id = int(await self.call("eth_chainId", []), 16)
        network = NETWORK_TYPES.get(chain_id, PRIVATE_NETWORK_TYPE)
        logger.debug(f"Connected to chain {chain_id} ({network})")
        return network
