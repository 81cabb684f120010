"""
Tests for the JSON-RPC ledger call service.

Covers:
- ABI decoding of addresses, address arrays, uints, strings and bytes32
- Request shape of eth_call / eth_getBlockByNumber
- Network type detection and override
- Error mapping to LedgerCallError
"""

import json

import httpx
import pytest
from eth_abi import encode

from token_requests.providers.base import LedgerCallError
from token_requests.providers.jsonrpc import (
    DECIMALS_SELECTOR,
    GET_ACCEPTED_DEPOSIT_TOKENS_SELECTOR,
    GET_TOKEN_MANAGERS_SELECTOR,
    SYMBOL_SELECTOR,
    TOKEN_SELECTOR,
    JsonRpcLedgerService,
    decode_address,
    decode_address_array,
    decode_string,
    decode_uint,
)

from tests.fakes import MANAGER, ORG_TOKEN, TOKEN_A, TOKEN_B

APP = "0x0000000000000000000000000000000000000a99"
RPC_URL = "http://ledger.test"


def abi(abi_type: str, value) -> str:
    return "0x" + encode([abi_type], [value]).hex()


def encode_address_array(addresses) -> str:
    return abi("address[]", list(addresses))


def encode_string(text: str) -> str:
    return abi("string", text)


def encode_bytes32(text: str) -> str:
    return abi("bytes32", text.encode("utf-8"))


def make_service(responses, **kwargs):
    """Build a service whose transport answers eth_call by (to, selector)."""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        requests.append(body)
        method = body["method"]
        if method == "eth_call":
            call = body["params"][0]
            key = (call["to"].lower(), call["data"])
            if key not in responses:
                return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": -32000, "message": "execution reverted"}})
            result = responses[key]
        else:
            result = responses.get(method)
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    service = JsonRpcLedgerService(rpc_url=RPC_URL, app_address=APP, client=client, **kwargs)
    return service, requests


class TestDecoding:

    def test_decode_uint(self):
        assert decode_uint(abi("uint256", 18)) == 18

    def test_decode_address_is_checksummed(self):
        decoded = decode_address(abi("address", ORG_TOKEN))
        assert decoded.lower() == ORG_TOKEN
        assert decoded.startswith("0x")

    def test_decode_address_array(self):
        decoded = decode_address_array(encode_address_array([TOKEN_A, TOKEN_B]))
        assert [a.lower() for a in decoded] == [TOKEN_A, TOKEN_B]

    def test_decode_empty_array(self):
        assert decode_address_array(encode_address_array([])) == []

    def test_decode_string(self):
        assert decode_string(encode_string("Token A")) == "Token A"

    def test_decode_long_string(self):
        text = "A token name that is longer than thirty-two bytes"
        assert decode_string(encode_string(text)) == text

    def test_decode_bytes32(self):
        assert decode_string(encode_bytes32("MKR")) == "MKR"

    def test_empty_result_is_an_error(self):
        with pytest.raises(LedgerCallError):
            decode_uint("0x")

    def test_non_hex_result_is_an_error(self):
        with pytest.raises(LedgerCallError):
            decode_uint(None)

    def test_truncated_array_is_an_error(self):
        truncated = encode_address_array([TOKEN_A, TOKEN_B])[:-64]
        with pytest.raises(LedgerCallError):
            decode_address_array(truncated)


class TestCalls:

    @pytest.mark.asyncio
    async def test_lists_token_managers_from_app(self):
        service, requests = make_service({
            (APP, GET_TOKEN_MANAGERS_SELECTOR): encode_address_array([MANAGER]),
        })

        managers = await service.list_token_managers()

        assert [m.lower() for m in managers] == [MANAGER]
        assert requests[0]["params"] == [{"to": APP, "data": GET_TOKEN_MANAGERS_SELECTOR}, "latest"]

    @pytest.mark.asyncio
    async def test_lists_accepted_tokens(self):
        service, _ = make_service({
            (APP, GET_ACCEPTED_DEPOSIT_TOKENS_SELECTOR): encode_address_array([TOKEN_A, TOKEN_B]),
        })
        tokens = await service.list_accepted_deposit_tokens()
        assert [t.lower() for t in tokens] == [TOKEN_A, TOKEN_B]

    @pytest.mark.asyncio
    async def test_manager_token(self):
        service, _ = make_service({(MANAGER, TOKEN_SELECTOR): abi("address", ORG_TOKEN)})
        assert (await service.manager_token(MANAGER)).lower() == ORG_TOKEN

    @pytest.mark.asyncio
    async def test_erc20_metadata(self):
        service, _ = make_service({
            (TOKEN_A, DECIMALS_SELECTOR): abi("uint256", 6),
            (TOKEN_A, SYMBOL_SELECTOR): encode_string("AAA"),
        })
        assert await service.erc20_decimals(TOKEN_A) == 6
        assert await service.erc20_symbol(TOKEN_A) == "AAA"

    @pytest.mark.asyncio
    async def test_reverted_call_raises(self):
        service, _ = make_service({})
        with pytest.raises(LedgerCallError):
            await service.erc20_name(TOKEN_A)

    @pytest.mark.asyncio
    async def test_block_timestamp(self):
        service, requests = make_service({"eth_getBlockByNumber": {"number": "0x64", "timestamp": "0x5f5e1000"}})

        assert await service.block_timestamp(100) == 0x5F5E1000
        assert requests[0]["params"] == ["0x64", False]

    @pytest.mark.asyncio
    async def test_missing_block_raises(self):
        service, _ = make_service({"eth_getBlockByNumber": None})
        with pytest.raises(LedgerCallError):
            await service.block_timestamp(100)

    @pytest.mark.asyncio
    async def test_http_errors_are_mapped(self):
        def handler(request):
            return httpx.Response(502, text="bad gateway")

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        service = JsonRpcLedgerService(rpc_url=RPC_URL, app_address=APP, client=client)
        with pytest.raises(LedgerCallError):
            await service.list_token_managers()


class TestNetwork:

    @pytest.mark.asyncio
    async def test_network_type_from_chain_id(self):
        service, _ = make_service({"eth_chainId": "0x4"})
        assert await service.current_network_type() == "rinkeby"

    @pytest.mark.asyncio
    async def test_unknown_chain_is_private(self):
        service, _ = make_service({"eth_chainId": "0x539"})
        assert await service.current_network_type() == "private"

    @pytest.mark.asyncio
    async def test_configured_network_type_wins(self):
        service, requests = make_service({"eth_chainId": "0x1"}, network_type="rinkeby")
        assert await service.current_network_type() == "rinkeby"
        assert requests == []

    @pytest.mark.asyncio
    async def test_health_check(self):
        service, _ = make_service({"eth_chainId": "0x1"})
        assert await service.health_check() == {"status": "healthy", "network": "main"}

    @pytest.mark.asyncio
    async def test_unconfigured_service_is_unavailable(self):
        service = JsonRpcLedgerService(rpc_url="", app_address="")
        assert await service.ready() is False
        assert (await service.health_check())["status"] == "unavailable"
