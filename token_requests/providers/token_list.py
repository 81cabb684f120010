"""
Token metadata fallback table for tokens whose contracts cannot be read
reliably (bytes32 name/symbol, or no metadata methods at all)
"""

from typing import Any, Dict, Optional

ANT_MAINNET_TOKEN_ADDRESS = "0x960b236a07cf122663c4303350609a66a7b288c0"
DAI_MAINNET_TOKEN_ADDRESS = "0x6b175474e89094c44da98b954eedeac495271d0f"
SAI_MAINNET_TOKEN_ADDRESS = "0x89d24a6b4ccb1b6faa2625fe562bdd9a23260359"
MKR_MAINNET_TOKEN_ADDRESS = "0x9f8f72aa9304c8b593d555f12ef6589cc3a579a2"

# network type -> lowercase address -> metadata
# Values are kept as they appear in published token lists, decimals included
KNOWN_TOKENS_FALLBACK: Dict[str, Dict[str, Dict[str, Any]]] = {
    "main": {
        ANT_MAINNET_TOKEN_ADDRESS: {"symbol": "ANT", "name": "Aragon Network Token", "decimals": "18"},
        DAI_MAINNET_TOKEN_ADDRESS: {"symbol": "DAI", "name": "Dai Stablecoin", "decimals": "18"},
        SAI_MAINNET_TOKEN_ADDRESS: {"symbol": "SAI", "name": "Sai Stablecoin v1.0", "decimals": "18"},
        MKR_MAINNET_TOKEN_ADDRESS: {"symbol": "MKR", "name": "Maker", "decimals": "18"},
    },
}

TOKEN_FIELDS = ("decimals", "name", "symbol")


def token_data_fallback(token_address: str, field_name: str, network_type: Optional[str]) -> Optional[Any]:
    """
    Get a single fallback metadata field for a token on a network.

    Returns None when the table has no entry for the token, network or field.
    """
    if not token_address or not network_type:
        return None

    network_tokens = KNOWN_TOKENS_FALLBACK.get(network_type)
    if not network_tokens:
        return None

    token_data = network_tokens.get(token_address.lower())
    if not token_data:
        return None

    return token_data.get(field_name)
