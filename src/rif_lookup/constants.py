"""Rootstock contract addresses, endpoints and protocol constants."""

from typing import TypedDict


class NetworkDefaults(TypedDict):
    rpc_url: str
    rns_registry: str
    strif: str
    registration_contracts: list[str]
    blockscout_api_url: str
    rsk_explorer_api_url: str


# REF: https://developers.rsk.co/rif/rns/architecture/registry/
RNS_MAINNET_REGISTRY = "0xcb868aeabd31e2b66f74e9a55cf064abb31a4ad5"
RNS_TESTNET_REGISTRY = "0x7d284aaac6e925aad802a53c0c69efe3764597b8"

# FIFS address registrar: every new registration commits against it first
RNS_MAINNET_FIFS_ADDR_REGISTRAR = "0xd9c79ced86ecf49f5e4a973594634c83197c35ab"
RNS_TESTNET_FIFS_ADDR_REGISTRAR = "0x90734bd6bf96250a7b262e2bc34284b0d47c1e8d"

STRIF_MAINNET = "0x5db91e24bd32059584bbdb831a901f1199f3d459"
STRIF_TESTNET = "0xe7039717c51c44652fb47be1794884a82634f08f"

DEFAULT_MAINNET_RPC_URL = "https://public-node.rsk.co"
DEFAULT_TESTNET_RPC_URL = "https://public-node.testnet.rsk.co"

BLOCKSCOUT_MAINNET_API_URL = "https://rootstock.blockscout.com/api/v2"
BLOCKSCOUT_TESTNET_API_URL = "https://rootstock-testnet.blockscout.com/api/v2"

RSK_EXPLORER_MAINNET_API_URL = "https://be.explorer.rootstock.io/api"
RSK_EXPLORER_TESTNET_API_URL = "https://be.explorer.testnet.rootstock.io/api"

NETWORK_DEFAULTS: dict[str, NetworkDefaults] = {
    "mainnet": {
        "rpc_url": DEFAULT_MAINNET_RPC_URL,
        "rns_registry": RNS_MAINNET_REGISTRY,
        "strif": STRIF_MAINNET,
        "registration_contracts": [RNS_MAINNET_FIFS_ADDR_REGISTRAR],
        "blockscout_api_url": BLOCKSCOUT_MAINNET_API_URL,
        "rsk_explorer_api_url": RSK_EXPLORER_MAINNET_API_URL,
    },
    "testnet": {
        "rpc_url": DEFAULT_TESTNET_RPC_URL,
        "rns_registry": RNS_TESTNET_REGISTRY,
        "strif": STRIF_TESTNET,
        "registration_contracts": [RNS_TESTNET_FIFS_ADDR_REGISTRAR],
        "blockscout_api_url": BLOCKSCOUT_TESTNET_API_URL,
        "rsk_explorer_api_url": RSK_EXPLORER_TESTNET_API_URL,
    },
}

REVERSE_RECORD_SUFFIX = "addr.reverse"

STRIF_DECIMALS = 18

# stRIF methods that open or keep a staking position
STAKE_DEPOSIT_METHODS = frozenset({"depositfor", "deposit", "delegate", "delegatebysig"})
# stRIF methods that end a staking position
STAKE_EXIT_METHODS = frozenset({"withdrawto", "withdraw", "transfer", "transferfrom"})

COINGECKO_SIMPLE_PRICE_URL = "https://api.coingecko.com/api/v3/simple/price"
RIF_COINGECKO_ID = "rif-token"
DEFAULT_RIF_USD = 0.078623
PRICE_TTL_SECONDS = 24 * 60 * 60

# Signatures used to name calls when an indexer only reports the 4-byte selector
STRIF_FUNCTION_SIGNATURES = (
    "depositFor(address,uint256)",
    "withdrawTo(address,uint256)",
    "delegate(address)",
    "delegateBySig(address,uint256,uint256,uint8,bytes32,bytes32)",
    "transfer(address,uint256)",
    "transferFrom(address,address,uint256)",
    "approve(address,uint256)",
)
RNS_REGISTRAR_FUNCTION_SIGNATURES = (
    "commit(bytes32)",
    "register(string,address,bytes32,uint256)",
)
