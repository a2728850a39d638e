"""Chain constants for the router.

Centralizes well-known token and contract addresses, per-chain reference
tokens, and gas heuristics. Addresses are lowercase for consistency with
normalize_address().
"""

from enum import IntEnum

from swap_router.models.types import Token, is_valid_address


class ChainId(IntEnum):
    """EVM chain ids with known routing data."""

    MAINNET = 1
    OPTIMISM = 10
    POLYGON = 137
    ARBITRUM_ONE = 42161
    ARBITRUM_GOERLI = 421613


def _token(chain_id: ChainId, address: str, decimals: int, symbol: str) -> Token:
    """Build a token, validating its address at import time to catch typos early."""
    if not is_valid_address(address):
        raise ValueError(f"Invalid {symbol} address: {address} (must be 0x + 40 hex chars)")
    return Token(address=address, decimals=decimals, symbol=symbol, chain_id=int(chain_id))


# Mainnet
WETH_MAINNET = _token(ChainId.MAINNET, "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2", 18, "WETH")
DAI_MAINNET = _token(ChainId.MAINNET, "0x6b175474e89094c44da98b954eedeac495271d0f", 18, "DAI")
USDC_MAINNET = _token(ChainId.MAINNET, "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48", 6, "USDC")
USDT_MAINNET = _token(ChainId.MAINNET, "0xdac17f958d2ee523a2206206994597c13d831ec7", 6, "USDT")
WBTC_MAINNET = _token(ChainId.MAINNET, "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599", 8, "WBTC")

# Optimism
WETH_OPTIMISM = _token(ChainId.OPTIMISM, "0x4200000000000000000000000000000000000006", 18, "WETH")
DAI_OPTIMISM = _token(ChainId.OPTIMISM, "0xda10009cbd5d07dd0cecc66161fc93d7c9000da1", 18, "DAI")
USDC_OPTIMISM = _token(ChainId.OPTIMISM, "0x7f5c764cbc14f9669b88837ca1490cca17c31607", 6, "USDC")
USDT_OPTIMISM = _token(ChainId.OPTIMISM, "0x94b008aa00579c1307b0ef2c499ad98a8ce58e58", 6, "USDT")

# Polygon
WMATIC_POLYGON = _token(ChainId.POLYGON, "0x0d500b1d8e8ef31e21c99d1db9a6444d3adf1270", 18, "WMATIC")
USDC_POLYGON = _token(ChainId.POLYGON, "0x2791bca1f2de4661ed88a30c99a7a9449aa84174", 6, "USDC")

# Arbitrum
WETH_ARBITRUM = _token(
    ChainId.ARBITRUM_ONE, "0x82af49447d8a07e3bd95bd0d56f35241523fbab1", 18, "WETH"
)
DAI_ARBITRUM = _token(
    ChainId.ARBITRUM_ONE, "0xda10009cbd5d07dd0cecc66161fc93d7c9000da1", 18, "DAI"
)
USDC_ARBITRUM = _token(
    ChainId.ARBITRUM_ONE, "0xff970a61a04b1ca14834a43f5de4533ebddb5cc8", 6, "USDC"
)
USDT_ARBITRUM = _token(
    ChainId.ARBITRUM_ONE, "0xfd086bc7cd5c481dcc9c85ebe478a1c0b69fcbb9", 6, "USDT"
)

WRAPPED_NATIVE_CURRENCY: dict[int, Token] = {
    ChainId.MAINNET: WETH_MAINNET,
    ChainId.OPTIMISM: WETH_OPTIMISM,
    ChainId.POLYGON: WMATIC_POLYGON,
    ChainId.ARBITRUM_ONE: WETH_ARBITRUM,
}

# Stablecoins used to price gas in USD. The first entry of each list is the
# canonical token that split-plan USD totals are normalized to.
USD_GAS_TOKENS_BY_CHAIN: dict[int, list[Token]] = {
    ChainId.MAINNET: [DAI_MAINNET, USDC_MAINNET, USDT_MAINNET],
    ChainId.OPTIMISM: [DAI_OPTIMISM, USDC_OPTIMISM, USDT_OPTIMISM],
    ChainId.POLYGON: [USDC_POLYGON],
    ChainId.ARBITRUM_ONE: [DAI_ARBITRUM, USDC_ARBITRUM, USDT_ARBITRUM],
}

# Intermediate tokens considered when building the candidate pool set
BASES_TO_CHECK_TRADES_AGAINST: dict[int, list[Token]] = {
    ChainId.MAINNET: [WETH_MAINNET, DAI_MAINNET, USDC_MAINNET, USDT_MAINNET, WBTC_MAINNET],
    ChainId.OPTIMISM: [WETH_OPTIMISM, USDC_OPTIMISM, DAI_OPTIMISM, USDT_OPTIMISM],
    ChainId.POLYGON: [WMATIC_POLYGON, USDC_POLYGON],
    ChainId.ARBITRUM_ONE: [WETH_ARBITRUM, USDC_ARBITRUM, DAI_ARBITRUM, USDT_ARBITRUM],
}

# Chains where the multicall gas accounting makes persistent out-of-gas
# failures meaningless; see V3QuoteProvider for how this is used.
ARBITRUM_CHAIN_IDS = frozenset({ChainId.ARBITRUM_ONE, ChainId.ARBITRUM_GOERLI})

# UniswapV3 QuoterV2 (same address on all supported chains)
QUOTER_V2_ADDRESS = "0x61ffe014ba17989e743c5f6cb21bf9697530b21e"

# UniswapInterfaceMulticall
MULTICALL_ADDRESSES: dict[int, str] = {
    ChainId.MAINNET: "0x1f98415757620b543a52e61c46b32eb19261f984",
    ChainId.OPTIMISM: "0x1f98415757620b543a52e61c46b32eb19261f984",
    ChainId.POLYGON: "0x1f98415757620b543a52e61c46b32eb19261f984",
    ChainId.ARBITRUM_ONE: "0xadf885960b47ea2cd9b55e6dac6b42b7cb2806db",
}
DEFAULT_MULTICALL_ADDRESS = "0x1f98415757620b543a52e61c46b32eb19261f984"

# V2 gas heuristic
V2_BASE_SWAP_COST = 135_000
V2_COST_PER_EXTRA_HOP = 50_000

# V3 gas heuristic (per chain; mainnet values are the fallback)
V3_BASE_SWAP_COST: dict[int, int] = {
    ChainId.MAINNET: 2_000,
    ChainId.OPTIMISM: 2_000,
    ChainId.POLYGON: 2_000,
    ChainId.ARBITRUM_ONE: 5_000,
}
V3_COST_PER_HOP = 80_000
V3_COST_PER_INIT_TICK = 31_000

# V3 fee tiers in hundredths of a bip (3000 = 0.3%)
V3_FEE_TIERS = (100, 500, 3000, 10000)

__all__ = [
    "ChainId",
    "WETH_MAINNET",
    "DAI_MAINNET",
    "USDC_MAINNET",
    "USDT_MAINNET",
    "WBTC_MAINNET",
    "WETH_OPTIMISM",
    "DAI_OPTIMISM",
    "USDC_OPTIMISM",
    "USDT_OPTIMISM",
    "WMATIC_POLYGON",
    "USDC_POLYGON",
    "WETH_ARBITRUM",
    "DAI_ARBITRUM",
    "USDC_ARBITRUM",
    "USDT_ARBITRUM",
    "WRAPPED_NATIVE_CURRENCY",
    "USD_GAS_TOKENS_BY_CHAIN",
    "BASES_TO_CHECK_TRADES_AGAINST",
    "ARBITRUM_CHAIN_IDS",
    "QUOTER_V2_ADDRESS",
    "MULTICALL_ADDRESSES",
    "DEFAULT_MULTICALL_ADDRESS",
    "V2_BASE_SWAP_COST",
    "V2_COST_PER_EXTRA_HOP",
    "V3_BASE_SWAP_COST",
    "V3_COST_PER_HOP",
    "V3_COST_PER_INIT_TICK",
    "V3_FEE_TIERS",
]
