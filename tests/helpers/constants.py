"""Token addresses and Token objects used across tests.

Usage:
    from tests.helpers import WETH, USDC, WETH_TOKEN
    from tests.helpers.constants import TOKEN_A, TOKEN_B
"""

from swap_router.models.types import Token

# Mainnet tokens (lowercase, as produced by normalize_address)
WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"
USDT = "0xdac17f958d2ee523a2206206994597c13d831ec7"
WBTC = "0x2260fac5e5542a773aa44fbcfedf7c193bc2c599"
UNI = "0x1f9840a85d5af5bf1d1762f925bdaddc4201f984"

# Synthetic tokens with no routing-base status
TOKEN_A = "0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
TOKEN_B = "0xbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb"
TOKEN_C = "0xcccccccccccccccccccccccccccccccccccccccc"
TOKEN_D = "0xdddddddddddddddddddddddddddddddddddddddd"

TOKEN_DECIMALS = {
    WETH: 18,
    USDC: 6,
    DAI: 18,
    USDT: 6,
    WBTC: 8,
    UNI: 18,
    TOKEN_A: 18,
    TOKEN_B: 18,
    TOKEN_C: 18,
    TOKEN_D: 18,
}

WETH_TOKEN = Token(address=WETH, decimals=18, symbol="WETH")
USDC_TOKEN = Token(address=USDC, decimals=6, symbol="USDC")
DAI_TOKEN = Token(address=DAI, decimals=18, symbol="DAI")
USDT_TOKEN = Token(address=USDT, decimals=6, symbol="USDT")
WBTC_TOKEN = Token(address=WBTC, decimals=8, symbol="WBTC")
UNI_TOKEN = Token(address=UNI, decimals=18, symbol="UNI")

TOKEN_A_TOKEN = Token(address=TOKEN_A, decimals=18, symbol="A")
TOKEN_B_TOKEN = Token(address=TOKEN_B, decimals=18, symbol="B")
TOKEN_C_TOKEN = Token(address=TOKEN_C, decimals=18, symbol="C")


__all__ = [
    "WETH",
    "USDC",
    "DAI",
    "USDT",
    "WBTC",
    "UNI",
    "TOKEN_A",
    "TOKEN_B",
    "TOKEN_C",
    "TOKEN_D",
    "TOKEN_DECIMALS",
    "WETH_TOKEN",
    "USDC_TOKEN",
    "DAI_TOKEN",
    "USDT_TOKEN",
    "WBTC_TOKEN",
    "UNI_TOKEN",
    "TOKEN_A_TOKEN",
    "TOKEN_B_TOKEN",
    "TOKEN_C_TOKEN",
]
