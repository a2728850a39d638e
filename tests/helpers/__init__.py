"""Shared test helpers: token constants and object factories.

Usage:
    from tests.helpers import WETH, USDC, make_v2_pool
"""

from tests.helpers.constants import (
    DAI,
    DAI_TOKEN,
    TOKEN_A,
    TOKEN_A_TOKEN,
    TOKEN_B,
    TOKEN_B_TOKEN,
    TOKEN_C,
    TOKEN_C_TOKEN,
    TOKEN_D,
    TOKEN_DECIMALS,
    UNI,
    UNI_TOKEN,
    USDC,
    USDC_TOKEN,
    USDT,
    USDT_TOKEN,
    WBTC,
    WBTC_TOKEN,
    WETH,
    WETH_TOKEN,
)
from tests.helpers.factories import (
    calldata_amount,
    make_candidate,
    make_v2_pool,
    make_v3_pool,
    next_pool_address,
    quote_return_data,
    quoter_response,
    reset_pool_counter,
    reverting_response,
)

__all__ = [
    # Constants
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
    # Factories
    "make_v2_pool",
    "make_v3_pool",
    "make_candidate",
    "next_pool_address",
    "quote_return_data",
    "calldata_amount",
    "quoter_response",
    "reverting_response",
    "reset_pool_counter",
]
