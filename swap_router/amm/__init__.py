"""Pool models for the supported AMM protocols."""

from swap_router.amm.base import (
    InsufficientInputAmountError,
    InsufficientReservesError,
    Pool,
    PoolError,
)
from swap_router.amm.uniswap_v2 import UniswapV2Pool
from swap_router.amm.uniswap_v3 import UniswapV3Pool, encode_v3_path

__all__ = [
    # Base
    "Pool",
    "PoolError",
    "InsufficientInputAmountError",
    "InsufficientReservesError",
    # UniswapV2
    "UniswapV2Pool",
    # UniswapV3
    "UniswapV3Pool",
    "encode_v3_path",
]
