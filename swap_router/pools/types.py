"""Pool type aliases."""

from typing import TypeAlias

from swap_router.amm.uniswap_v2 import UniswapV2Pool
from swap_router.amm.uniswap_v3 import UniswapV3Pool

AnyPool: TypeAlias = UniswapV2Pool | UniswapV3Pool

__all__ = ["AnyPool"]
