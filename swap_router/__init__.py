"""Split-route swap planner for Uniswap-style liquidity."""

from swap_router.routing.router import SplitRouter
from swap_router.routing.types import TradeType

__version__ = "0.1.0"
__all__ = ["SplitRouter", "TradeType", "__version__"]
