"""Route enumeration, candidate pricing and split search."""

from swap_router.routing.types import (
    Route,
    TradeType,
    V2Route,
    V3Route,
    pool_addresses,
    route_to_string,
)

__all__ = [
    "Route",
    "TradeType",
    "V2Route",
    "V3Route",
    "pool_addresses",
    "route_to_string",
]
