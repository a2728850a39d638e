"""Pool and token providers.

Providers sit at the edge of the router: they decide which pools and tokens
a planning run sees. The static implementations serve data supplied up
front (e.g. in an API request or a test fixture).
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

import structlog

from swap_router.constants import BASES_TO_CHECK_TRADES_AGAINST
from swap_router.errors import ConfigurationError
from swap_router.models.types import Token, normalize_address
from swap_router.pools.registry import PoolRegistry
from swap_router.pools.types import AnyPool

logger = structlog.get_logger()


class PoolProvider(Protocol):
    """Source of the pool snapshot for a planning run."""

    def get_pools(self, token_in: str, token_out: str) -> PoolRegistry:
        """Pools relevant to routing token_in -> token_out."""
        ...

    def get_pool_address(self, token_a: str, token_b: str, fee: int | None = None) -> str | None:
        """Address of the pool for a pair (V3 when fee is given)."""
        ...


class TokenProvider(Protocol):
    """Source of token metadata."""

    def get_tokens(self, addresses: Iterable[str]) -> dict[str, Token]:
        """Look up tokens by address. Keys are normalized addresses."""
        ...


class StaticPoolProvider:
    """Serves a fixed pool set, narrowed to pools relevant for a trade.

    Only pools connecting two tokens from {token_in, token_out} plus the
    chain's routing bases are kept, which bounds route enumeration.
    """

    def __init__(
        self,
        chain_id: int,
        pools: Iterable[AnyPool],
        bases: Iterable[Token] | None = None,
    ) -> None:
        self.chain_id = chain_id
        self._registry = PoolRegistry(pools)
        if bases is None:
            bases = BASES_TO_CHECK_TRADES_AGAINST.get(chain_id, [])
        self._bases = [b.address for b in bases]

    def get_pools(self, token_in: str, token_out: str) -> PoolRegistry:
        """Pools relevant for the pair. The result may be empty.

        Raises:
            ConfigurationError: If the provider holds no pools at all
        """
        if self._registry.pool_count == 0:
            raise ConfigurationError(f"No pools found for chain {self.chain_id}")

        tokens = {normalize_address(token_in), normalize_address(token_out), *self._bases}
        registry = self._registry.filter(tokens)

        logger.debug(
            "pools_selected",
            chain_id=self.chain_id,
            total=self._registry.pool_count,
            selected=registry.pool_count,
            v2=len(registry.v2_pools),
            v3=len(registry.v3_pools),
        )
        return registry

    def get_pool_address(self, token_a: str, token_b: str, fee: int | None = None) -> str | None:
        return self._registry.get_pool_address(token_a, token_b, fee)


class StaticTokenProvider:
    """Serves token metadata from a fixed list."""

    def __init__(self, tokens: Iterable[Token]) -> None:
        self._tokens = {token.address: token for token in tokens}

    def get_tokens(self, addresses: Iterable[str]) -> dict[str, Token]:
        """Raises KeyError for an unknown address."""
        result: dict[str, Token] = {}
        for address in addresses:
            key = normalize_address(address)
            if key not in self._tokens:
                raise KeyError(f"Unknown token: {address}")
            result[key] = self._tokens[key]
        return result

    def get_token(self, address: str) -> Token:
        return self.get_tokens([address])[normalize_address(address)]


__all__ = ["PoolProvider", "TokenProvider", "StaticPoolProvider", "StaticTokenProvider"]
