"""Shared pool interface and pool-level errors."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


class PoolError(Exception):
    """Base exception for pool exchange-function failures."""

    pass


class InsufficientInputAmountError(PoolError):
    """Input is too small to produce any output after fees."""

    pass


class InsufficientReservesError(PoolError):
    """The pool cannot satisfy the requested amount with its reserves."""

    pass


@runtime_checkable
class Pool(Protocol):
    """Anything that connects two tokens and can be used as a route hop.

    Route enumeration only needs the token pair and the address; pricing
    is protocol-specific and lives on the concrete classes.
    """

    address: str
    token0: str
    token1: str

    def involves_token(self, token: str) -> bool:
        """Check whether token is one of the pool's two tokens."""
        ...

    def other_token(self, token: str) -> str:
        """Return the pool's token that is not `token`."""
        ...


__all__ = [
    "Pool",
    "PoolError",
    "InsufficientInputAmountError",
    "InsufficientReservesError",
]
