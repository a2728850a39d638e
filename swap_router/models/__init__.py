"""Shared data models."""

from swap_router.models.types import (
    Address,
    PoolProtocol,
    Token,
    Uint256,
    is_valid_address,
    normalize_address,
)

__all__ = [
    "Address",
    "PoolProtocol",
    "Token",
    "Uint256",
    "is_valid_address",
    "normalize_address",
]
