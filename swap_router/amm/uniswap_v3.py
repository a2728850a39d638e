"""UniswapV3 pool snapshot and QuoterV2 path encoding.

V3 swap math is not simulated locally: quotes come from the on-chain
QuoterV2 contract. This module only holds what routing needs (the token
pair, fee tier and spot price) plus the calldata encoding for the quoter.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from eth_abi import decode, encode  # type: ignore[attr-defined]
from eth_abi.packed import encode_packed

from swap_router.models.types import normalize_address

Q192 = 2**192

# Function selectors for QuoterV2
QUOTE_EXACT_INPUT_SELECTOR = bytes.fromhex("cdca1753")  # quoteExactInput(bytes,uint256)
QUOTE_EXACT_OUTPUT_SELECTOR = bytes.fromhex("2f80bb1d")  # quoteExactOutput(bytes,uint256)

# (amount, sqrtPriceX96AfterList, initializedTicksCrossedList, gasEstimate)
QUOTE_RESULT_TYPES = ["uint256", "uint160[]", "uint32[]", "uint256"]


@dataclass(frozen=True)
class UniswapV3Pool:
    """A UniswapV3 pool with its spot state.

    Attributes:
        fee: Fee tier in hundredths of a bip (3000 = 0.3%)
        liquidity: In-range liquidity, used to rank pools for gas pricing
        sqrt_price_x96: sqrt(token1/token0) as a Q64.96 fixed point number
    """

    address: str
    token0: str
    token1: str
    fee: int
    liquidity: int = 0
    sqrt_price_x96: int = 0
    tick: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", normalize_address(self.address))
        object.__setattr__(self, "token0", normalize_address(self.token0))
        object.__setattr__(self, "token1", normalize_address(self.token1))
        if self.token0 == self.token1:
            raise ValueError(f"Pool {self.address} has identical tokens")

    def involves_token(self, token: str) -> bool:
        token_norm = normalize_address(token)
        return token_norm == self.token0 or token_norm == self.token1

    def other_token(self, token: str) -> str:
        token_norm = normalize_address(token)
        if token_norm == self.token0:
            return self.token1
        elif token_norm == self.token1:
            return self.token0
        else:
            raise ValueError(f"Token {token} not in pool {self.address}")

    def quote_at_spot(self, token_in: str, amount: int) -> int:
        """Convert `amount` of token_in to the other token at the spot price.

        No fee and no price impact: this is a mid-price conversion used for
        gas pricing, not a swap quote.
        """
        price_x192 = self.sqrt_price_x96 * self.sqrt_price_x96
        if price_x192 == 0:
            return 0
        if normalize_address(token_in) == self.token0:
            return amount * price_x192 // Q192
        self.other_token(token_in)
        return amount * Q192 // price_x192

    def __str__(self) -> str:
        return f"{self.token0}/{self.token1}/{self.fee}"


def encode_v3_path(
    pools: Sequence[UniswapV3Pool],
    token_in: str,
    *,
    exact_output: bool = False,
) -> bytes:
    """Encode a multi-hop path as token (20 bytes) | fee (3 bytes) | token ...

    The quoter expects exact-output paths in reverse, starting from the
    output token.

    Raises:
        ValueError: If pools is empty or does not connect from token_in
    """
    if not pools:
        raise ValueError("Cannot encode an empty path")

    types: list[str] = ["address"]
    values: list[object] = [normalize_address(token_in)]
    current = normalize_address(token_in)
    for pool in pools:
        current = pool.other_token(current)
        types.extend(["uint24", "address"])
        values.extend([pool.fee, current])

    if exact_output:
        types.reverse()
        values.reverse()

    return encode_packed(types, values)


def encode_quote_call(path: bytes, amount: int, *, exact_output: bool = False) -> bytes:
    """Build QuoterV2 calldata for quoteExactInput / quoteExactOutput."""
    selector = QUOTE_EXACT_OUTPUT_SELECTOR if exact_output else QUOTE_EXACT_INPUT_SELECTOR
    return selector + encode(["bytes", "uint256"], [path, amount])


def decode_quote_result(data: bytes) -> tuple[int, list[int], list[int], int]:
    """Decode QuoterV2 return data.

    Returns:
        (amount, sqrt_price_x96_after_list, initialized_ticks_crossed_list, gas_estimate)
    """
    amount, sqrt_prices, ticks_crossed, gas_estimate = decode(QUOTE_RESULT_TYPES, data)
    return (
        int(amount),
        [int(p) for p in sqrt_prices],
        [int(t) for t in ticks_crossed],
        int(gas_estimate),
    )


__all__ = [
    "UniswapV3Pool",
    "QUOTE_EXACT_INPUT_SELECTOR",
    "QUOTE_EXACT_OUTPUT_SELECTOR",
    "QUOTE_RESULT_TYPES",
    "encode_v3_path",
    "encode_quote_call",
    "decode_quote_result",
]
