"""UniswapV2 constant-product pool.

UniswapV2 uses the constant product formula: x * y = k
with a fee (0.3% by default) taken from the input amount.
"""

from __future__ import annotations

from dataclasses import dataclass

from swap_router.amm.base import InsufficientInputAmountError, InsufficientReservesError
from swap_router.models.types import normalize_address
from swap_router.safe_int import S


@dataclass(frozen=True)
class UniswapV2Pool:
    """A UniswapV2 pair with a reserve snapshot."""

    address: str
    token0: str
    token1: str
    reserve0: int
    reserve1: int
    # Fee in basis points (30 = 0.3%); some forks use different fees
    fee_bps: int = 30

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", normalize_address(self.address))
        object.__setattr__(self, "token0", normalize_address(self.token0))
        object.__setattr__(self, "token1", normalize_address(self.token1))
        if self.token0 == self.token1:
            raise ValueError(f"Pool {self.address} has identical tokens")
        if self.reserve0 < 0 or self.reserve1 < 0:
            raise ValueError(f"Pool {self.address} has negative reserves")

    @property
    def fee_multiplier(self) -> int:
        """Fee multiplier for AMM math (10000 - fee_bps).

        For 30 bps (0.3%), this returns 9970.
        """
        return 10000 - self.fee_bps

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

    def get_reserves(self, token_in: str) -> tuple[int, int]:
        """Get reserves ordered as (reserve_in, reserve_out)."""
        token_in_norm = normalize_address(token_in)
        if token_in_norm == self.token0:
            return self.reserve0, self.reserve1
        elif token_in_norm == self.token1:
            return self.reserve1, self.reserve0
        else:
            raise ValueError(f"Token {token_in} not in pool {self.address}")

    def quote_at_spot(self, token_in: str, amount: int) -> int:
        """Convert `amount` of token_in to the other token at the reserve ratio.

        No fee and no price impact; used for gas pricing.
        """
        reserve_in, reserve_out = self.get_reserves(token_in)
        if reserve_in == 0:
            return 0
        return amount * reserve_out // reserve_in

    def reserve_of(self, token: str) -> int:
        """Reserve held by the pool for `token`."""
        return self.get_reserves(token)[0]

    def get_output_amount(self, token_in: str, amount_in: int) -> int:
        """Output received for selling exactly `amount_in` of `token_in`.

        Formula: out = (in * fee * res_out) / (res_in * 10000 + in * fee)

        Raises:
            InsufficientReservesError: If either reserve is empty
            InsufficientInputAmountError: If the output rounds down to zero
        """
        reserve_in, reserve_out = self.get_reserves(token_in)
        if reserve_in == 0 or reserve_out == 0:
            raise InsufficientReservesError(f"Pool {self.address} has no reserves")

        amount_in_with_fee = S(amount_in) * S(self.fee_multiplier)
        numerator = amount_in_with_fee * S(reserve_out)
        denominator = S(reserve_in) * S(10000) + amount_in_with_fee
        amount_out = (numerator // denominator).value

        if amount_out == 0:
            raise InsufficientInputAmountError(
                f"Input {amount_in} too small for pool {self.address}"
            )
        return amount_out

    def get_input_amount(self, token_out: str, amount_out: int) -> int:
        """Input required to buy exactly `amount_out` of `token_out`.

        Formula: in = (res_in * out * 10000) / ((res_out - out) * fee) + 1

        Raises:
            InsufficientReservesError: If reserves are empty or cannot cover amount_out
        """
        reserve_out, reserve_in = self.get_reserves(token_out)
        if reserve_in == 0 or reserve_out == 0 or amount_out >= reserve_out:
            raise InsufficientReservesError(
                f"Pool {self.address} cannot provide {amount_out} of {token_out}"
            )

        numerator = S(reserve_in) * S(amount_out) * S(10000)
        denominator = (S(reserve_out) - S(amount_out)) * S(self.fee_multiplier)
        return ((numerator // denominator) + S(1)).value

    def __str__(self) -> str:
        return f"{self.token0}/{self.token1}"


__all__ = ["UniswapV2Pool"]
