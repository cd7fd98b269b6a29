"""Immutable concentrated-liquidity pool value.

A ``Pool`` is a snapshot of slot0 and active liquidity plus a tick data
provider. Quoting never mutates it; ``get_output_amount`` and
``get_input_amount`` return the post-swap state as a new ``Pool`` that shares
the same provider.
"""

from __future__ import annotations

from fractions import Fraction
from functools import cached_property
from typing import Any, Dict, Optional, Tuple, Union

from clquote.common.errors import InsufficientInputAmountError, InsufficientLiquidityError, ValidationError
from clquote.common.models import Token, TokenAmount
from clquote.simulator import swap_engine
from clquote.simulator.full_math import Q192
from clquote.simulator.swap_math import MAX_FEE
from clquote.simulator.tick_math import get_sqrt_ratio_at_tick
from clquote.ticks.provider import NoTickDataProvider, TickListDataProvider

# Fee tier (hundredths of a bip) -> tick spacing
TICK_SPACINGS: Dict[int, int] = {
    100: 1,
    200: 4,
    300: 6,
    400: 8,
    500: 10,
    3000: 60,
    10000: 200,
}


class Pool:
    def __init__(
        self,
        token_a: Token,
        token_b: Token,
        fee: int,
        sqrt_ratio_x96: int,
        liquidity: int,
        tick_current: int,
        ticks: Any = None,
        *,
        tick_spacing: Optional[int] = None,
        address: Optional[str] = None,
    ) -> None:
        if not isinstance(fee, int) or fee < 0 or fee >= MAX_FEE:
            raise ValidationError("FEE", f"fee {fee} outside [0, {MAX_FEE})", fee=fee)
        if tick_spacing is None:
            tick_spacing = TICK_SPACINGS.get(fee)
            if tick_spacing is None:
                raise ValidationError("TICK_SPACING", f"no default tick spacing for fee {fee}", fee=fee)
        if liquidity < 0:
            raise ValidationError("LIQUIDITY", "liquidity must be non-negative", liquidity=liquidity)

        lower = get_sqrt_ratio_at_tick(tick_current)
        upper = get_sqrt_ratio_at_tick(tick_current + 1)
        if not lower <= sqrt_ratio_x96 <= upper:
            raise ValidationError(
                "PRICE_BOUNDS",
                f"sqrt price {sqrt_ratio_x96} is outside tick {tick_current}",
                sqrt_ratio_x96=sqrt_ratio_x96,
                tick=tick_current,
            )

        token0, token1 = (token_a, token_b) if token_a.sorts_before(token_b) else (token_b, token_a)
        if ticks is None:
            provider = NoTickDataProvider()
        elif isinstance(ticks, (list, tuple)):
            provider = TickListDataProvider(ticks, tick_spacing)
        else:
            provider = ticks

        set_ = object.__setattr__
        set_(self, "token0", token0)
        set_(self, "token1", token1)
        set_(self, "fee", fee)
        set_(self, "sqrt_ratio_x96", sqrt_ratio_x96)
        set_(self, "liquidity", liquidity)
        set_(self, "tick_current", tick_current)
        set_(self, "tick_spacing", tick_spacing)
        set_(self, "tick_data_provider", provider)
        set_(self, "address", address.lower() if address else None)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"Pool is immutable; cannot set {name!r}")

    # ------------------------------------------------------------------ #
    def involves_token(self, token: Token) -> bool:
        return token.equals(self.token0) or token.equals(self.token1)

    @cached_property
    def token0_price(self) -> Fraction:
        """token1 per token0 in raw units."""
        return Fraction(self.sqrt_ratio_x96 * self.sqrt_ratio_x96, Q192)

    @cached_property
    def token1_price(self) -> Fraction:
        """token0 per token1 in raw units."""
        return Fraction(Q192, self.sqrt_ratio_x96 * self.sqrt_ratio_x96)

    def price_of(self, token: Token) -> Fraction:
        """Price of ``token`` in terms of the other pool token."""
        if not self.involves_token(token):
            raise ValidationError("TOKEN", f"{token.symbol} is not in this pool", token=token.address)
        return self.token0_price if token.equals(self.token0) else self.token1_price

    @property
    def chain_id(self) -> int:
        return self.token0.chain_id

    @property
    def key(self) -> Union[str, Tuple[str, str, int, int]]:
        """Identity used to detect the same pool appearing twice in a trade.

        The pool address when known; pools from different deployments can
        share a token pair and fee tier.
        """
        if self.address:
            return self.address
        return self.token0.address, self.token1.address, self.fee, self.tick_spacing

    # ------------------------------------------------------------------ #
    async def swap(
        self, zero_for_one: bool, amount_specified: int, sqrt_price_limit_x96: Optional[int] = None
    ) -> swap_engine.SwapResult:
        return await swap_engine.swap(
            self.fee,
            self.sqrt_ratio_x96,
            self.tick_current,
            self.liquidity,
            self.tick_spacing,
            self.tick_data_provider,
            zero_for_one,
            amount_specified,
            sqrt_price_limit_x96,
        )

    def _check_amount(self, amount: TokenAmount) -> None:
        if not self.involves_token(amount.token):
            raise ValidationError("TOKEN", f"{amount.token.symbol} is not in this pool", token=amount.token.address)
        if amount.raw < 0:
            raise ValidationError("AMOUNT", "amount must be non-negative", amount=amount.raw)

    def _after(self, result: swap_engine.SwapResult) -> "Pool":
        return Pool(
            self.token0,
            self.token1,
            self.fee,
            result.sqrt_ratio_x96,
            result.liquidity,
            result.tick_current,
            self.tick_data_provider,
            tick_spacing=self.tick_spacing,
            address=self.address,
        )

    async def get_output_amount(
        self, input_amount: TokenAmount, sqrt_price_limit_x96: Optional[int] = None
    ) -> Tuple[TokenAmount, "Pool"]:
        """Output for an exact input, plus the pool after the swap."""
        self._check_amount(input_amount)
        zero_for_one = input_amount.token.equals(self.token0)
        result = await self.swap(zero_for_one, input_amount.raw, sqrt_price_limit_x96)
        output = -result.amount_calculated
        if output <= 0:
            raise InsufficientInputAmountError(
                "INSUFFICIENT_INPUT_AMOUNT", "swap produces no output", amount_in=input_amount.raw, pool=self.address
            )
        output_token = self.token1 if zero_for_one else self.token0
        return TokenAmount(output_token, output), self._after(result)

    async def get_input_amount(
        self, output_amount: TokenAmount, sqrt_price_limit_x96: Optional[int] = None
    ) -> Tuple[TokenAmount, "Pool"]:
        """Input required for an exact output, plus the pool after the swap."""
        self._check_amount(output_amount)
        zero_for_one = output_amount.token.equals(self.token1)
        result = await self.swap(zero_for_one, -output_amount.raw, sqrt_price_limit_x96)
        if result.amount_specified_remaining != 0:
            raise InsufficientLiquidityError(
                "INSUFFICIENT_LIQUIDITY",
                "pool cannot deliver the requested output before its price limit",
                amount_out=output_amount.raw,
                shortfall=-result.amount_specified_remaining,
                pool=self.address,
            )
        input_token = self.token0 if zero_for_one else self.token1
        return TokenAmount(input_token, result.amount_calculated), self._after(result)

    def __repr__(self) -> str:  # pragma: no cover - convenience
        return (
            f"Pool({self.token0.symbol}/{self.token1.symbol} fee={self.fee} "
            f"tick={self.tick_current} liquidity={self.liquidity})"
        )


__all__ = ["TICK_SPACINGS", "Pool"]
