"""Trades: one or more simulated routes with a fixed input or output amount."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from fractions import Fraction
from functools import cached_property
from typing import Iterable, List, Optional, Sequence, Tuple

from clquote.common.errors import ValidationError
from clquote.common.models import TokenAmount
from clquote.entities.route import Route


class TradeType(enum.IntEnum):
    EXACT_INPUT = 0
    EXACT_OUTPUT = 1


@dataclass(frozen=True, slots=True)
class RouteSwap:
    route: Route
    input_amount: TokenAmount
    output_amount: TokenAmount


def _hops(trade: "Trade") -> int:
    return sum(len(swap.route.token_path) for swap in trade.swaps)


def trade_comparator(a: "Trade", b: "Trade") -> int:
    """Order trades best first: more output, then less input, then fewer hops."""
    if not a.input_amount.token.equals(b.input_amount.token):
        raise ValidationError("INPUT_CURRENCY", "trades spend different tokens")
    if not a.output_amount.token.equals(b.output_amount.token):
        raise ValidationError("OUTPUT_CURRENCY", "trades produce different tokens")
    if a.output_amount.raw == b.output_amount.raw:
        if a.input_amount.raw == b.input_amount.raw:
            return _hops(a) - _hops(b)
        return -1 if a.input_amount.raw < b.input_amount.raw else 1
    return 1 if a.output_amount.raw < b.output_amount.raw else -1


def _check_slippage(slippage_tolerance: Fraction) -> Fraction:
    if isinstance(slippage_tolerance, bool) or not isinstance(slippage_tolerance, (Fraction, int)):
        raise ValidationError(
            "SLIPPAGE_TOLERANCE",
            f"slippage tolerance must be a Fraction, got {type(slippage_tolerance).__name__}",
        )
    if slippage_tolerance < 0:
        raise ValidationError("SLIPPAGE_TOLERANCE", "slippage tolerance must be non-negative")
    return Fraction(slippage_tolerance)


class Trade:
    def __init__(self, swaps: Sequence[RouteSwap], trade_type: TradeType) -> None:
        if not swaps:
            raise ValidationError("ROUTES", "a trade needs at least one route")
        input_token = swaps[0].input_amount.token
        output_token = swaps[0].output_amount.token
        if not all(input_token.equals(s.route.input) and input_token.equals(s.input_amount.token) for s in swaps):
            raise ValidationError("INPUT_CURRENCY_MATCH", "routes do not share the input token")
        if not all(output_token.equals(s.route.output) and output_token.equals(s.output_amount.token) for s in swaps):
            raise ValidationError("OUTPUT_CURRENCY_MATCH", "routes do not share the output token")
        keys = [pool.key for s in swaps for pool in s.route.pools]
        if len(keys) != len(set(keys)):
            raise ValidationError("POOLS_DUPLICATED", "a pool appears more than once in the trade")
        self.swaps: Tuple[RouteSwap, ...] = tuple(swaps)
        self.trade_type = TradeType(trade_type)

    # construction ------------------------------------------------------- #
    @staticmethod
    async def _simulate(route: Route, amount: TokenAmount, trade_type: TradeType) -> RouteSwap:
        if trade_type == TradeType.EXACT_INPUT:
            if not amount.token.equals(route.input):
                raise ValidationError("INPUT", "amount is not in the route's input token")
            current = amount
            for pool in route.pools:
                current, _ = await pool.get_output_amount(current)
            return RouteSwap(route, amount, current)
        if not amount.token.equals(route.output):
            raise ValidationError("OUTPUT", "amount is not in the route's output token")
        current = amount
        for pool in reversed(route.pools):
            current, _ = await pool.get_input_amount(current)
        return RouteSwap(route, current, amount)

    @classmethod
    async def from_route(cls, route: Route, amount: TokenAmount, trade_type: TradeType) -> "Trade":
        """Simulate ``amount`` through every pool of ``route``."""
        return cls([await cls._simulate(route, amount, trade_type)], trade_type)

    @classmethod
    async def exact_in(cls, route: Route, amount_in: TokenAmount) -> "Trade":
        return await cls.from_route(route, amount_in, TradeType.EXACT_INPUT)

    @classmethod
    async def exact_out(cls, route: Route, amount_out: TokenAmount) -> "Trade":
        return await cls.from_route(route, amount_out, TradeType.EXACT_OUTPUT)

    @classmethod
    async def from_routes(cls, routes: Iterable[Tuple[Route, TokenAmount]], trade_type: TradeType) -> "Trade":
        swaps: List[RouteSwap] = []
        for route, amount in routes:
            swaps.append(await cls._simulate(route, amount, trade_type))
        return cls(swaps, trade_type)

    @classmethod
    def create_unchecked_trade(
        cls, route: Route, input_amount: TokenAmount, output_amount: TokenAmount, trade_type: TradeType
    ) -> "Trade":
        """Build a trade from amounts simulated elsewhere."""
        return cls([RouteSwap(route, input_amount, output_amount)], trade_type)

    # derived values ----------------------------------------------------- #
    @property
    def route(self) -> Route:
        if len(self.swaps) != 1:
            raise ValidationError("MULTIPLE_ROUTES", "trade has more than one route")
        return self.swaps[0].route

    @cached_property
    def input_amount(self) -> TokenAmount:
        return TokenAmount(self.swaps[0].input_amount.token, sum(s.input_amount.raw for s in self.swaps))

    @cached_property
    def output_amount(self) -> TokenAmount:
        return TokenAmount(self.swaps[0].output_amount.token, sum(s.output_amount.raw for s in self.swaps))

    @cached_property
    def execution_price(self) -> Fraction:
        """Output per input, raw units."""
        return Fraction(self.output_amount.raw, self.input_amount.raw)

    @cached_property
    def price_impact(self) -> Fraction:
        """Relative shortfall of the output against the routes' mid prices."""
        spot_output = sum((s.route.mid_price * s.input_amount.raw for s in self.swaps), Fraction(0))
        return (spot_output - self.output_amount.raw) / spot_output

    def minimum_amount_out(self, slippage_tolerance: Fraction, amount_out: Optional[TokenAmount] = None) -> TokenAmount:
        slippage_tolerance = _check_slippage(slippage_tolerance)
        amount_out = amount_out or self.output_amount
        if self.trade_type == TradeType.EXACT_OUTPUT:
            return amount_out
        return TokenAmount(amount_out.token, math.floor(Fraction(amount_out.raw) / (1 + slippage_tolerance)))

    def maximum_amount_in(self, slippage_tolerance: Fraction, amount_in: Optional[TokenAmount] = None) -> TokenAmount:
        slippage_tolerance = _check_slippage(slippage_tolerance)
        amount_in = amount_in or self.input_amount
        if self.trade_type == TradeType.EXACT_INPUT:
            return amount_in
        return TokenAmount(amount_in.token, math.floor((1 + slippage_tolerance) * amount_in.raw))

    def worst_execution_price(self, slippage_tolerance: Fraction) -> Fraction:
        return Fraction(
            self.minimum_amount_out(slippage_tolerance).raw,
            self.maximum_amount_in(slippage_tolerance).raw,
        )

    def __repr__(self) -> str:  # pragma: no cover - convenience
        paths = ", ".join(repr(s.route) for s in self.swaps)
        return f"Trade({self.trade_type.name}, in={self.input_amount.raw}, out={self.output_amount.raw}, {paths})"


__all__ = ["TradeType", "RouteSwap", "Trade", "trade_comparator"]
