"""Tick-crossing swap loop.

Walks the price curve from the current price towards the limit one
initialized tick (or bitmap word boundary) at a time, running
``compute_swap_step`` for each range and applying liquidity changes as
ticks are crossed. The provider calls are the only awaits; each resolves
before the next step starts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from clquote.common import metrics
from clquote.common.errors import InvalidPriceLimitError
from clquote.simulator.liquidity_math import add_delta
from clquote.simulator.swap_math import compute_swap_step
from clquote.simulator.tick_math import (
    MAX_SQRT_RATIO,
    MAX_TICK,
    MIN_SQRT_RATIO,
    MIN_TICK,
    get_sqrt_ratio_at_tick,
    get_tick_at_sqrt_ratio,
)

log = logging.getLogger(__name__)


@dataclass(slots=True)
class SwapState:
    amount_specified_remaining: int
    amount_calculated: int
    sqrt_price_x96: int
    tick: int
    liquidity: int


@dataclass(slots=True)
class StepComputations:
    sqrt_price_start_x96: int = 0
    tick_next: int = 0
    initialized: bool = False
    sqrt_price_next_x96: int = 0
    amount_in: int = 0
    amount_out: int = 0
    fee_amount: int = 0


@dataclass(frozen=True, slots=True)
class SwapResult:
    """Final state of a simulated swap.

    ``amount_calculated`` is negative (output owed to the trader) for exact
    input and positive (input owed to the pool) for exact output. A nonzero
    ``amount_specified_remaining`` means the price limit was hit first.
    """

    amount_calculated: int
    sqrt_ratio_x96: int
    liquidity: int
    tick_current: int
    amount_specified_remaining: int = 0
    steps: int = 0
    ticks_crossed: int = 0


def _check_price_limit(zero_for_one: bool, sqrt_ratio_x96: int, sqrt_price_limit_x96: int) -> None:
    if zero_for_one:
        if sqrt_price_limit_x96 <= MIN_SQRT_RATIO:
            raise InvalidPriceLimitError("RATIO_MIN", "price limit at or below MIN_SQRT_RATIO", limit=sqrt_price_limit_x96)
        if sqrt_price_limit_x96 >= sqrt_ratio_x96:
            raise InvalidPriceLimitError(
                "RATIO_CURRENT",
                "price limit must be below the current price for token0 -> token1",
                limit=sqrt_price_limit_x96,
                current=sqrt_ratio_x96,
            )
    else:
        if sqrt_price_limit_x96 >= MAX_SQRT_RATIO:
            raise InvalidPriceLimitError("RATIO_MAX", "price limit at or above MAX_SQRT_RATIO", limit=sqrt_price_limit_x96)
        if sqrt_price_limit_x96 <= sqrt_ratio_x96:
            raise InvalidPriceLimitError(
                "RATIO_CURRENT",
                "price limit must be above the current price for token1 -> token0",
                limit=sqrt_price_limit_x96,
                current=sqrt_ratio_x96,
            )


async def swap(
    fee: int,
    sqrt_ratio_x96: int,
    tick_current: int,
    liquidity: int,
    tick_spacing: int,
    tick_data_provider,
    zero_for_one: bool,
    amount_specified: int,
    sqrt_price_limit_x96: int | None = None,
) -> SwapResult:
    """Simulate a swap against a pool state.

    ``amount_specified`` is positive for exact input and negative for exact
    output. ``tick_data_provider`` is anything exposing the two provider
    coroutines.
    """
    if sqrt_price_limit_x96 is None:
        sqrt_price_limit_x96 = MIN_SQRT_RATIO + 1 if zero_for_one else MAX_SQRT_RATIO - 1
    _check_price_limit(zero_for_one, sqrt_ratio_x96, sqrt_price_limit_x96)

    exact_input = amount_specified >= 0
    state = SwapState(
        amount_specified_remaining=amount_specified,
        amount_calculated=0,
        sqrt_price_x96=sqrt_ratio_x96,
        tick=tick_current,
        liquidity=liquidity,
    )
    steps = 0
    crossed = 0

    while state.amount_specified_remaining != 0 and state.sqrt_price_x96 != sqrt_price_limit_x96:
        step = StepComputations(sqrt_price_start_x96=state.sqrt_price_x96)
        step.tick_next, step.initialized = await tick_data_provider.next_initialized_tick_within_one_word(
            state.tick, zero_for_one, tick_spacing
        )
        step.tick_next = max(MIN_TICK, min(MAX_TICK, step.tick_next))
        step.sqrt_price_next_x96 = get_sqrt_ratio_at_tick(step.tick_next)

        if zero_for_one:
            target = max(step.sqrt_price_next_x96, sqrt_price_limit_x96)
        else:
            target = min(step.sqrt_price_next_x96, sqrt_price_limit_x96)

        state.sqrt_price_x96, step.amount_in, step.amount_out, step.fee_amount = compute_swap_step(
            state.sqrt_price_x96, target, state.liquidity, state.amount_specified_remaining, fee
        )
        steps += 1

        if exact_input:
            state.amount_specified_remaining -= step.amount_in + step.fee_amount
            state.amount_calculated -= step.amount_out
        else:
            state.amount_specified_remaining += step.amount_out
            state.amount_calculated += step.amount_in + step.fee_amount

        if state.sqrt_price_x96 == step.sqrt_price_next_x96:
            if step.initialized:
                liquidity_net = (await tick_data_provider.get_tick(step.tick_next)).liquidity_net
                if zero_for_one:
                    liquidity_net = -liquidity_net
                state.liquidity = add_delta(state.liquidity, liquidity_net)
                crossed += 1
                log.debug("crossed tick %s, liquidity now %s", step.tick_next, state.liquidity)
            state.tick = step.tick_next - 1 if zero_for_one else step.tick_next
        elif state.sqrt_price_x96 != step.sqrt_price_start_x96:
            state.tick = get_tick_at_sqrt_ratio(state.sqrt_price_x96)

    metrics.increment_counter(metrics.SWAPS, {"mode": "exact_in" if exact_input else "exact_out"})
    metrics.observe_histogram(metrics.SWAP_STEPS, steps)
    if crossed:
        metrics.TICKS_CROSSED.inc(crossed)
    log.debug(
        "swap zero_for_one=%s specified=%s calculated=%s steps=%s crossed=%s",
        zero_for_one,
        amount_specified,
        state.amount_calculated,
        steps,
        crossed,
    )

    return SwapResult(
        amount_calculated=state.amount_calculated,
        sqrt_ratio_x96=state.sqrt_price_x96,
        liquidity=state.liquidity,
        tick_current=state.tick,
        amount_specified_remaining=state.amount_specified_remaining,
        steps=steps,
        ticks_crossed=crossed,
    )


__all__ = ["SwapState", "StepComputations", "SwapResult", "swap"]
