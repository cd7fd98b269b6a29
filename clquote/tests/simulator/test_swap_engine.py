import pytest

from clquote.common.errors import InvalidPriceLimitError, TickNotFoundError, ValidationError
from clquote.simulator import swap_engine
from clquote.simulator.sqrt_price_math import get_amount0_delta
from clquote.simulator.tick_math import MAX_SQRT_RATIO, MAX_TICK, MIN_SQRT_RATIO, get_sqrt_ratio_at_tick
from clquote.ticks import tick_list
from clquote.ticks.provider import NoTickDataProvider, TickListDataProvider
from clquote.ticks.tick_list import Tick

Q96 = 2**96
ONE_E18 = 10**18


def _narrow_provider():
    # liquidity only between ticks -120 and 120
    return TickListDataProvider([Tick(-120, ONE_E18, ONE_E18), Tick(120, ONE_E18, -ONE_E18)], 60)


class DictProvider:
    """Minimal duck-typed provider backed by a dict of ticks."""

    def __init__(self, ticks, spacing):
        self.ticks = {t.index: t for t in ticks}
        self.ordered = sorted(ticks, key=lambda t: t.index)
        self.spacing = spacing
        self.lookups = 0

    async def get_tick(self, index):
        if index not in self.ticks:
            raise TickNotFoundError("NOT_CONTAINED", index=index)
        return self.ticks[index]

    async def next_initialized_tick_within_one_word(self, tick, lte, tick_spacing):
        self.lookups += 1
        return tick_list.next_initialized_tick_within_one_word(self.ordered, tick, lte, tick_spacing)


@pytest.mark.asyncio
async def test_crossing_last_tick_drains_liquidity():
    result = await swap_engine.swap(3000, Q96, 0, ONE_E18, 60, _narrow_provider(), False, 10**30)
    assert result.ticks_crossed == 1
    assert result.liquidity == 0
    assert result.sqrt_ratio_x96 == MAX_SQRT_RATIO - 1
    assert result.tick_current == MAX_TICK - 1
    assert result.amount_specified_remaining > 0
    assert -result.amount_calculated == get_amount0_delta(Q96, get_sqrt_ratio_at_tick(120), ONE_E18, False)
    assert result.steps > 1


@pytest.mark.asyncio
async def test_crossing_downwards_lands_below_boundary():
    # stop exactly at the limit set to tick -120's price
    limit = get_sqrt_ratio_at_tick(-120)
    result = await swap_engine.swap(3000, Q96, 0, ONE_E18, 60, _narrow_provider(), True, 10**30, limit)
    assert result.sqrt_ratio_x96 == limit
    # boundary reached and crossed: liquidity_net of -120 is negated going down
    assert result.liquidity == 0
    assert result.tick_current == -121


@pytest.mark.asyncio
async def test_partial_swap_recomputes_tick():
    result = await swap_engine.swap(3000, Q96, 0, ONE_E18, 60, _narrow_provider(), True, 10**15)
    assert result.amount_specified_remaining == 0
    assert result.ticks_crossed == 0
    assert result.sqrt_ratio_x96 < Q96
    assert -120 <= result.tick_current < 0
    assert result.liquidity == ONE_E18


@pytest.mark.asyncio
async def test_exact_output_consumes_specified_amount():
    result = await swap_engine.swap(3000, Q96, 0, ONE_E18, 60, _narrow_provider(), True, -10**15)
    assert result.amount_specified_remaining == 0
    assert result.amount_calculated > 10**15


@pytest.mark.asyncio
async def test_any_object_with_the_two_coroutines_works_as_provider():
    ticks = [Tick(-120, ONE_E18, ONE_E18), Tick(120, ONE_E18, -ONE_E18)]
    duck = DictProvider(ticks, 60)
    a = await swap_engine.swap(500, Q96, 0, ONE_E18, 60, duck, False, 10**17)
    b = await swap_engine.swap(500, Q96, 0, ONE_E18, 60, TickListDataProvider(ticks, 60), False, 10**17)
    assert a == b
    assert duck.lookups == a.steps


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "zero_for_one,limit,kind",
    [
        (True, Q96, "RATIO_CURRENT"),
        (True, Q96 + 1, "RATIO_CURRENT"),
        (True, MIN_SQRT_RATIO, "RATIO_MIN"),
        (False, Q96, "RATIO_CURRENT"),
        (False, Q96 - 1, "RATIO_CURRENT"),
        (False, MAX_SQRT_RATIO, "RATIO_MAX"),
    ],
)
async def test_invalid_price_limit(zero_for_one, limit, kind):
    with pytest.raises(InvalidPriceLimitError) as err:
        await swap_engine.swap(3000, Q96, 0, ONE_E18, 60, _narrow_provider(), zero_for_one, 1000, limit)
    assert err.value.kind == kind


@pytest.mark.asyncio
async def test_no_tick_data_fails_on_use():
    with pytest.raises(ValidationError) as err:
        await swap_engine.swap(3000, Q96, 0, ONE_E18, 60, NoTickDataProvider(), True, 1000)
    assert err.value.kind == "NO_TICK_DATA"


@pytest.mark.asyncio
async def test_zero_amount_does_not_touch_provider():
    result = await swap_engine.swap(3000, Q96, 0, ONE_E18, 60, NoTickDataProvider(), True, 0)
    assert result.amount_calculated == 0
    assert result.steps == 0
    assert result.sqrt_ratio_x96 == Q96
