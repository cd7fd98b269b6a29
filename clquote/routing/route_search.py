"""Bounded depth-first search for the best linear trades across a pool set.

Routes are linear: the amount is never split between pools on one hop.
Each branch gets its own tuple of remaining pools so no pool repeats
within a path. Insufficient liquidity/input on a pool skips that pool;
any other failure aborts the search.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from clquote.common import metrics
from clquote.common.errors import RECOVERABLE_SWAP_ERRORS, ValidationError
from clquote.common.models import Token, TokenAmount
from clquote.entities.pool import Pool
from clquote.entities.route import Route
from clquote.entities.trade import Trade, TradeType, trade_comparator

log = logging.getLogger(__name__)

T = TypeVar("T")


def sorted_insert(items: List[T], add: T, max_size: int, comparator: Callable[[T, T], int]) -> Optional[T]:
    """Insert ``add`` into the sorted ``items`` keeping at most ``max_size`` entries.

    Returns the element pushed out (possibly ``add`` itself) or None.
    """
    if max_size <= 0:
        raise ValidationError("MAX_SIZE_ZERO", "max_size must be positive")
    if len(items) > max_size:
        raise ValidationError("ITEMS_SIZE", "items already exceed max_size")
    if not items:
        items.append(add)
        return None
    is_full = len(items) == max_size
    if is_full and comparator(items[-1], add) <= 0:
        return add
    lo, hi = 0, len(items)
    while lo < hi:
        mid = (lo + hi) // 2
        if comparator(items[mid], add) <= 0:
            lo = mid + 1
        else:
            hi = mid
    items.insert(lo, add)
    return items.pop() if is_full else None


def _check_args(pools: Sequence[Pool], max_num_results: int, max_hops: int) -> None:
    if not pools:
        raise ValidationError("POOLS", "no pools to search")
    if max_hops < 1:
        raise ValidationError("MAX_HOPS", "max_hops must be at least 1", max_hops=max_hops)
    if max_num_results < 1:
        raise ValidationError("MAX_NUM_RESULTS", "max_num_results must be at least 1", max_num_results=max_num_results)


async def best_trade_exact_in(
    pools: Sequence[Pool],
    amount_in: TokenAmount,
    token_out: Token,
    *,
    max_num_results: int = 3,
    max_hops: int = 3,
) -> List[Trade]:
    """Top ``max_num_results`` trades spending exactly ``amount_in`` for ``token_out``."""
    _check_args(pools, max_num_results, max_hops)
    start = time.perf_counter()
    best: List[Trade] = []
    await _search_exact_in(tuple(pools), amount_in, token_out, max_num_results, max_hops, (), amount_in, best)
    _record("exact_in", best, start)
    log.info(
        "best_trade_exact_in %s %s -> %s: %d trade(s) over %d pools",
        amount_in.raw,
        amount_in.token.symbol,
        token_out.symbol,
        len(best),
        len(pools),
    )
    return best


async def _search_exact_in(
    pools: Tuple[Pool, ...],
    amount_in: TokenAmount,
    token_out: Token,
    max_num_results: int,
    max_hops: int,
    current_pools: Tuple[Pool, ...],
    next_amount_in: TokenAmount,
    best: List[Trade],
) -> None:
    for i, pool in enumerate(pools):
        if not pool.involves_token(next_amount_in.token):
            continue
        metrics.increment_counter(metrics.SEARCH_BRANCHES, {"mode": "exact_in"})
        try:
            amount_out, _ = await pool.get_output_amount(next_amount_in)
        except RECOVERABLE_SWAP_ERRORS as exc:
            metrics.increment_counter(metrics.SEARCH_SKIPPED, {"reason": exc.kind.lower()})
            log.debug("skip %r: %s", pool, exc)
            continue
        if amount_out.token.equals(token_out):
            route = Route(current_pools + (pool,), amount_in.token, token_out)
            trade = await Trade.from_route(route, amount_in, TradeType.EXACT_INPUT)
            sorted_insert(best, trade, max_num_results, trade_comparator)
        elif max_hops > 1 and len(pools) > 1:
            await _search_exact_in(
                pools[:i] + pools[i + 1 :],
                amount_in,
                token_out,
                max_num_results,
                max_hops - 1,
                current_pools + (pool,),
                amount_out,
                best,
            )


async def best_trade_exact_out(
    pools: Sequence[Pool],
    token_in: Token,
    amount_out: TokenAmount,
    *,
    max_num_results: int = 3,
    max_hops: int = 3,
) -> List[Trade]:
    """Top ``max_num_results`` trades receiving exactly ``amount_out`` for ``token_in``."""
    _check_args(pools, max_num_results, max_hops)
    start = time.perf_counter()
    best: List[Trade] = []
    await _search_exact_out(tuple(pools), token_in, amount_out, max_num_results, max_hops, (), amount_out, best)
    _record("exact_out", best, start)
    log.info(
        "best_trade_exact_out %s -> %s %s: %d trade(s) over %d pools",
        token_in.symbol,
        amount_out.raw,
        amount_out.token.symbol,
        len(best),
        len(pools),
    )
    return best


async def _search_exact_out(
    pools: Tuple[Pool, ...],
    token_in: Token,
    amount_out: TokenAmount,
    max_num_results: int,
    max_hops: int,
    current_pools: Tuple[Pool, ...],
    next_amount_out: TokenAmount,
    best: List[Trade],
) -> None:
    for i, pool in enumerate(pools):
        if not pool.involves_token(next_amount_out.token):
            continue
        metrics.increment_counter(metrics.SEARCH_BRANCHES, {"mode": "exact_out"})
        try:
            amount_in, _ = await pool.get_input_amount(next_amount_out)
        except RECOVERABLE_SWAP_ERRORS as exc:
            metrics.increment_counter(metrics.SEARCH_SKIPPED, {"reason": exc.kind.lower()})
            log.debug("skip %r: %s", pool, exc)
            continue
        if amount_in.token.equals(token_in):
            route = Route((pool,) + current_pools, token_in, amount_out.token)
            trade = await Trade.from_route(route, amount_out, TradeType.EXACT_OUTPUT)
            sorted_insert(best, trade, max_num_results, trade_comparator)
        elif max_hops > 1 and len(pools) > 1:
            await _search_exact_out(
                pools[:i] + pools[i + 1 :],
                token_in,
                amount_out,
                max_num_results,
                max_hops - 1,
                (pool,) + current_pools,
                amount_in,
                best,
            )


def _record(mode: str, best: List[Trade], start: float) -> None:
    metrics.TRADES_FOUND.labels(mode=mode).inc(len(best))
    metrics.observe_histogram(metrics.SEARCH_DURATION_SECONDS, time.perf_counter() - start, {"mode": mode})


__all__ = ["sorted_insert", "best_trade_exact_in", "best_trade_exact_out"]
