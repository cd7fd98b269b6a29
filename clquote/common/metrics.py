"""Prometheus metrics for the quoting core."""

from __future__ import annotations

from typing import Dict

from prometheus_client import Counter, Histogram

# Swap engine
SWAPS = Counter("clquote_swaps_total", "Swap simulations run", ["mode"])
SWAP_STEPS = Histogram(
    "clquote_swap_steps", "Loop iterations per swap simulation", buckets=(1, 2, 4, 8, 16, 32, 64, 128, 256, 1024)
)
TICKS_CROSSED = Counter("clquote_ticks_crossed_total", "Initialized ticks crossed during swap simulation")

# Route search
SEARCH_BRANCHES = Counter("clquote_search_branches_total", "Pools evaluated during route search", ["mode"])
SEARCH_SKIPPED = Counter("clquote_search_skipped_total", "Pools skipped during route search by reason", ["reason"])
TRADES_FOUND = Counter("clquote_trades_found_total", "Trades returned by route search", ["mode"])
SEARCH_DURATION_SECONDS = Histogram(
    "clquote_search_duration_seconds", "Route search duration", ["mode"], buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1, 5)
)

# Remote tick data
RPC_CALLS = Counter("clquote_rpc_calls_total", "eth_call requests issued", ["method"])
RPC_ERRORS = Counter("clquote_rpc_errors_total", "eth_call failures", ["method"])
RPC_LATENCY_SECONDS = Histogram(
    "clquote_rpc_latency_seconds", "eth_call latency", ["method"], buckets=(0.01, 0.05, 0.1, 0.2, 0.5, 1, 2)
)


def increment_counter(counter: Counter, labels: Dict[str, str] | None = None) -> None:
    """Increment a counter, labeled or not."""
    if labels:
        counter.labels(**labels).inc()
    else:
        counter.inc()


def observe_histogram(hist: Histogram, value: float, labels: Dict[str, str] | None = None) -> None:
    """Record a value in a histogram."""
    if labels:
        hist.labels(**labels).observe(value)
    else:
        hist.observe(value)


__all__ = [
    "SWAPS",
    "SWAP_STEPS",
    "TICKS_CROSSED",
    "SEARCH_BRANCHES",
    "SEARCH_SKIPPED",
    "TRADES_FOUND",
    "SEARCH_DURATION_SECONDS",
    "RPC_CALLS",
    "RPC_ERRORS",
    "RPC_LATENCY_SECONDS",
    "increment_counter",
    "observe_histogram",
]
