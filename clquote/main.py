"""Command-line quoting over a pool snapshot file."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import List, Optional

import aiohttp

from clquote.common.config import Settings, load_pool_snapshot
from clquote.common.errors import QuoteError
from clquote.common.models import TokenAmount
from clquote.entities.pool import Pool
from clquote.entities.trade import Trade
from clquote.routing.route_search import best_trade_exact_in, best_trade_exact_out
from clquote.ticks.rpc_provider import RpcTickDataProvider

log = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _with_live_ticks(pools: List[Pool], settings: Settings, session: aiohttp.ClientSession) -> List[Pool]:
    """Swap each addressed pool's tick source for the on-chain bitmap."""
    out: List[Pool] = []
    for pool in pools:
        if not pool.address:
            out.append(pool)
            continue
        provider = RpcTickDataProvider(
            settings.rpc_url,
            pool.address,
            block_tag=settings.block_tag,
            session=session,
            timeout_seconds=settings.rpc_timeout_seconds,
        )
        out.append(
            Pool(
                pool.token0,
                pool.token1,
                pool.fee,
                pool.sqrt_ratio_x96,
                pool.liquidity,
                pool.tick_current,
                provider,
                tick_spacing=pool.tick_spacing,
                address=pool.address,
            )
        )
    return out


def trade_to_dict(trade: Trade) -> dict:
    return {
        "type": trade.trade_type.name,
        "path": [token.symbol for token in trade.route.token_path],
        "pools": [pool.address for pool in trade.route.pools],
        "amount_in": str(trade.input_amount.raw),
        "amount_out": str(trade.output_amount.raw),
        "execution_price": float(trade.execution_price),
        "price_impact": float(trade.price_impact),
    }


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Quote best multi-hop trades over a pool snapshot")
    parser.add_argument("mode", choices=("exact-in", "exact-out"), help="Which side of the trade is fixed")
    parser.add_argument("token_in", help="Symbol of the token spent")
    parser.add_argument("token_out", help="Symbol of the token received")
    parser.add_argument("amount", type=int, help="Fixed amount in the token's smallest unit")
    parser.add_argument("--snapshot", default=settings.snapshot_path, help=f"Pool snapshot JSON (default {settings.snapshot_path})")
    parser.add_argument("--max-hops", type=int, default=settings.max_hops)
    parser.add_argument("--max-results", type=int, default=settings.max_results)
    parser.add_argument("--live-ticks", action="store_true", help="Read ticks from CLQUOTE_RPC_URL instead of the snapshot")
    return parser


async def run(args: Optional[list[str]] = None) -> int:
    settings = Settings()
    _configure_logging(settings.log_level)
    parsed = build_parser(settings).parse_args(args)

    try:
        tokens, pools = load_pool_snapshot(parsed.snapshot)
    except QuoteError as exc:
        log.error("Bad snapshot %s (%s): %s", parsed.snapshot, exc.kind, exc)
        return 1
    try:
        token_in = tokens[parsed.token_in.upper()]
        token_out = tokens[parsed.token_out.upper()]
    except KeyError as exc:
        log.error("Unknown token %s; snapshot has %s", exc, sorted(tokens))
        return 2

    session: aiohttp.ClientSession | None = None
    if parsed.live_ticks:
        if not settings.rpc_url:
            log.error("--live-ticks needs CLQUOTE_RPC_URL")
            return 2
        session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=settings.rpc_timeout_seconds))
        pools = _with_live_ticks(pools, settings, session)

    try:
        if parsed.mode == "exact-in":
            trades = await best_trade_exact_in(
                pools,
                TokenAmount(token_in, parsed.amount),
                token_out,
                max_num_results=parsed.max_results,
                max_hops=parsed.max_hops,
            )
        else:
            trades = await best_trade_exact_out(
                pools,
                token_in,
                TokenAmount(token_out, parsed.amount),
                max_num_results=parsed.max_results,
                max_hops=parsed.max_hops,
            )
    except QuoteError as exc:
        log.error("Quote failed (%s): %s", exc.kind, exc)
        return 1
    finally:
        if session is not None:
            await session.close()

    for trade in trades:
        print(json.dumps(trade_to_dict(trade)))
    if not trades:
        log.warning("No route from %s to %s", token_in.symbol, token_out.symbol)
    return 0


def main() -> None:
    raise SystemExit(asyncio.run(run()))


if __name__ == "__main__":
    main()
