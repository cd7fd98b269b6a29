"""Tick data read lazily from a live pool contract over JSON-RPC eth_call.

We avoid a web3 dependency and use eth-abi directly, reading
``tickBitmap(int16)`` one word at a time and ``ticks(int24)`` per crossed
tick. Both are cached for the lifetime of the provider so a quote is
evaluated against a consistent view when ``block_tag`` is pinned.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Tuple

import aiohttp
from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError

from clquote.common import metrics
from clquote.common.errors import RpcError, TickNotFoundError
from clquote.ticks import tick_bitmap
from clquote.ticks.provider import TickDataProvider
from clquote.ticks.tick_list import Tick

log = logging.getLogger(__name__)

TICKS_SELECTOR = "0xf30dba93"  # ticks(int24)
TICK_BITMAP_SELECTOR = "0x5339c296"  # tickBitmap(int16)

# liquidityGross, liquidityNet, feeGrowthOutside0X128, feeGrowthOutside1X128,
# tickCumulativeOutside, secondsPerLiquidityOutsideX128, secondsOutside, initialized
TICK_INFO_TYPES = ["uint128", "int128", "uint256", "uint256", "int56", "uint160", "uint32", "bool"]


class RpcTickDataProvider(TickDataProvider):
    def __init__(
        self,
        rpc_url: str,
        pool_address: str,
        *,
        block_tag: str = "latest",
        session: aiohttp.ClientSession | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.rpc_url = rpc_url
        self.pool_address = pool_address.lower()
        self.block_tag = block_tag
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._words: Dict[int, int] = {}
        self._ticks: Dict[int, Tick] = {}

    async def get_tick(self, index: int) -> Tick:
        cached = self._ticks.get(index)
        if cached is not None:
            return cached
        raw = await self._eth_call("ticks", TICKS_SELECTOR + encode(["int24"], [index]).hex())
        decoded = self._decode(TICK_INFO_TYPES, raw, "ticks")
        if not decoded[7]:
            raise TickNotFoundError("NOT_CONTAINED", f"tick {index} is not initialized on-chain", index=index)
        tick = Tick(index=index, liquidity_gross=int(decoded[0]), liquidity_net=int(decoded[1]))
        self._ticks[index] = tick
        return tick

    async def next_initialized_tick_within_one_word(self, tick: int, lte: bool, tick_spacing: int) -> Tuple[int, bool]:
        word_pos = tick_bitmap.word_for_search(tick, lte, tick_spacing)
        word = await self._word(word_pos)
        return tick_bitmap.next_initialized_tick_in_word(word, tick, lte, tick_spacing)

    async def _word(self, word_pos: int) -> int:
        cached = self._words.get(word_pos)
        if cached is not None:
            return cached
        raw = await self._eth_call("tickBitmap", TICK_BITMAP_SELECTOR + encode(["int16"], [word_pos]).hex())
        (word,) = self._decode(["uint256"], raw, "tickBitmap")
        self._words[word_pos] = int(word)
        return int(word)

    def _decode(self, types: list[str], raw: bytes, method: str) -> Tuple[Any, ...]:
        try:
            return decode(types, raw)
        except DecodingError as exc:
            metrics.increment_counter(metrics.RPC_ERRORS, {"method": method})
            raise RpcError("DECODE", f"{method} returned undecodable data", pool=self.pool_address) from exc

    async def _eth_call(self, method: str, calldata: str) -> bytes:
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "eth_call",
            "params": [{"to": self.pool_address, "data": calldata}, self.block_tag],
        }
        metrics.increment_counter(metrics.RPC_CALLS, {"method": method})
        close_session = False
        session = self._session
        if session is None:
            session = aiohttp.ClientSession(timeout=self._timeout)
            close_session = True
        start = time.perf_counter()
        try:
            async with session.post(self.rpc_url, json=payload) as resp:
                if resp.status != 200:
                    raise RpcError("HTTP", f"{method} returned HTTP {resp.status}", status=resp.status)
                body = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            metrics.increment_counter(metrics.RPC_ERRORS, {"method": method})
            log.warning("eth_call %s on %s failed: %s", method, self.pool_address, exc)
            raise RpcError("TRANSPORT", f"{method} request failed: {exc}", pool=self.pool_address) from exc
        except RpcError:
            metrics.increment_counter(metrics.RPC_ERRORS, {"method": method})
            log.warning("eth_call %s on %s rejected", method, self.pool_address)
            raise
        finally:
            if close_session:
                await session.close()
        metrics.observe_histogram(metrics.RPC_LATENCY_SECONDS, time.perf_counter() - start, {"method": method})

        if "result" not in body:
            metrics.increment_counter(metrics.RPC_ERRORS, {"method": method})
            log.warning("eth_call %s on %s returned no result: %s", method, self.pool_address, body.get("error"))
            raise RpcError("NO_RESULT", f"{method} returned no result", error=body.get("error"))
        try:
            return bytes.fromhex(body["result"].removeprefix("0x"))
        except (AttributeError, ValueError) as exc:
            metrics.increment_counter(metrics.RPC_ERRORS, {"method": method})
            raise RpcError("DECODE", f"{method} returned non-hex result", pool=self.pool_address) from exc


__all__ = ["RpcTickDataProvider", "TICKS_SELECTOR", "TICK_BITMAP_SELECTOR", "TICK_INFO_TYPES"]
