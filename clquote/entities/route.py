"""Linear path of pools from an input token to an output token."""

from __future__ import annotations

from fractions import Fraction
from functools import cached_property
from typing import List, Sequence

from clquote.common.errors import ValidationError
from clquote.common.models import Token
from clquote.entities.pool import Pool


class Route:
    def __init__(self, pools: Sequence[Pool], token_in: Token, token_out: Token) -> None:
        if not pools:
            raise ValidationError("POOLS", "a route needs at least one pool")
        chain_id = pools[0].chain_id
        if any(pool.chain_id != chain_id for pool in pools):
            raise ValidationError("CHAIN_IDS", "route pools span multiple chains")
        if not pools[0].involves_token(token_in):
            raise ValidationError("INPUT", f"first pool does not hold {token_in.symbol}")
        if not pools[-1].involves_token(token_out):
            raise ValidationError("OUTPUT", f"last pool does not hold {token_out.symbol}")

        path: List[Token] = [token_in]
        for pool in pools:
            current = path[-1]
            if not pool.involves_token(current):
                raise ValidationError("PATH", f"pool does not continue the path from {current.symbol}")
            path.append(pool.token1 if current.equals(pool.token0) else pool.token0)
        if not path[-1].equals(token_out):
            raise ValidationError("PATH", f"path ends at {path[-1].symbol}, not {token_out.symbol}")

        self.pools = tuple(pools)
        self.token_path = tuple(path)
        self.input = token_in
        self.output = token_out

    @property
    def chain_id(self) -> int:
        return self.pools[0].chain_id

    @cached_property
    def mid_price(self) -> Fraction:
        """Output per input at current pool prices, in raw units."""
        price = Fraction(1)
        for token, pool in zip(self.token_path, self.pools):
            price *= pool.price_of(token)
        return price

    def __len__(self) -> int:
        return len(self.pools)

    def __repr__(self) -> str:  # pragma: no cover - convenience
        return "Route(" + " -> ".join(t.symbol for t in self.token_path) + ")"


__all__ = ["Route"]
