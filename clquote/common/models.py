"""Shared, strongly validated data models for clquote.

``Token`` and the snapshot models are Pydantic models; validation is strict
and fails fast so bad data never reaches the price math. ``TokenAmount`` is
a plain frozen dataclass since it sits on the hot path of route search.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from clquote.common.errors import ValidationError


def _is_hex_address(value: str) -> bool:
    """Return True if the string looks like a 20-byte hex address."""
    if not isinstance(value, str):
        return False
    if not value.startswith("0x") or len(value) != 42:
        return False
    try:
        int(value[2:], 16)
    except ValueError:
        return False
    return True


def _int_or_numeric_string(value):
    """Accept ints, decimal strings and 0x-prefixed hex strings for uint256-sized fields."""
    if isinstance(value, bool):
        raise ValueError("boolean is not an amount")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        sv = value.strip()
        if sv.startswith(("0x", "-0x")):
            return int(sv, 16)
        return int(sv)
    raise ValueError("expected an integer or a numeric string")


class Token(BaseModel):
    """Canonical ERC-20 token metadata."""

    model_config = ConfigDict(frozen=True)

    address: str = Field(..., description="EVM address, 0x-prefixed 40 hex chars")
    symbol: str = Field(..., description="Uppercase token symbol, e.g. WETH")
    decimals: int = Field(..., ge=0, le=255, description="Token decimals")
    chain_id: int = Field(..., ge=1, description="EVM chain id (e.g. 1 for mainnet)")

    @field_validator("address")
    @classmethod
    def _valid_address(cls, v: str) -> str:
        if not _is_hex_address(v):
            raise ValueError("address must be 0x-prefixed 40 hex chars")
        return v.lower()

    @field_validator("symbol")
    @classmethod
    def _upper_symbol(cls, v: str) -> str:
        if not v or not v.isascii():
            raise ValueError("symbol required and must be ASCII")
        return v.upper()

    def equals(self, other: "Token") -> bool:
        return self.chain_id == other.chain_id and self.address == other.address

    def sorts_before(self, other: "Token") -> bool:
        """True if this token is token0 of a pool holding both."""
        if self.chain_id != other.chain_id:
            raise ValidationError("CHAIN_IDS", "tokens are on different chains", a=self.chain_id, b=other.chain_id)
        if self.address == other.address:
            raise ValidationError("ADDRESSES", "tokens have the same address", address=self.address)
        return self.address < other.address

    def __repr__(self) -> str:  # pragma: no cover - convenience
        return f"Token(symbol={self.symbol}, addr={self.address}, chain={self.chain_id})"


@dataclass(frozen=True, slots=True)
class TokenAmount:
    """An integer amount in a token's smallest unit."""

    token: Token
    raw: int

    def to_decimal(self) -> Decimal:
        return Decimal(self.raw).scaleb(-self.token.decimals)

    def __repr__(self) -> str:  # pragma: no cover - convenience
        return f"TokenAmount({self.token.symbol}, {self.raw})"


class TokenSnapshot(BaseModel):
    """Token entry of a pool snapshot file."""

    address: str
    symbol: str
    decimals: int = Field(18, ge=0, le=255)
    chain_id: Optional[int] = Field(None, ge=1)

    def to_token(self, default_chain_id: int) -> Token:
        return Token(
            address=self.address,
            symbol=self.symbol,
            decimals=self.decimals,
            chain_id=self.chain_id or default_chain_id,
        )


class TickSnapshot(BaseModel):
    index: int
    liquidity_gross: int = Field(..., ge=0)
    liquidity_net: int

    @field_validator("liquidity_gross", "liquidity_net", mode="before")
    @classmethod
    def _amount(cls, v):
        return _int_or_numeric_string(v)


class PoolSnapshot(BaseModel):
    """Pool entry of a pool snapshot file; tokens are referenced by symbol."""

    address: Optional[str] = None
    token0: str
    token1: str
    fee: int = Field(..., ge=0, lt=1_000_000, description="Fee in hundredths of a bip")
    sqrt_price_x96: int = Field(..., gt=0)
    liquidity: int = Field(..., ge=0)
    tick: int
    tick_spacing: Optional[int] = Field(None, gt=0)
    ticks: List[TickSnapshot] = Field(default_factory=list)

    @field_validator("sqrt_price_x96", "liquidity", mode="before")
    @classmethod
    def _amount(cls, v):
        return _int_or_numeric_string(v)

    @field_validator("address")
    @classmethod
    def _valid_pool_address(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not _is_hex_address(v):
            raise ValueError("address must be 0x-prefixed 40 hex chars")
        return v.lower()

    @field_validator("token0", "token1")
    @classmethod
    def _token_symbol(cls, v: str) -> str:
        if not v or not v.isascii():
            raise ValueError("token symbols must be ASCII")
        return v.upper()

    def __repr__(self) -> str:  # pragma: no cover
        return f"PoolSnapshot({self.token0}/{self.token1} fee={self.fee} tick={self.tick})"


__all__ = ["Token", "TokenAmount", "TokenSnapshot", "TickSnapshot", "PoolSnapshot"]
