"""Error taxonomy for quoting and routing.

Every error carries a short ``kind`` code plus a ``context`` dict; none of
them hold partially-updated state since nothing is mutated in place.
"""

from __future__ import annotations

from typing import Any, Dict


class QuoteError(Exception):
    """Base class for all clquote failures."""

    def __init__(self, kind: str, message: str | None = None, **context: Any) -> None:
        self.kind = kind
        self.context: Dict[str, Any] = context
        super().__init__(message or kind)

    def __repr__(self) -> str:  # pragma: no cover - convenience
        return f"{type(self).__name__}(kind={self.kind!r}, context={self.context!r})"


class ValidationError(QuoteError, ValueError):
    """Malformed static input (bad tick, inconsistent tick set, token mismatch)."""


class InsufficientLiquidityError(QuoteError):
    """The pool cannot deliver the requested amount before its price limit."""


class InsufficientInputAmountError(QuoteError):
    """The input amount is too small to produce any output."""


class InvalidPriceLimitError(QuoteError):
    """The sqrt price limit is on the wrong side of the current price."""


class TickNotFoundError(QuoteError, LookupError):
    """A tick was requested that the tick dataset does not contain."""


class RpcError(QuoteError):
    """Transport or decoding failure of a remote tick data source."""


# Failures route search treats as "skip this pool" rather than fatal.
RECOVERABLE_SWAP_ERRORS = (InsufficientLiquidityError, InsufficientInputAmountError)


__all__ = [
    "QuoteError",
    "ValidationError",
    "InsufficientLiquidityError",
    "InsufficientInputAmountError",
    "InvalidPriceLimitError",
    "TickNotFoundError",
    "RpcError",
    "RECOVERABLE_SWAP_ERRORS",
]
