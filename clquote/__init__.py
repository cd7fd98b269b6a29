"""Concentrated-liquidity quoting and routing core."""

from clquote.common.models import Token, TokenAmount
from clquote.entities.pool import Pool
from clquote.entities.route import Route
from clquote.entities.trade import Trade, TradeType
from clquote.routing.route_search import best_trade_exact_in, best_trade_exact_out

__version__ = "0.1.0"

__all__ = [
    "Token",
    "TokenAmount",
    "Pool",
    "Route",
    "Trade",
    "TradeType",
    "best_trade_exact_in",
    "best_trade_exact_out",
]
