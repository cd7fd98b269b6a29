import pytest

from clquote.common.models import Token
from clquote.entities.pool import Pool
from clquote.ticks.tick_list import Tick

Q96 = 2**96
ONE_E18 = 10**18
# widest usable tick per fee tier spacing
EDGE_TICKS = {500: 887270, 3000: 887220, 10000: 887200}


def _make_token(n: int, symbol: str, chain_id: int = 1) -> Token:
    return Token(address="0x" + f"{n:040x}", symbol=symbol, decimals=18, chain_id=chain_id)


def _full_range_pool(a: Token, b: Token, fee: int = 3000, liquidity: int = ONE_E18, address: str | None = None) -> Pool:
    edge = EDGE_TICKS[fee]
    ticks = [Tick(-edge, liquidity, liquidity), Tick(edge, liquidity, -liquidity)]
    return Pool(a, b, fee, Q96, liquidity, 0, ticks, address=address)


@pytest.fixture
def make_token():
    return _make_token


@pytest.fixture
def full_range_pool():
    """Factory for a price-1 pool with liquidity over the widest usable range."""
    return _full_range_pool


@pytest.fixture
def token_a():
    return _make_token(1, "AAA")


@pytest.fixture
def token_b():
    return _make_token(2, "BBB")


@pytest.fixture
def token_c():
    return _make_token(3, "CCC")


@pytest.fixture
def pool_ab(token_a, token_b):
    return _full_range_pool(token_a, token_b)
