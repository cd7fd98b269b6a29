from clquote.ticks.provider import NoTickDataProvider, TickDataProvider, TickListDataProvider
from clquote.ticks.rpc_provider import RpcTickDataProvider
from clquote.ticks.tick_list import Tick

__all__ = ["Tick", "TickDataProvider", "NoTickDataProvider", "TickListDataProvider", "RpcTickDataProvider"]
