"""Network module for respkv."""

from .dispatcher import CommandDispatcher
from .tcp_server import ClientSession, KVServer, run_server

__all__ = ["ClientSession", "CommandDispatcher", "KVServer", "run_server"]
