"""Network module for filekv."""

from .tcp_server import KVServer

__all__ = ["KVServer"]
