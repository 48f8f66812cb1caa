"""Protocol module for filekv."""

from .commands import Command, CommandType, Response, ResponseStatus
from .executor import CommandExecutor
from .parser import ParseError, ProtocolParser

__all__ = [
    "Command",
    "CommandType",
    "CommandExecutor",
    "ParseError",
    "Response",
    "ResponseStatus",
    "ProtocolParser",
]
