"""
Protocol Command and Response Definitions

This module defines the data structures for protocol commands and responses.
Both live for exactly one request.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class CommandType(Enum):
    """Enumeration of supported command types."""
    SET = auto()
    GET = auto()
    DEL = auto()
    UNKNOWN = auto()


class ResponseStatus(Enum):
    """Enumeration of response statuses."""
    OK = "OK"
    NOTFOUND = "NOTFOUND"
    ERROR = "ERROR"


@dataclass
class Command:
    """
    Represents a parsed protocol command.

    Attributes:
        type: The type of command (SET, GET, DEL, UNKNOWN)
        key: The key for the operation
        value: The value for SET operations (empty when omitted)
        raw: The request bytes the command was parsed from
    """
    type: CommandType
    key: str = ""
    value: bytes = b""
    raw: bytes = b""


@dataclass
class Response:
    """
    Represents a protocol response.

    Attributes:
        status: OK, NOTFOUND or ERROR
        value: The value returned (for GET operations)
        message: Error text appended to an ERROR status, if any
    """
    status: ResponseStatus
    value: Optional[bytes] = None
    message: str = ""

    @classmethod
    def ok(cls) -> "Response":
        """Create a plain successful response."""
        return cls(status=ResponseStatus.OK)

    @classmethod
    def value_response(cls, value: bytes) -> "Response":
        """Create a GET response carrying a value."""
        return cls(status=ResponseStatus.OK, value=value)

    @classmethod
    def not_found(cls) -> "Response":
        """Create a 'no such key' response."""
        return cls(status=ResponseStatus.NOTFOUND)

    @classmethod
    def error(cls, message: str = "") -> "Response":
        """Create an error response."""
        return cls(status=ResponseStatus.ERROR, message=message)

    @classmethod
    def bad_arguments(cls) -> "Response":
        """Create the response sent for requests with too few tokens."""
        return cls.error(message="Incorrect number of arguments")
