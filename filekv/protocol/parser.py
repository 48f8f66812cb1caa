"""
Protocol Parser Module

This module turns one raw request buffer into a Command and turns a
Response back into the bytes written to the client.
"""

from typing import Optional, Tuple, Union

from .commands import Command, CommandType, Response
from ..config.settings import (
    BUFFER_SIZE,
    MAX_COMMAND_LENGTH,
    MAX_KEY_LENGTH,
    MAX_VALUE_LENGTH,
)

WHITESPACE = b" \t\n\r\x0b\x0c"

VERBS = {
    b"SET": CommandType.SET,
    b"GET": CommandType.GET,
    b"DEL": CommandType.DEL,
}


class ParseError(ValueError):
    """The request does not carry at least a verb and a key."""


class ProtocolParser:
    """
    Parser for the filekv text protocol.

    Protocol Format:
        Request:  <VERB> <KEY> [<VALUE>]\n   (one request per connection)
        Response: <STATUS>\n[<VALUE>\n]

    Commands:
        SET <key> [value]   -> OK | ERROR
        GET <key>           -> OK\n<value> | NOTFOUND | ERROR
        DEL <key>           -> OK

    Fields are scanned with fixed widths: the verb keeps at most 15 bytes,
    the key at most 255 and the value at most 767. Bytes past a field's
    width are never rejected: scanning of the next field resumes right
    after the cut, so the overflow of an oversized verb or key becomes
    the start of the following field. The value is the rest of the line
    and may contain spaces.
    """

    def __init__(self):
        self.max_command_length = MAX_COMMAND_LENGTH
        self.max_key_length = MAX_KEY_LENGTH
        self.max_value_length = MAX_VALUE_LENGTH

    def parse_request(self, data: Union[bytes, str]) -> Command:
        """
        Parse a raw request buffer into a Command object.

        Args:
            data: Raw request (at most BUFFER_SIZE bytes are considered)

        Returns:
            Command object. Verbs other than SET, GET and DEL (compared
            case-sensitively) produce a Command with type=UNKNOWN.

        Raises:
            ParseError: If fewer than two fields are present

        Examples:
            >>> parser = ProtocolParser()
            >>> cmd = parser.parse_request(b"SET greeting hello world\\n")
            >>> cmd.type == CommandType.SET
            True
            >>> cmd.value
            b'hello world'
        """
        if isinstance(data, str):
            data = data.encode("utf-8")
        raw = data[:BUFFER_SIZE].split(b"\x00", 1)[0]

        verb, pos = self._scan_token(raw, 0, self.max_command_length)
        key, pos = self._scan_token(raw, pos, self.max_key_length)
        if verb is None or key is None:
            raise ParseError("Incorrect number of arguments")

        value = self._scan_value(raw, pos)

        return Command(
            type=VERBS.get(verb, CommandType.UNKNOWN),
            key=key.decode("latin-1"),
            value=value if value is not None else b"",
            raw=raw,
        )

    @staticmethod
    def _skip_whitespace(buf: bytes, pos: int) -> int:
        while pos < len(buf) and buf[pos] in WHITESPACE:
            pos += 1
        return pos

    def _scan_token(self, buf: bytes, pos: int, width: int) -> Tuple[Optional[bytes], int]:
        """
        Scan one whitespace-delimited token starting at ``pos``.

        Returns:
            (token, next position). The token is None when the buffer is
            exhausted. A longer token is cut to ``width`` bytes and the next
            position points at the first byte past the cut.
        """
        start = self._skip_whitespace(buf, pos)
        if start >= len(buf):
            return None, start

        end = start
        while end < len(buf) and end - start < width and buf[end] not in WHITESPACE:
            end += 1
        return buf[start:end], end

    def _scan_value(self, buf: bytes, pos: int) -> Optional[bytes]:
        """Scan the rest of the line as the value; None if nothing is left."""
        start = self._skip_whitespace(buf, pos)
        if start >= len(buf):
            return None

        end = buf.find(b"\n", start)
        line = buf[start:end] if end != -1 else buf[start:]
        if line.endswith(b"\r"):
            line = line[:-1]
        return line[:self.max_value_length]

    def format_response(self, response: Response) -> bytes:
        """
        Format a Response object into protocol bytes.

        Args:
            response: Response object to format

        Returns:
            Formatted response bytes WITH trailing newline.

        Examples:
            >>> parser = ProtocolParser()
            >>> parser.format_response(Response.ok())
            b'OK\\n'
            >>> parser.format_response(Response.value_response(b"hello"))
            b'OK\\nhello\\n'
            >>> parser.format_response(Response.bad_arguments())
            b'ERROR: Incorrect number of arguments\\n'
        """
        head = response.status.value.encode("ascii")
        if response.message:
            head += b": " + response.message.encode("ascii")

        if response.value is not None:
            return head + b"\n" + response.value + b"\n"
        return head + b"\n"
