"""
Command Executor Module

Dispatches a parsed Command to the storage engine and builds the Response.
"""

import logging

from .commands import Command, CommandType, Response
from ..storage.engine import InvalidKeyError, StorageEngine, StorageError, validate_key

logger = logging.getLogger(__name__)


class CommandExecutor:
    """
    Runs commands against a storage engine.

    Outcomes:
        SET      -> OK, or ERROR if the write fails
        GET      -> OK with the value, NOTFOUND if absent, ERROR on I/O fault
        DEL      -> OK, whether or not the key existed
        UNKNOWN  -> ERROR

    A key that fails validation yields ERROR for every verb and never
    reaches the storage engine.

    Attributes:
        storage: The StorageEngine commands are executed against
    """

    def __init__(self, storage: StorageEngine):
        self.storage = storage

    def execute(self, command: Command) -> Response:
        """
        Execute a parsed command.

        Args:
            command: The Command object to execute

        Returns:
            Response object with the result
        """
        if command.type == CommandType.UNKNOWN:
            logger.debug(f"Rejecting unknown command: {command.raw!r}")
            return Response.error()

        try:
            validate_key(command.key)
            return self._dispatch(command)
        except InvalidKeyError as exc:
            logger.warning(f"Rejected key {command.key!r}: {exc}")
            return Response.error()

    def _dispatch(self, command: Command) -> Response:
        if command.type == CommandType.SET:
            try:
                self.storage.put(command.key, command.value)
            except StorageError as exc:
                logger.warning(f"SET failed: {exc}")
                return Response.error()
            return Response.ok()

        if command.type == CommandType.GET:
            try:
                value = self.storage.get(command.key)
            except StorageError as exc:
                logger.warning(f"GET failed: {exc}")
                return Response.error()
            return Response.value_response(value) if value is not None else Response.not_found()

        if command.type == CommandType.DEL:
            self.storage.delete(command.key)
            return Response.ok()

        return Response.error()
