"""
Async TCP Server Module

This module implements the TCP listener and per-connection handler.

Every connection carries exactly one request:
    1. Read once (at most BUFFER_SIZE bytes, bounded by READ_TIMEOUT)
    2. Parse the request with ProtocolParser
    3. Execute it with CommandExecutor
    4. Write the response and close

The listener awaits each connection's handler before accepting the next
one, so connections are served one at a time in acceptance order and
pending clients wait in the kernel's listen backlog. A fault on one
connection only closes that connection.
"""

import asyncio
import logging
import socket
from asyncio import StreamReader, StreamWriter
from typing import Optional

from ..config.settings import BUFFER_SIZE, settings
from ..protocol.commands import Response
from ..protocol.executor import CommandExecutor
from ..protocol.parser import ParseError, ProtocolParser
from ..storage.engine import StorageEngine, create_storage

logger = logging.getLogger(__name__)


class KVServer:
    """
    TCP server for the filekv service.

    The server runs inside an asyncio event loop but never has more than
    one accepted connection open: ``start()`` accepts a connection, awaits
    ``handle_client`` for it, and only then accepts again. At most
    ``backlog`` further clients queue in the kernel meanwhile. A silent or
    slow client stalls the queue for at most the read/write timeouts.

    Usage:
        server = KVServer(host='127.0.0.1', port=5000)
        await server.start()  # Runs until stop()

    Attributes:
        host: Server bind address (e.g., '127.0.0.1')
        port: Server port number (e.g., 5000)
        backlog: Maximum number of pending connections
        storage: The StorageEngine shared by all connections
        parser: The ProtocolParser for parsing requests
        executor: The CommandExecutor bound to ``storage``
    """

    def __init__(
            self,
            host: str = None,
            port: int = None,
            backlog: int = None,
            storage: StorageEngine = None,
            read_timeout: float = None,
            write_timeout: float = None,
    ):
        """
        Initialize the server.

        Args:
            host: Bind address (default from settings)
            port: Port number (default from settings)
            backlog: Listen backlog (default from settings)
            storage: StorageEngine instance (built from settings if not provided)
            read_timeout: Seconds to wait for the request (default from settings)
            write_timeout: Seconds to wait for the response to flush (default from settings)
        """
        self.host = host if host is not None else settings.HOST
        self.port = port if port is not None else settings.PORT
        self.backlog = backlog if backlog is not None else settings.BACKLOG
        self.storage = storage if storage is not None else create_storage()
        self.read_timeout = read_timeout if read_timeout is not None else settings.READ_TIMEOUT
        self.write_timeout = write_timeout if write_timeout is not None else settings.WRITE_TIMEOUT
        self.parser = ProtocolParser()
        self.executor = CommandExecutor(self.storage)

        # Server state
        self._listener: Optional[socket.socket] = None
        self._accept_task: Optional[asyncio.Task] = None
        self._finished: Optional[asyncio.Future] = None
        self._stopping = False
        self._running = False
        self._connection_count = 0
        self._total_requests = 0
        self._dropped_connections = 0

    async def handle_client(
            self,
            reader: StreamReader,
            writer: StreamWriter
    ) -> None:
        """
        Serve the single request carried by one connection.

        Args:
            reader: StreamReader for reading from the client
            writer: StreamWriter for writing to the client

        A read that returns no data, resets, or times out closes the
        connection without a response. The writer is closed on every path.
        """
        addr = writer.get_extra_info('peername')
        self._connection_count += 1
        logger.debug(f"Client connected: {addr}")

        try:
            try:
                data = await asyncio.wait_for(
                    reader.read(BUFFER_SIZE), timeout=self.read_timeout
                )
            except asyncio.TimeoutError:
                logger.warning(f"Timed out waiting for request from {addr}")
                self._dropped_connections += 1
                return

            if not data:
                logger.warning(f"Client {addr} closed without sending a request")
                self._dropped_connections += 1
                return

            logger.debug(f"Received command from {addr}: {data!r}")
            response = self.process_request(data)

            writer.write(self.parser.format_response(response))
            await asyncio.wait_for(writer.drain(), timeout=self.write_timeout)

        except asyncio.TimeoutError:
            logger.warning(f"Timed out writing response to {addr}")
            self._dropped_connections += 1
        except (ConnectionResetError, BrokenPipeError) as exc:
            logger.warning(f"Connection to {addr} lost: {exc}")
            self._dropped_connections += 1
        except Exception as exc:  # Log unexpected errors but keep server alive
            logger.exception(f"Error handling client {addr}: {exc}")
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError as exc:
                logger.debug(f"Error closing connection to {addr}: {exc}")
            logger.debug(f"Client disconnected: {addr}")

    def process_request(self, data: bytes) -> Response:
        """
        Parse and execute one raw request.

        Args:
            data: The bytes read from the client

        Returns:
            The Response to send back
        """
        self._total_requests += 1
        try:
            command = self.parser.parse_request(data)
        except ParseError:
            return Response.bad_arguments()
        return self.executor.execute(command)

    def _bind(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
            sock.listen(self.backlog)
            sock.setblocking(False)
        except OSError:
            sock.close()
            raise
        return sock

    async def start(self) -> None:
        """
        Bind the listening socket and serve connections until stop().

        Each accepted connection is handled to completion before the next
        accept. Accept failures are logged and the loop continues.

        Raises:
            OSError: If the address cannot be bound or listened on
        """
        if self._running:
            return

        loop = asyncio.get_running_loop()
        self._listener = self._bind()
        self._stopping = False
        self._finished = loop.create_future()
        self._running = True

        logger.info(f"Serving on {self._listener.getsockname()} (backlog {self.backlog})")

        try:
            while not self._stopping:
                self._accept_task = loop.create_task(loop.sock_accept(self._listener))
                try:
                    conn, addr = await self._accept_task
                except asyncio.CancelledError:
                    if self._stopping:
                        break
                    raise
                except OSError as exc:
                    logger.error(f"Error accepting connection: {exc}")
                    continue

                try:
                    reader, writer = await asyncio.open_connection(
                        sock=conn, limit=BUFFER_SIZE
                    )
                except OSError as exc:
                    logger.warning(f"Could not set up connection from {addr}: {exc}")
                    conn.close()
                    self._dropped_connections += 1
                    continue

                await self.handle_client(reader, writer)

        except asyncio.CancelledError:
            logger.debug("Server start cancelled")
        finally:
            self._listener.close()
            self._listener = None
            self._accept_task = None
            self._running = False
            if not self._finished.done():
                self._finished.set_result(None)

    async def stop(self) -> None:
        """
        Stop accepting connections and wait for the listener to close.

        A connection already being handled is allowed to finish.
        """
        if not self._running:
            return

        self._stopping = True
        if self._accept_task is not None:
            self._accept_task.cancel()
        await asyncio.shield(self._finished)

    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._running

    def get_stats(self) -> dict:
        """
        Get server statistics.

        Returns:
            Dictionary with connection and request counters.
        """
        return {
            "running": self._running,
            "host": self.host,
            "port": self.port,
            "total_connections": self._connection_count,
            "total_requests": self._total_requests,
            "dropped_connections": self._dropped_connections,
        }
