"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

import asyncio
import socket
import pytest
import pytest_asyncio
from contextlib import closing
from typing import AsyncGenerator

from filekv.network.tcp_server import KVServer
from filekv.protocol.executor import CommandExecutor
from filekv.protocol.parser import ProtocolParser
from filekv.storage.engine import FileStorage, MemoryStorage


def find_free_port() -> int:
    """Find an available port for testing."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(('', 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# ============================================================================
# Storage Fixtures
# ============================================================================

@pytest.fixture
def data_dir(tmp_path):
    """Namespace directory for file storage (not created yet)."""
    return tmp_path / "data"


@pytest.fixture
def storage(data_dir) -> FileStorage:
    """Create a FileStorage rooted in a fresh temporary directory."""
    return FileStorage(str(data_dir))


@pytest.fixture
def memory_storage() -> MemoryStorage:
    """Create an empty MemoryStorage."""
    return MemoryStorage()


# ============================================================================
# Protocol Fixtures
# ============================================================================

@pytest.fixture
def parser() -> ProtocolParser:
    """Create a ProtocolParser instance."""
    return ProtocolParser()


@pytest.fixture
def executor(storage: FileStorage) -> CommandExecutor:
    """Create a CommandExecutor over file storage."""
    return CommandExecutor(storage)


# ============================================================================
# Server Fixtures
# ============================================================================

READ_TIMEOUT = 0.5


@pytest.fixture
def server_port() -> int:
    """Get a free port for server testing."""
    return find_free_port()


@pytest_asyncio.fixture
async def server(server_port: int, storage: FileStorage) -> AsyncGenerator[KVServer, None]:
    """
    Create and start a server instance for testing.

    This fixture:
    1. Creates a KVServer on a random free port over temporary file storage
    2. Starts it in a background task
    3. Yields the server once it is listening
    4. Cleans up after the test
    """
    srv = KVServer(
        host='127.0.0.1',
        port=server_port,
        storage=storage,
        read_timeout=READ_TIMEOUT,
        write_timeout=READ_TIMEOUT,
    )

    server_task = asyncio.create_task(srv.start())

    # Wait for server to be ready
    for _ in range(100):
        if srv.is_running():
            break
        await asyncio.sleep(0.01)

    yield srv

    # Cleanup
    await srv.stop()
    server_task.cancel()
    try:
        await server_task
    except asyncio.CancelledError:
        pass


# ============================================================================
# Client Fixtures
# ============================================================================

class AsyncClient:
    """
    Helper for one-request-per-connection testing.

    Usage:
        client = AsyncClient('127.0.0.1', port)
        assert await client.request(b"SET key value") == b"OK\\n"
    """

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port

    async def request(self, data: bytes, newline: bool = True) -> bytes:
        """
        Open a connection, send one request, and read until the server closes.

        Args:
            data: Request bytes
            newline: Append a trailing newline if missing

        Returns:
            Everything the server wrote before closing
        """
        if newline and not data.endswith(b"\n"):
            data += b"\n"

        reader, writer = await asyncio.open_connection(self.host, self.port)
        try:
            writer.write(data)
            await writer.drain()
            return await asyncio.wait_for(reader.read(), timeout=5)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass


@pytest.fixture
def client(server_port: int) -> AsyncClient:
    """
    Client bound to the test server's port.

    Usage:
        async def test_something(server, client):
            assert await client.request(b"GET key") == b"NOTFOUND\\n"
    """
    return AsyncClient('127.0.0.1', server_port)


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
