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

from respkv.cache.store import KVStore
from respkv.config.server_config import ServerConfig
from respkv.network.tcp_server import KVServer
from respkv.protocol.errors import IncompleteFrameError
from respkv.protocol.parser import RespParser
from respkv.rdb.decoder import decode_snapshot


def find_free_port() -> int:
    """Find an available port for testing."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(('', 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# ============================================================================
# Snapshot Builders
# ============================================================================

def rdb_text(text: str) -> bytes:
    """Encode a short (< 64 byte) string with a 6-bit length prefix."""
    raw = text.encode()
    assert len(raw) < 64
    return bytes([len(raw)]) + raw


HEADER = b"REDIS0003"

AUX_FIELDS = (
    b"\xfa" + rdb_text("redis-bits") + b"\xc0\x40"
    + b"\xfa" + rdb_text("redis-ver") + rdb_text("7.2.0")
)

# Integer-keyed records, one per special encoding
INTEGER_KEYS_DB = (
    b"\xfe\x00"
    + b"\x00\xc2\x25\xd3\xed\x0a" + rdb_text("Positive 32 bit integer")
    + b"\x00\xc0\x7d" + rdb_text("Positive 8 bit integer")
    + b"\x00\xc1\xdb\x8c" + rdb_text("Negative 16 bit integer")
    + b"\x00\xc0\x85" + rdb_text("Negative 8 bit integer")
    + b"\x00\xc2\xab\xab\x00\x00" + rdb_text("Positive 16 bit integer")
    + b"\x00\xc2\xdb\x2c\x12\xf5" + rdb_text("Negative 32 bit integer")
)

CHECKSUM = b"\xff\x7d\xf6\x4b\xd3\x61\x8c\x55"

SAMPLE_RDB = HEADER + AUX_FIELDS + INTEGER_KEYS_DB + b"\xff" + CHECKSUM


# ============================================================================
# KVStore Fixtures
# ============================================================================

class FakeClock:
    """Manually advanced clock pair for expiration tests."""

    def __init__(self, wall_ms: float = 1_700_000_000_000, monotonic: float = 1000.0):
        self.wall_ms = wall_ms
        self.monotonic = monotonic

    def advance_ms(self, ms: float) -> None:
        self.wall_ms += ms
        self.monotonic += ms / 1000

    def wall(self) -> float:
        return self.wall_ms

    def mono(self) -> float:
        return self.monotonic


@pytest.fixture
def store() -> KVStore:
    """Create a fresh, empty KVStore."""
    return KVStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def clocked_store(clock: FakeClock) -> KVStore:
    """Create a KVStore driven by a fake clock."""
    return KVStore(wall_clock=clock.wall, monotonic_clock=clock.mono)


# ============================================================================
# Protocol Fixtures
# ============================================================================

@pytest.fixture
def parser() -> RespParser:
    """Create a RespParser instance."""
    return RespParser()


# ============================================================================
# Snapshot Fixtures
# ============================================================================

@pytest.fixture
def sample_rdb() -> bytes:
    return SAMPLE_RDB


@pytest.fixture
def snapshot():
    """The decoded sample snapshot."""
    return decode_snapshot(SAMPLE_RDB)


@pytest.fixture
def snapshot_file(tmp_path):
    """Write the sample snapshot to disk; returns (dir, filename)."""
    path = tmp_path / "dump.rdb"
    path.write_bytes(SAMPLE_RDB)
    return str(tmp_path), "dump.rdb"


# ============================================================================
# Server Fixtures
# ============================================================================

@pytest.fixture
def server_port() -> int:
    """Get a free port for server testing."""
    return find_free_port()


@pytest_asyncio.fixture
async def server(server_port: int, snapshot) -> AsyncGenerator[KVServer, None]:
    """
    Create and start a server instance for testing.

    This fixture:
    1. Creates a KVServer on a random free port, seeded with the sample snapshot
    2. Starts it in a background task
    3. Yields the server for testing
    4. Cleans up after the test
    """
    config = ServerConfig(dir="/tmp/respkv", dbfilename="dump.rdb")
    srv = KVServer(host='127.0.0.1', port=server_port, config=config, snapshot=snapshot)

    # Start server in background task
    server_task = asyncio.create_task(srv.start())

    # Wait for server to be ready
    await asyncio.sleep(0.1)

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
    Helper class for testing server interactions.

    Usage:
        async with AsyncClient('127.0.0.1', port) as client:
            reply = await client.send_command("SET", "key", "value")
            assert reply == b"+OK\\r\\n"
    """

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port
        self.reader = None
        self.writer = None
        self.parser = RespParser()

    async def connect(self) -> None:
        """Establish connection to server."""
        self.reader, self.writer = await asyncio.open_connection(
            self.host, self.port
        )

    async def disconnect(self) -> None:
        """Close connection to server."""
        if self.writer:
            self.writer.close()
            try:
                await self.writer.wait_closed()
            except Exception:
                pass

    async def send_raw(self, data: bytes) -> bytes:
        """Send raw bytes and return the raw bytes of one complete reply."""
        self.writer.write(data)
        await self.writer.drain()
        return await self.read_reply()

    async def read_reply(self) -> bytes:
        """Read until exactly one complete reply has arrived."""
        buffer = b""
        while True:
            try:
                remaining, _ = self.parser.decode(buffer)
                return buffer[:len(buffer) - len(remaining)]
            except IncompleteFrameError:
                chunk = await asyncio.wait_for(self.reader.read(4096), timeout=2)
                if not chunk:
                    raise ConnectionError("server closed the connection")
                buffer += chunk

    async def send_command(self, *words: str) -> bytes:
        """Send a command as an array of bulk strings; return the raw reply."""
        request = b"*%d\r\n" % len(words)
        for word in words:
            body = word.encode()
            request += b"$%d\r\n%s\r\n" % (len(body), body)
        return await self.send_raw(request)

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()


@pytest.fixture
def client_factory(server_port: int):
    """
    Factory fixture to create test clients.

    Usage:
        async def test_something(server, client_factory):
            async with client_factory() as client:
                reply = await client.send_command("GET", "key")
    """
    def factory() -> AsyncClient:
        return AsyncClient('127.0.0.1', server_port)
    return factory


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

