"""
Async TCP Server Module

This module implements the asynchronous RESP server.

Each accepted connection runs in its own coroutine with its own
KVStore, seeded from the shared, read-only snapshot. Incoming bytes
are buffered until a complete frame can be decoded, so a request split
across several reads is still answered, and pipelined requests are
answered in order.
"""

import asyncio
import logging
from asyncio import StreamReader, StreamWriter
from typing import List, Optional

from ..cache.store import KVStore
from ..config.server_config import ServerConfig
from ..config.settings import settings
from ..protocol.commands import classify
from ..protocol.errors import (
    IncompleteFrameError,
    ProtocolDecodeError,
    UnclassifiedCommandError,
)
from ..protocol.parser import CRLF, RespParser
from ..protocol.values import Error, Value
from ..rdb.models import Snapshot
from .dispatcher import CommandDispatcher

logger = logging.getLogger(__name__)


class ClientSession:
    """
    Decoding state for one connection.

    Attributes:
        dispatcher: The connection's dispatcher and store
        buffer: Bytes read but not yet decoded
        pending_empty_body: The last frame ended on a bodiless ``$0``
    """

    def __init__(self, dispatcher: CommandDispatcher):
        self.dispatcher = dispatcher
        self.buffer = b""
        self.pending_empty_body = False


class KVServer:
    """
    Asynchronous TCP server speaking RESP.

    Features:
    - Non-blocking I/O with asyncio, one coroutine per client
    - Connection-local stores seeded from a shared snapshot
    - Incremental frame buffering and pipelining
    - Malformed frames answered with an error reply, never a disconnect

    Usage:
        server = KVServer(host='127.0.0.1', port=6379, snapshot=snapshot)
        await server.start()  # Runs forever

    Attributes:
        host: Server bind address
        port: Server port number
        config: The ServerConfig answered by CONFIG GET
        snapshot: Decoded snapshot every new store is seeded from
        parser: The RespParser for decoding and encoding frames
        max_buffer_size: Largest unanswered tail kept for one connection
    """

    def __init__(
            self,
            host: str = None,
            port: int = None,
            config: ServerConfig = None,
            snapshot: Optional[Snapshot] = None,
            max_buffer_size: Optional[int] = None,
    ):
        """
        Initialize the server.

        Args:
            host: Bind address (default from settings)
            port: Port number (default from settings)
            config: ServerConfig instance (empty one if not provided)
            snapshot: Snapshot to seed every connection's store from
            max_buffer_size: Buffer cap per connection (default from settings)
        """
        self.host = host if host is not None else settings.HOST
        self.port = port if port is not None else settings.PORT
        self.config = config if config is not None else ServerConfig()
        self.snapshot = snapshot
        self.parser = RespParser()
        self.max_buffer_size = (
            max_buffer_size if max_buffer_size is not None else settings.MAX_BUFFER_SIZE
        )

        # Server state
        self._server: Optional[asyncio.Server] = None
        self._running = False
        self._connection_count = 0
        self._active_connections = 0
        self._total_requests = 0
        self._protocol_errors = 0

    def new_dispatcher(self) -> CommandDispatcher:
        """Create the dispatcher and seeded store for one connection."""
        store = KVStore(snapshot=self.snapshot)
        return CommandDispatcher(store, self.config)

    async def handle_client(
            self,
            reader: StreamReader,
            writer: StreamWriter
    ) -> None:
        """
        Handle a single client connection.

        Protocol flow:
            1. Read bytes and append them to the connection buffer
            2. Decode every complete frame in the buffer
            3. Classify and execute each one, writing the replies
            4. Keep any incomplete tail for the next read
            5. Repeat until the client disconnects
        """
        addr = writer.get_extra_info('peername')
        self._connection_count += 1
        self._active_connections += 1
        logger.debug(f"Client connected: {addr}")

        session = ClientSession(self.new_dispatcher())

        try:
            while True:
                data = await reader.read(settings.READ_BUFFER_SIZE)
                if not data:
                    # Client disconnected
                    logger.debug(f"Client disconnected: {addr}")
                    break

                replies = self.feed(session, data)
                if replies:
                    writer.write(b"".join(replies))
                    await writer.drain()

        except ConnectionResetError:
            logger.debug(f"Connection reset by client: {addr}")
        except Exception as exc:  # Log unexpected errors but keep server alive
            logger.exception(f"Error handling client {addr}: {exc}")
        finally:
            self._active_connections -= 1
            try:
                writer.close()
                await writer.wait_closed()
            except Exception:
                pass

    def feed(self, session: ClientSession, data: bytes) -> List[bytes]:
        """
        Append a read to a session's buffer and answer every complete frame.

        An incomplete tail stays in ``session.buffer`` for the next read.
        A tail larger than ``max_buffer_size`` is answered with an error
        and dropped.

        Args:
            session: The connection's state
            data: Bytes just read from the socket

        Returns:
            Encoded replies, in request order
        """
        session.buffer += data

        if session.pending_empty_body:
            # The body of a trailing "$0\r\n" may arrive in a later read
            if session.buffer == CRLF[:1]:
                return []
            if session.buffer.startswith(CRLF):
                session.buffer = session.buffer[len(CRLF):]
            session.pending_empty_body = False

        replies = []
        while session.buffer:
            try:
                session.buffer, value = self.parser.decode(session.buffer)
            except IncompleteFrameError:
                break
            except ProtocolDecodeError as exc:
                # The rest of the buffer cannot be resynchronised
                replies.append(self._protocol_error(session, exc))
                break

            session.pending_empty_body = self.parser.open_empty_body
            self._total_requests += 1
            replies.append(self.parser.encode(self._execute(value, session.dispatcher)))

        if len(session.buffer) > self.max_buffer_size:
            exc = ProtocolDecodeError(
                f"unterminated frame exceeds {self.max_buffer_size} bytes"
            )
            replies.append(self._protocol_error(session, exc))

        return replies

    def _protocol_error(self, session: ClientSession, exc: ProtocolDecodeError) -> bytes:
        self._protocol_errors += 1
        logger.debug(f"Malformed frame dropped: {exc}")
        session.buffer = b""
        session.pending_empty_body = False
        return self.parser.encode(Error("ERR", f"protocol error: {exc}"))

    def _execute(self, value: Value, dispatcher: CommandDispatcher) -> Value:
        try:
            command = classify(value)
        except UnclassifiedCommandError as exc:
            logger.info(f"Unclassified command: {exc}")
            return Error("ERR", exc.reason)
        return dispatcher.execute(command)

    async def start(self) -> None:
        """
        Start the server and begin accepting connections.

        Runs until cancelled or stop() is called.
        """
        if self._running:
            return

        self._server = await asyncio.start_server(
            self.handle_client,
            self.host,
            self.port,
        )
        self._running = True

        addrs = ', '.join(str(sock.getsockname()) for sock in self._server.sockets or [])
        logger.info(f"Serving on {addrs}")

        try:
            async with self._server:
                await self._server.serve_forever()
        except asyncio.CancelledError:
            # Expected during shutdown/fixture cleanup
            logger.debug("Server start cancelled")
        finally:
            self._running = False

    async def stop(self) -> None:
        """
        Stop the server gracefully.

        Closes the server and waits for it to fully shut down.
        """
        if self._server is None:
            return

        self._server.close()
        try:
            await self._server.wait_closed()
        finally:
            self._server = None
            self._running = False

    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._running

    def get_stats(self) -> dict:
        """
        Get server statistics.

        Returns:
            Dictionary with connection, request and error counts.
        """
        return {
            "running": self._running,
            "host": self.host,
            "port": self.port,
            "total_connections": self._connection_count,
            "active_connections": self._active_connections,
            "total_requests": self._total_requests,
            "protocol_errors": self._protocol_errors,
            "snapshot_loaded": self.snapshot is not None,
        }


async def run_server(
        host: str = None,
        port: int = None,
        config: ServerConfig = None,
        snapshot: Optional[Snapshot] = None,
) -> None:
    """
    Convenience function to create and run the server.

    Usage:
        asyncio.run(run_server(port=6379))
    """
    server = KVServer(host=host, port=port, config=config, snapshot=snapshot)

    try:
        await server.start()
    except asyncio.CancelledError:
        logger.info("Server shutdown requested")
    finally:
        await server.stop()
