#!/usr/bin/env python3
"""
Interactive Test Client for respkv

A simple command-line client for manually testing the respkv server.
Each line typed is split on whitespace and sent as a RESP array of bulk
strings; the decoded reply is printed.

Usage:
    python scripts/client.py                  # Connect to 127.0.0.1:6379
    python scripts/client.py --host 1.2.3.4   # Connect to specific host
    python scripts/client.py --port 6380      # Connect to specific port

Commands:
    PING                      - Check the connection
    ECHO <arg>                - Echo an argument back
    SET <key> <value> [PX ms] - Store a key-value pair
    GET <key>                 - Retrieve a value
    CONFIG GET <name>         - Read dir / dbfilename
    KEYS <pattern>            - List every key
    help                      - Show this help
    exit                      - Exit client
"""

import argparse
import socket
import sys

from respkv.protocol.errors import IncompleteFrameError
from respkv.protocol.parser import RespParser
from respkv.protocol.values import (
    Array,
    ArrayKind,
    BulkKind,
    BulkString,
    Error,
    Integer,
    SimpleString,
    Value,
)

# Enable command history with arrow keys (works on Unix systems)
try:
    import readline
except ImportError:
    pass  # readline not available on Windows by default


class RespClient:
    """Simple blocking TCP client for respkv."""

    def __init__(self, host: str, port: int, timeout: float = 5.0):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.socket = None
        self.parser = RespParser()
        self._buffer = b""

    def connect(self) -> bool:
        """Connect to the server."""
        try:
            self.socket = socket.create_connection((self.host, self.port), self.timeout)
            return True
        except OSError as e:
            print(f"Connection error: {e}")
            return False

    def disconnect(self):
        """Disconnect from the server."""
        if self.socket:
            try:
                self.socket.close()
            except OSError:
                pass
            self.socket = None
            self._buffer = b""

    def send_command(self, *words: str) -> Value:
        """Send a command and wait for the decoded reply."""
        request = Array.of(BulkString.of(w) for w in words)
        self.socket.sendall(self.parser.encode(request))

        while True:
            try:
                self._buffer, reply = self.parser.decode(self._buffer)
                return reply
            except IncompleteFrameError:
                chunk = self.socket.recv(4096)
                if not chunk:
                    raise ConnectionError("Connection closed by server")
                self._buffer += chunk

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()


def render(value: Value, indent: int = 0) -> str:
    """Render a reply the way redis-cli does."""
    pad = " " * indent
    if isinstance(value, SimpleString):
        return value.text
    if isinstance(value, Error):
        return f"(error) {value.title} {value.message}".rstrip()
    if isinstance(value, Integer):
        return f"(integer) {value.value}"
    if isinstance(value, BulkString):
        return "(nil)" if value.kind == BulkKind.NULL else f'"{value.inner()}"'
    if value.kind == ArrayKind.NULL:
        return "(nil)"
    if value.kind == ArrayKind.EMPTY:
        return "(empty array)"
    lines = []
    for i, item in enumerate(value.items, 1):
        prefix = f"{i}) "
        lines.append(pad + prefix + render(item, indent + len(prefix)).lstrip())
    return "\n".join(lines).lstrip()


def print_help():
    """Print help message."""
    print("""
respkv Commands:
----------------
  PING                      Check the connection
  ECHO <arg>                Echo an argument back
  SET <key> <value> [PX ms] Store a key-value pair (optional expiry in ms)
  GET <key>                 Retrieve the value for a key
  CONFIG GET <name>         Read the dir or dbfilename setting
  KEYS <pattern>            List every key (the pattern is ignored)

Client Commands:
----------------
  help                      Show this help message
  exit                      Exit the client
  reconnect                 Reconnect to the server
""")


def main():
    parser = argparse.ArgumentParser(
        description="Interactive test client for respkv"
    )
    parser.add_argument("--host", type=str, default="127.0.0.1",
                        help="Server host (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=6379,
                        help="Server port (default: 6379)")
    parser.add_argument("--timeout", type=float, default=5.0,
                        help="Socket timeout in seconds (default: 5.0)")

    args = parser.parse_args()

    print(f"Connecting to {args.host}:{args.port}...")
    client = RespClient(args.host, args.port, args.timeout)

    if not client.connect():
        print("Failed to connect. Is the server running?")
        print(f"  Try: python -m respkv.server --port {args.port}")
        sys.exit(1)

    print("Connected! Type 'help' for commands.\n")

    try:
        while True:
            try:
                line = input(">>> ").strip()
                if not line:
                    continue

                lower_cmd = line.lower()
                if lower_cmd == "help":
                    print_help()
                    continue
                if lower_cmd in ("exit", "quit"):
                    print("Goodbye!")
                    break
                if lower_cmd == "reconnect":
                    client.disconnect()
                    print("Reconnected!" if client.connect() else "Reconnection failed.")
                    continue

                try:
                    print(render(client.send_command(*line.split())))
                except (OSError, ConnectionError) as e:
                    print(f"ERROR: {e}")

            except EOFError:
                print("\nGoodbye!")
                break

    except KeyboardInterrupt:
        print("\n\nInterrupted. Goodbye!")
    finally:
        client.disconnect()


if __name__ == "__main__":
    main()
