#!/usr/bin/env python3
"""
respkv Server Entry Point

This is the main entry point for starting the respkv server.

Usage:
    python -m respkv.server                                  # 127.0.0.1:6379
    python -m respkv.server --port 6380                      # Custom port
    python -m respkv.server --dir /tmp --dbfilename dump.rdb # Load a snapshot
    python -m respkv.server --debug                          # Debug logging

Environment Variables:
    RESPKV_HOST        - Server bind address
    RESPKV_PORT        - Server port
    RESPKV_DIR         - Snapshot directory
    RESPKV_DBFILENAME  - Snapshot file name
    RESPKV_DEBUG       - Enable debug mode (true/false)
"""

import argparse
import asyncio
import logging
import signal
import sys

from .config.server_config import ServerConfig
from .config.settings import settings
from .network.tcp_server import KVServer
from .rdb.loader import load_snapshot


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="respkv: In-Memory RESP Key-Value Server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--host",
        type=str,
        default=settings.HOST,
        help="Host address to bind to",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=settings.PORT,
        help="Port number to listen on",
    )

    parser.add_argument(
        "--dir",
        type=str,
        default=settings.DIR,
        help="Directory containing the snapshot file",
    )

    parser.add_argument(
        "--dbfilename",
        type=str,
        default=settings.DBFILENAME,
        help="Snapshot file name",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


def main() -> None:
    """Main entry point for the server."""
    args = parse_args()

    setup_logging(debug=args.debug)
    logger = logging.getLogger(__name__)

    # Configuration and snapshot are fixed before any connection is accepted
    config = ServerConfig.from_args(args)
    snapshot = load_snapshot(config.dir, config.dbfilename)

    server = KVServer(
        host=args.host,
        port=args.port,
        config=config,
        snapshot=snapshot,
    )

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    async def shutdown(sig: signal.Signals) -> None:
        """Handle shutdown signal."""
        logger.info(f"Received signal {sig.name}, initiating shutdown...")
        await server.stop()

    # Register signal handlers (Unix only)
    if sys.platform != 'win32':
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(
                sig,
                lambda s=sig: asyncio.create_task(shutdown(s))
            )

    logger.info("Starting respkv server")
    logger.info(f"  Host: {args.host}")
    logger.info(f"  Port: {args.port}")
    logger.info(f"  Snapshot: {config.snapshot_path() or 'none'}")
    logger.info(f"  Debug: {args.debug}")

    try:
        loop.run_until_complete(server.start())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
        loop.run_until_complete(server.stop())
    except Exception as e:
        logger.error(f"Server error: {e}")
        raise
    finally:
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()
        logger.info("Server shutdown complete")


if __name__ == "__main__":
    main()
