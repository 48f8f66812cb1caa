#!/usr/bin/env python3
"""
filekv Server Entry Point

Usage:
    python -m filekv.server                     # Default settings (127.0.0.1:5000)
    python -m filekv.server --port 8080         # Custom port
    python -m filekv.server --data-dir /srv/kv  # Custom data directory
    python -m filekv.server --storage memory    # Keep entries in memory only
    python -m filekv.server --debug             # Enable debug logging

Environment Variables:
    FILEKV_HOST          - Server bind address
    FILEKV_PORT          - Server port
    FILEKV_BACKLOG       - Listen backlog
    FILEKV_DATA_DIR      - Directory holding one file per key
    FILEKV_STORAGE       - Storage backend (file/memory)
    FILEKV_READ_TIMEOUT  - Seconds to wait for a request
    FILEKV_WRITE_TIMEOUT - Seconds to wait for a response to flush
    FILEKV_DEBUG         - Enable debug mode (true/false)
    FILEKV_LOG_LEVEL     - Log level when not in debug mode
"""

import argparse
import asyncio
import logging
import signal
import sys

from .config.settings import settings
from .network.tcp_server import KVServer
from .storage.engine import create_storage


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="filekv: Filesystem-Backed Key-Value Server",
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
        "--backlog",
        type=int,
        default=settings.BACKLOG,
        help="Maximum number of pending connections",
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default=settings.DATA_DIR,
        help="Directory where entries are stored",
    )

    parser.add_argument(
        "--storage",
        choices=("file", "memory"),
        default=settings.STORAGE_BACKEND,
        help="Storage backend",
    )

    parser.add_argument(
        "--read-timeout",
        type=float,
        default=settings.READ_TIMEOUT,
        help="Seconds to wait for a client's request",
    )

    parser.add_argument(
        "--write-timeout",
        type=float,
        default=settings.WRITE_TIMEOUT,
        help="Seconds to wait for a response to reach the client",
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


def main(argv=None) -> None:
    """Main entry point for the server."""
    args = parse_args(argv)

    setup_logging(debug=args.debug)
    logger = logging.getLogger(__name__)

    try:
        storage = create_storage(args.storage, args.data_dir)
    except OSError as e:
        logger.error(f"Cannot prepare data directory {args.data_dir}: {e}")
        sys.exit(1)

    server = KVServer(
        host=args.host,
        port=args.port,
        backlog=args.backlog,
        storage=storage,
        read_timeout=args.read_timeout,
        write_timeout=args.write_timeout,
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

    logger.info("Starting filekv server")
    logger.info(f"  Host: {args.host}")
    logger.info(f"  Port: {args.port}")
    logger.info(f"  Backlog: {args.backlog}")
    logger.info(f"  Storage: {args.storage}")
    if args.storage == "file":
        logger.info(f"  Data dir: {storage.root}")

    exit_code = 0
    try:
        loop.run_until_complete(server.start())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
        loop.run_until_complete(server.stop())
    except OSError as e:
        logger.error(f"Cannot listen on {args.host}:{args.port}: {e}")
        exit_code = 1
    finally:
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()
        logger.info("Server shutdown complete")

    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
