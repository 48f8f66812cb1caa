#!/usr/bin/env python3
"""
Command-line Client for filekv

Sends a single request and prints the server's response.

Usage:
    filekv-client SET greeting hello world
    filekv-client GET greeting
    filekv-client DEL greeting
    filekv-client --host 127.0.0.1 --port 5000 GET greeting
"""

import argparse
import socket
import sys

from .config.settings import settings


def send_request(host: str, port: int, request: bytes, timeout: float = 5.0) -> bytes:
    """
    Send one request and return the full response.

    The server closes the connection after answering, so the response is
    everything read until EOF.

    Args:
        host: Server address
        port: Server port
        request: Request bytes (a newline is appended if missing)
        timeout: Socket timeout in seconds

    Returns:
        Raw response bytes (empty if the server closed without answering)
    """
    if not request.endswith(b"\n"):
        request += b"\n"

    with socket.create_connection((host, port), timeout=timeout) as sock:
        sock.sendall(request)
        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(
        description="Send one command to a filekv server"
    )
    parser.add_argument(
        "--host",
        type=str,
        default=settings.HOST,
        help=f"Server host (default: {settings.HOST})"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.PORT,
        help=f"Server port (default: {settings.PORT})"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=5.0,
        help="Socket timeout in seconds (default: 5.0)"
    )
    parser.add_argument("verb", help="SET, GET or DEL")
    parser.add_argument("key", help="Entry key")
    parser.add_argument("value", nargs="*", help="Value for SET")

    args = parser.parse_args(argv)

    request = " ".join([args.verb, args.key] + args.value).encode("utf-8")

    try:
        response = send_request(args.host, args.port, request, args.timeout)
    except socket.timeout:
        print("ERROR: Request timed out", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"Connection error: {e}", file=sys.stderr)
        sys.exit(1)

    text = response.decode("utf-8", errors="replace")
    sys.stdout.write(text)
    if not response or response.startswith(b"ERROR"):
        sys.exit(1)


if __name__ == "__main__":
    main()
