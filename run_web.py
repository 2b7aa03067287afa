#!/usr/bin/env python3
"""
Entry point for running the Gomoku web server.

Usage:
    python run_web.py [--host HOST] [--port PORT] [--reload] [--log-level LEVEL]

Examples:
    python run_web.py                    # Run on localhost:3000
    python run_web.py --port 8000        # Run on localhost:8000
    python run_web.py --host 0.0.0.0     # Allow external connections
    python run_web.py --reload           # Auto-reload on code changes

Defaults come from GOMOKU_HOST, GOMOKU_PORT and GOMOKU_LOG_LEVEL.
"""
import argparse
import os

import uvicorn

from gomoku.config import settings


def main():
    parser = argparse.ArgumentParser(description="Run the Gomoku web server")
    parser.add_argument(
        "--host",
        type=str,
        default=settings.host,
        help=f"Host to bind to (default: {settings.host})"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help=f"Port to bind to (default: {settings.port})"
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload on code changes"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=settings.log_level,
        help=f"Log level (default: {settings.log_level})"
    )

    args = parser.parse_args()

    # The app reads its log level from settings; reload workers re-read the environment
    settings.log_level = args.log_level.upper()
    os.environ["GOMOKU_LOG_LEVEL"] = settings.log_level

    print(f"Starting Gomoku server at http://{args.host}:{args.port}")
    print(f"WebSocket endpoint: ws://{args.host}:{args.port}/ws")
    print()

    uvicorn.run(
        "gomoku.web.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower()
    )


if __name__ == "__main__":
    main()
