#!/usr/bin/env python3
"""Launch the AskWeb HTTP server under uvicorn."""

import argparse
import os

import uvicorn
from dotenv import load_dotenv

load_dotenv()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="AskWeb search server")
    parser.add_argument("--host", default=os.getenv("HOST", "127.0.0.1"), help="Bind address")
    parser.add_argument(
        "--port", type=int, default=int(os.getenv("PORT", "8000")), help="Bind port (default: 8000)"
    )
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    # Factory mode so every reload builds a fresh app and fresh singletons
    uvicorn.run(
        "server.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
