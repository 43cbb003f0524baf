#!/usr/bin/env python3
"""Run the LiveAssist API (interaction log endpoint, health, metrics).

The HTTP fallback transport posts to /api/interactions/log on this server.

Usage:
    python scripts/serve_api.py
    python scripts/serve_api.py --port 8080 --reload
"""

import argparse

import uvicorn

from liveassist.config import get_settings


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve the LiveAssist API")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes")
    args = parser.parse_args()

    settings = get_settings()
    uvicorn.run(
        "liveassist.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
