"""
Run the web API with uvicorn.
"""

from __future__ import annotations

import argparse
from typing import Optional

import uvicorn

from webapi.config import get_settings


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run the web API")
    parser.add_argument("--host", type=str, default="0.0.0.0", help="Bind address")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart on code changes (development only)",
    )
    args = parser.parse_args(argv)

    uvicorn.run(
        "webapi.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=get_settings().log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
