# start_app.py
"""Launch the API server."""

from __future__ import annotations

import argparse
import os
import sys

import uvicorn
from dotenv import load_dotenv

import config


def main(argv: list[str] | None = None) -> None:
    """Load settings, then start the API."""

    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--memory-db",
        action="store_true",
        help="Start against an in-memory SQLite database",
    )
    args = parser.parse_args(argv)

    load_dotenv()  # load environment variables from a .env file

    if args.memory_db:
        os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
        config.get_settings.cache_clear()

    settings = config.get_settings()  # ensure settings are initialized with any override

    try:
        uvicorn.run(
            "readyat.app.main:app",
            host="0.0.0.0",  # nosec B104: bind for local development
            port=int(os.getenv("PORT", "8000")),
            log_level=settings.log_level.lower(),
        )
    except ModuleNotFoundError as exc:
        missing = exc.name or str(exc)
        print(
            f"Missing dependency: {missing}. Install it with 'pip install {missing}'",
            file=sys.stderr,
        )
        raise SystemExit(1)


if __name__ == "__main__":
    main()
