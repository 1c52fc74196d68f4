# src/run.py
from __future__ import annotations

# Load .env file BEFORE other imports (LOG_LEVEL is read at import time)
from dotenv import load_dotenv
load_dotenv()

import argparse

from src.config import ConfigError, get_port, validate_startup_config
from src.db import get_conn, init_db
from src.logging_utils import log_event


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="News preferences API")
    sub = p.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=None, help="Defaults to $PORT or 3000")

    sub.add_parser("init-db", help="Create the users table and exit")

    args = p.parse_args(argv)

    try:
        validate_startup_config()
    except ConfigError as exc:
        log_event("startup_failed", level="error", error=str(exc))
        print(f"ERROR {exc}")
        return 1

    if args.command == "init-db":
        conn = get_conn()
        try:
            init_db(conn)
        finally:
            conn.close()
        log_event("db_initialized")
        return 0

    import uvicorn

    port = args.port if args.port is not None else get_port()
    log_event("server_starting", host=args.host, port=port)
    uvicorn.run("src.main:app", host=args.host, port=port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
