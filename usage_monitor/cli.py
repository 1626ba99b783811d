from __future__ import annotations

import argparse
import logging
import os

import uvicorn

from usage_monitor.core.config.settings import get_settings


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the usage-monitor API server.")
    parser.add_argument("--host", default=os.getenv("HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "8765")))
    parser.add_argument("--ssl-certfile", default=os.getenv("SSL_CERTFILE"))
    parser.add_argument("--ssl-keyfile", default=os.getenv("SSL_KEYFILE"))
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["critical", "error", "warning", "info", "debug"],
        help="Defaults to USAGE_MONITOR_LOG_LEVEL.",
    )
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    if args.ssl_keyfile and not args.ssl_certfile:
        raise SystemExit("--ssl-keyfile requires --ssl-certfile.")

    log_level = (getattr(args, "log_level", None) or get_settings().log_level).lower()
    logging.basicConfig(level=log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    uvicorn.run(
        "usage_monitor.main:app",
        host=args.host,
        port=args.port,
        ssl_certfile=args.ssl_certfile,
        ssl_keyfile=args.ssl_keyfile,
        log_level=log_level,
    )


if __name__ == "__main__":
    main()
