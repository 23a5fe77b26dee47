from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from .app import DEFAULT_MAX_STEPS, create_app


try:
    import uvicorn
except ModuleNotFoundError as exc:  # pragma: no cover - import failure path
    uvicorn = None
    _IMPORT_ERROR = exc
else:
    _IMPORT_ERROR = None

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Serve the sparsebf run/optimize HTTP API")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on (default: 8000)")
    parser.add_argument(
        "--max-steps",
        type=int,
        default=DEFAULT_MAX_STEPS,
        help=f"Step budget for runs that do not set one (default: {DEFAULT_MAX_STEPS:,})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log parser, optimizer and execution details to stderr",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.max_steps < 1:
        print("--max-steps must be at least 1", file=sys.stderr)
        return 1

    if uvicorn is None:
        message = "uvicorn is required to serve the sparsebf API"
        if _IMPORT_ERROR is not None:
            message = f"{message}: {_IMPORT_ERROR}"
        print(message, file=sys.stderr)
        return 1

    app = create_app(default_max_steps=args.max_steps)
    logger.info("Serving sparsebf API on %s:%d (step budget %d)", args.host, args.port, args.max_steps)
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level="debug" if args.verbose else "info",
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
