"""Serve the task tracker API with uvicorn."""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

import uvicorn

from .config import Settings
from .logging_setup import setup_logging
from .server.api import create_app

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="task-tracker", description="Run the task tracker API server.")
    parser.add_argument("--host", default=None, help="Bind address (default: TASK_TRACKER_HOST or 127.0.0.1)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (default: TASK_TRACKER_PORT or 5000)")
    parser.add_argument("--data-dir", type=Path, default=None, help="Directory holding the YAML state files")
    parser.add_argument("--log-level", default=None, help="Root log level (default: TASK_TRACKER_LOG_LEVEL or INFO)")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    settings = Settings.from_env()
    overrides = {
        key: value
        for key, value in {
            "host": args.host,
            "port": args.port,
            "data_dir": args.data_dir,
            "log_level": args.log_level.upper() if args.log_level else None,
        }.items()
        if value is not None
    }
    if overrides:
        settings = replace(settings, **overrides)

    setup_logging(settings.log_level)
    app = create_app(settings)
    logger.info("Serving task tracker on %s:%s (env=%s)", settings.host, settings.port, settings.env)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
