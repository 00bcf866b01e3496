"""Logging setup for the Travel Expenses service."""

from __future__ import annotations

import logging

from flask import Flask

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(app: Flask, level: str = "INFO") -> None:
    """Send application logs to stderr at ``level``.

    Safe to call repeatedly: a stream handler is only added to the root logger
    when none is present (the Flask reloader imports the app twice).
    """

    level = level.upper()
    app.logger.setLevel(level)
    root = logging.getLogger()
    root.setLevel(level)

    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")
        )
        root.addHandler(handler)
