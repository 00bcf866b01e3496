"""Configuration helpers for the Travel Expenses service.

Settings are read from environment variables. A ``.env`` file in the working
directory is loaded first via :func:`dotenv.load_dotenv` so local development
does not need exported variables; real environment values take precedence.

* ``DATABASE_URL``: SQLAlchemy connection string. Required.
* ``PORT``: Port used by the development server. Defaults to ``4000``.
* ``EXPENSES_API_PREFIX``: URL prefix for every API route. Defaults to ``/api``.
* ``EXPENSES_CURRENCY_SYMBOL``: Symbol shown in the export Total column.
* ``EXPENSES_CORS_ORIGINS``: Comma separated origins allowed to call the API.
* ``LOG_LEVEL``: Root logging level.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv

from .errors import ConfigurationError

DEFAULT_PORT = 4000
DEFAULT_API_PREFIX = "/api"
DEFAULT_CURRENCY_SYMBOL = "₹"


@dataclass(slots=True)
class AppConfig:
    """Settings loaded from environment variables."""

    database_url: str
    port: int = DEFAULT_PORT
    api_prefix: str = DEFAULT_API_PREFIX
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


def _resolve_port(raw: str | None) -> int:
    """Return the listen port, falling back to :data:`DEFAULT_PORT`."""

    if not raw:
        return DEFAULT_PORT
    try:
        port = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"PORT must be an integer, got {raw!r}") from exc
    if not 0 < port < 65536:
        raise ConfigurationError(f"PORT must be between 1 and 65535, got {port}")
    return port


def _normalize_prefix(raw: str | None) -> str:
    """Return a URL prefix with a leading slash and no trailing slash."""

    if raw is None:
        return DEFAULT_API_PREFIX
    prefix = raw.strip().strip("/")
    return f"/{prefix}" if prefix else ""


def _parse_origins(raw: str | None) -> List[str]:
    if not raw:
        return ["*"]
    return [origin.strip() for origin in raw.split(",") if origin.strip()] or ["*"]


def load_config() -> AppConfig:
    """Create an :class:`AppConfig` instance from environment variables.

    Raises:
        ConfigurationError: When ``DATABASE_URL`` is missing or ``PORT`` is
            malformed. The service cannot start without a database.
    """

    load_dotenv()
    database_url = os.getenv("DATABASE_URL", "").strip()
    if not database_url:
        raise ConfigurationError("DATABASE_URL is required to start the server")
    return AppConfig(
        database_url=database_url,
        port=_resolve_port(os.getenv("PORT")),
        api_prefix=_normalize_prefix(os.getenv("EXPENSES_API_PREFIX")),
        currency_symbol=os.getenv("EXPENSES_CURRENCY_SYMBOL", DEFAULT_CURRENCY_SYMBOL),
        cors_origins=_parse_origins(os.getenv("EXPENSES_CORS_ORIGINS")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
