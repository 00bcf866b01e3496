"""Travel Expenses Flask application factory."""

from __future__ import annotations

from typing import Any

import click
from flask import Flask, current_app, g
from flask_cors import CORS

from .config import AppConfig, load_config
from .database import create_db_engine, init_schema
from .errors import register_error_handlers
from .logging_config import configure_logging
from .repositories import ExpensesRepository


def create_app(config: AppConfig | None = None) -> Flask:
    """Build and configure the Travel Expenses Flask application instance.

    Args:
        config: Optional :class:`AppConfig` override. When ``None`` the helper
            loads configuration via :func:`load_config`, which requires
            ``DATABASE_URL`` to be set.

    Returns:
        Flask: Initialised application. The SQLAlchemy engine is stored on
        ``app.config['DB_ENGINE']`` for downstream repositories and every API
        route is mounted under ``config.api_prefix``. ``API_PREFIX``,
        ``CURRENCY_SYMBOL`` and ``PORT`` are copied onto ``app.config`` for the
        blueprints and the development runner.

    Raises:
        ConfigurationError: When no configuration is passed and the
            environment lacks ``DATABASE_URL``.

    External Dependencies:
        * Reads environment variables and ``.env`` through :func:`load_config`.
        * Creates the schema on the configured database via :mod:`sqlalchemy`.
        * Registers :mod:`flask_cors` for the API routes so a browser client
          on another origin can read ``Content-Disposition``.
    """

    app_config = config or load_config()
    app = Flask(__name__)
    configure_logging(app, app_config.log_level)
    app.config.update(
        API_PREFIX=app_config.api_prefix,
        CURRENCY_SYMBOL=app_config.currency_symbol,
        PORT=app_config.port,
    )
    app.json.sort_keys = False

    engine = create_db_engine(app_config.database_url)
    init_schema(engine)
    app.config["DB_ENGINE"] = engine

    CORS(
        app,
        resources={f"{app_config.api_prefix}/*": {"origins": app_config.cors_origins}},
        expose_headers=["Content-Disposition"],
    )

    from .blueprints.expenses import expenses_bp
    from .blueprints.options import options_bp

    app.register_blueprint(expenses_bp, url_prefix=app_config.api_prefix or None)
    app.register_blueprint(options_bp, url_prefix=app_config.api_prefix or None)
    register_error_handlers(app)

    @app.teardown_appcontext
    def teardown(_: Any) -> None:
        g.pop("expenses_repo", None)

    @app.cli.command("init-db")
    def init_db_command() -> None:
        """Initialize the database tables."""

        init_schema(engine)
        click.echo("Database initialized.")

    app.logger.info("Travel Expenses API mounted at %s/", app_config.api_prefix)
    return app


def get_repository() -> ExpensesRepository:
    """Return a repository cached on :mod:`flask.g` for the active request.

    Returns:
        ExpensesRepository: Repository bound to ``app.config['DB_ENGINE']``.
        The same instance is reused until the app context tears down.

    External Dependencies:
        * Reads :data:`flask.current_app.config` for the engine.
    """

    if not hasattr(g, "expenses_repo"):
        engine = current_app.config["DB_ENGINE"]
        g.expenses_repo = ExpensesRepository(engine)
    return g.expenses_repo


__all__ = ["create_app", "AppConfig", "get_repository"]
