"""WSGI entry point.

Serve with ``gunicorn travel_expenses.wsgi:app`` or run the development
server with ``python -m travel_expenses.wsgi``. Startup fails when
``DATABASE_URL`` is not configured.
"""

from __future__ import annotations

from . import create_app

app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution helper
    app.run(host="0.0.0.0", port=app.config["PORT"])
