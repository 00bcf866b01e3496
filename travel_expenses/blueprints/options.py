"""Autocomplete options and health check routes."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from .. import get_repository

options_bp = Blueprint("options", __name__)


@options_bp.get("/options")
def list_options():
    """Return known locations and clients, alphabetically sorted."""

    repo = get_repository()
    try:
        locations = repo.list_location_names()
        clients = repo.list_client_names()
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to load options: %s", exc)
        return jsonify(message="Could not load options"), 500
    return jsonify(locations=locations, clients=clients)


@options_bp.get("/health")
def health():
    return jsonify(status="ok")
