"""Configuration helper tests."""

from __future__ import annotations

import pytest

from travel_expenses import config as config_module
from travel_expenses import create_app
from travel_expenses.config import DEFAULT_PORT, load_config
from travel_expenses.errors import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start each test without settings leaking from the shell or a .env file."""

    for key in (
        "DATABASE_URL",
        "PORT",
        "EXPENSES_API_PREFIX",
        "EXPENSES_CURRENCY_SYMBOL",
        "EXPENSES_CORS_ORIGINS",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(config_module, "load_dotenv", lambda: False)


def test_load_config_requires_database_url():
    with pytest.raises(ConfigurationError, match="DATABASE_URL"):
        load_config()


def test_create_app_fails_without_database_url():
    with pytest.raises(ConfigurationError):
        create_app()


def test_load_config_defaults(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    config = load_config()
    assert config.database_url == "sqlite://"
    assert config.port == DEFAULT_PORT == 4000
    assert config.api_prefix == "/api"
    assert config.currency_symbol == "₹"
    assert config.cors_origins == ["*"]
    assert config.log_level == "INFO"


def test_load_config_overrides(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("PORT", "8081")
    monkeypatch.setenv("EXPENSES_API_PREFIX", "v1/")
    monkeypatch.setenv("EXPENSES_CURRENCY_SYMBOL", "$")
    monkeypatch.setenv("EXPENSES_CORS_ORIGINS", "http://localhost:5173, https://example.com")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    config = load_config()
    assert config.port == 8081
    assert config.api_prefix == "/v1"
    assert config.currency_symbol == "$"
    assert config.cors_origins == ["http://localhost:5173", "https://example.com"]
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize("port", ["abc", "0", "70000"])
def test_load_config_rejects_bad_port(monkeypatch, port):
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("PORT", port)
    with pytest.raises(ConfigurationError, match="PORT"):
        load_config()


def test_empty_prefix_mounts_routes_at_root(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("EXPENSES_API_PREFIX", "/")
    app = create_app()
    response = app.test_client().get("/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}
