"""
Configuration Management.

Loads overrides from config/.env (or the environment) and settings from
config/settings/*.yaml.

Overrides (.env / NOTECORE_* environment variables):
    NOTECORE_DATABASE_URL

Settings (YAML):
    application.yaml   - App identity, server, cors
    database.yaml      - SQLAlchemy database URL
    logging.yaml       - Logging configuration
    client.yaml        - Client cache: request timeout, page size, autosave
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from notecore.backend.core.config_schema import (
    ApplicationSchema,
    ClientSchema,
    DatabaseSchema,
    LoggingSchema,
)


def find_project_root() -> Path:
    """Find project root by looking for .project_root marker file."""
    current = Path.cwd()
    while current != current.parent:
        if (current / ".project_root").exists():
            return current
        current = current.parent
    raise RuntimeError("Project root not found. Ensure .project_root file exists.")


def validate_project_root() -> Path:
    """
    Validate that the project root can be found.

    Raises SystemExit with a clear message if .project_root is not found.
    Use this in entry scripts before any configuration loading.
    """
    try:
        return find_project_root()
    except RuntimeError as e:
        raise SystemExit(f"Error: {e}") from e


def load_yaml_config(filename: str) -> dict[str, Any]:
    """Load a YAML configuration file from config/settings/."""
    project_root = find_project_root()
    config_path = project_root / "config" / "settings" / filename

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


class Settings(BaseSettings):
    """Environment overrides loaded from config/.env."""

    database_url: str | None = None

    model_config = SettingsConfigDict(
        env_prefix="NOTECORE_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def _load_validated(schema_cls: type, filename: str) -> Any:
    """Load YAML and validate against schema. Returns typed model instance."""
    raw = load_yaml_config(filename)
    try:
        return schema_cls(**raw)
    except ValidationError as e:
        raise ValueError(
            f"Invalid configuration in {filename}:\n{e}"
        ) from e


class AppConfig:
    """
    Application configuration loaded from YAML files.

    Each YAML file is validated against its Pydantic schema at load time.
    Properties return typed Pydantic model instances with attribute access.
    """

    def __init__(self) -> None:
        self._application = _load_validated(ApplicationSchema, "application.yaml")
        self._database = _load_validated(DatabaseSchema, "database.yaml")
        self._logging = _load_validated(LoggingSchema, "logging.yaml")
        self._client = _load_validated(ClientSchema, "client.yaml")

    @property
    def application(self) -> ApplicationSchema:
        """Application settings."""
        return self._application

    @property
    def database(self) -> DatabaseSchema:
        """Database settings."""
        return self._database

    @property
    def logging(self) -> LoggingSchema:
        """Logging settings."""
        return self._logging

    @property
    def client(self) -> ClientSchema:
        """Client cache and autosave settings."""
        return self._client


@lru_cache
def get_settings() -> Settings:
    """Get cached overrides. Resolves .env path from project root."""
    env_path = find_project_root() / "config" / ".env"
    return Settings(_env_file=str(env_path))


@lru_cache
def get_app_config() -> AppConfig:
    """Get cached application configuration."""
    return AppConfig()


def get_database_url() -> str:
    """
    Database URL, with the environment override taking precedence.

    Relative SQLite paths in database.yaml are resolved against the
    project root so the server can be started from any directory.
    """
    override = get_settings().database_url
    if override:
        return override

    url = get_app_config().database.url
    prefix = "sqlite+aiosqlite:///"
    if url.startswith(prefix) and not url.endswith(":memory:"):
        path = Path(url[len(prefix):])
        if not path.is_absolute():
            path = find_project_root() / path
            path.parent.mkdir(parents=True, exist_ok=True)
        return f"{prefix}{path}"
    return url


def get_server_base_url() -> tuple[str, float]:
    """
    Get the backend server base URL and client timeout.

    Returns:
        Tuple of (base_url, timeout_seconds).
    """
    config = get_app_config()
    server = config.application.server
    base_url = f"http://{server.host}:{server.port}"
    return base_url, config.client.request_timeout_seconds
