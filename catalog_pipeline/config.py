"""
Application settings.

Sources, later ones winning:
1. Field defaults
2. A .env file (python-dotenv; never overrides variables already set)
3. Environment variables (field name upper-cased, e.g. DB_HOST)
4. An optional YAML overlay (path argument or CATALOG_CONFIG)

Expected YAML format:
```yaml
store_backend: postgres
db_host: catalog-db
transform_cache_max_age: 120
```
"""

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from catalog_pipeline.core.errors import ConfigurationError


class Settings(BaseModel):
    """
    Runtime configuration of the catalog service.

    Attributes:
        app_env: Deployment environment; error details are hidden in "production"
        db_host: PostgreSQL host
        db_port: PostgreSQL port
        db_name: PostgreSQL database
        db_user: PostgreSQL user
        db_password: PostgreSQL password (required for the postgres backend)
        store_backend: "memory" or "postgres"
        blob_root: Root directory resolving file storage keys
        sources_dir: Directory of data-source JSON documents (memory backend)
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_format: "json" or "text"
        transform_cache_max_age: Cache-Control max-age for non-API transform responses
        api_host: Interface the HTTP server binds to
        api_port: Port the HTTP server listens on
    """

    app_env: str = "development"
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "catalog"
    db_user: str = "catalog"
    db_password: str | None = None
    store_backend: Literal["memory", "postgres"] = "memory"
    blob_root: str | None = None
    sources_dir: str | None = None
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"
    transform_cache_max_age: int = Field(default=300, ge=0)
    api_host: str = "127.0.0.1"
    api_port: int = Field(default=8000, gt=0, lt=65536)

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


def _read_yaml_overlay(config_path: str | Path) -> dict[str, Any]:
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    with open(path) as f:
        overlay = yaml.safe_load(f) or {}

    if not isinstance(overlay, dict):
        raise ConfigurationError(f"Configuration file must contain a mapping: {config_path}")
    return overlay


def load_settings(config_path: str | Path | None = None, env_file: str | Path | None = None) -> Settings:
    """
    Load settings from .env, environment and an optional YAML overlay.

    Args:
        config_path: YAML overlay (defaults to env var CATALOG_CONFIG)
        env_file: .env file (defaults to ./.env when present)

    Returns:
        Settings

    Raises:
        ConfigurationError: If the overlay is missing or a value is invalid
    """
    load_dotenv(env_file)

    values: dict[str, Any] = {}
    for name in Settings.model_fields:
        env_value = os.getenv(name.upper())
        if env_value is not None and env_value != "":
            values[name] = env_value

    config_path = config_path or os.getenv("CATALOG_CONFIG")
    if config_path:
        values.update(_read_yaml_overlay(config_path))

    try:
        return Settings.model_validate(values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e
