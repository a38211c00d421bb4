from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - DATABASE_URL: SQLAlchemy connection string. Default 'sqlite:///./data/todos.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: logging level name (default: INFO)
    - SQL_ECHO: 'true' to echo every SQL statement to the log (default: false)
    - HOST / PORT: bind address for `python -m todos_api` (default: 0.0.0.0:8000)
    """

    database_url: str
    cors_allow_origins: List[str]
    log_level: str
    sql_echo: bool
    host: str
    port: int


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


def _normalize_database_url(url: str) -> str:
    # Heroku-style URLs use a scheme SQLAlchemy no longer accepts
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    database_url = _normalize_database_url(
        _get_env("DATABASE_URL", "sqlite:///./data/todos.db").strip()
    )
    origins = _parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*"))
    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()
    sql_echo = _parse_bool(_get_env("SQL_ECHO", "false"), False)
    host = _get_env("HOST", "0.0.0.0").strip()
    port = int(_get_env("PORT", "8000"))

    return Settings(
        database_url=database_url,
        cors_allow_origins=origins,
        log_level=log_level,
        sql_echo=sql_echo,
        host=host,
        port=port,
    )
