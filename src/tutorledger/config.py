"""
Centralized configuration for the tutor ledger service.

- Pure dataclass settings, loaded from OS env (and a .env file when present).
- Validation in __post_init__, fail fast on bad values.
- Immutable singleton via functools.lru_cache.
- Secrets never logged (masked).
"""

from __future__ import annotations

import functools
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional, cast

from dotenv import load_dotenv

# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------
def _mask_secret(value: Optional[str]) -> str:
    if not value:
        return "<unset>"
    if len(value) <= 8:
        return "***"
    return value[:2] + "…" + value[-2:]


def _get_env_str(key: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(key, default)
    if v is not None and v.strip() == "":
        return default
    return v


def _get_env_bool(key: str, default: bool = False) -> bool:
    v = os.getenv(key)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _get_env_int(key: str, default: int) -> int:
    v = os.getenv(key)
    if v is None or v.strip() == "":
        return default
    try:
        return int(v)
    except ValueError:
        raise ValueError(f"Env var {key} must be an integer")


def _validate_choice(value: str, *, choices: tuple[str, ...], key: str) -> str:
    if value not in choices:
        raise ValueError(f"{key} must be one of {choices}, got {value!r}")
    return value


_DB_SCHEMES = ("postgresql+asyncpg://", "sqlite+aiosqlite://")


def _validate_database_url(value: str, *, key: str) -> str:
    if not value.startswith(_DB_SCHEMES):
        raise ValueError(f"{key} must start with one of {_DB_SCHEMES}")
    return value


# ------------------------------------------------------------------------------
# Settings dataclass (immutable)
# ------------------------------------------------------------------------------
EnvName = Literal["local", "dev", "staging", "prod"]
JwtAlg = Literal["HS256", "HS384", "HS512"]
LogFormat = Literal["json", "console"]


@dataclass(frozen=True)
class Settings:
    # Environment
    environment: EnvName = "local"
    debug: bool = False
    is_testing: bool = False

    # Store
    database_url: str = "sqlite+aiosqlite:///./tutor_ledger.db"
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Auth (bearer tokens issued by the hosted auth provider)
    jwt_secret: str = ""
    jwt_algorithm: JwtAlg = "HS256"
    jwt_audience: Optional[str] = None

    # Repositories
    search_page_size: int = 50

    # Observability
    log_level: str = "INFO"
    log_format: Optional[LogFormat] = None

    # HTTP
    cors_origins: tuple[str, ...] = ("*",)

    base_dir: Path = field(default_factory=lambda: Path(__file__).resolve().parent.parent.parent)

    # Derived flags (filled in __post_init__)
    is_prod: bool = field(init=False)
    is_local: bool = field(init=False)
    is_dev: bool = field(init=False)

    def __post_init__(self) -> None:
        _validate_choice(self.environment, choices=("local", "dev", "staging", "prod"), key="ENVIRONMENT")
        _validate_choice(self.jwt_algorithm, choices=("HS256", "HS384", "HS512"), key="JWT_ALGORITHM")
        _validate_database_url(self.database_url, key="DATABASE_URL")

        if self.log_format is not None:
            _validate_choice(self.log_format, choices=("json", "console"), key="LOG_FORMAT")

        # A missing secret is tolerated only where no real tokens exist yet
        if not self.jwt_secret.strip() and not (self.is_testing or self.environment == "local"):
            raise ValueError("JWT_SECRET must be set and non-empty")

        if self.search_page_size < 1:
            raise ValueError("SEARCH_PAGE_SIZE must be >= 1")
        if self.database_pool_size < 1:
            raise ValueError("DATABASE_POOL_SIZE must be >= 1")

        if not re.fullmatch(r"(?i)DEBUG|INFO|WARNING|ERROR|CRITICAL", self.log_level.strip()):
            raise ValueError("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")

        env = self.environment
        object.__setattr__(self, "is_prod", env == "prod")
        object.__setattr__(self, "is_local", env == "local")
        object.__setattr__(self, "is_dev", env == "dev")

    @property
    def json_logs(self) -> bool:
        if self.log_format is not None:
            return self.log_format == "json"
        return not (self.is_local or self.is_dev)

    @property
    def redact_pii(self) -> bool:
        return not (self.is_local or self.is_dev)

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    # Safe dict (for debug prints without secrets)
    def safe_dict(self) -> dict:
        return {
            "environment": self.environment,
            "debug": self.debug,
            "is_testing": self.is_testing,
            "database_url": "<masked>" if self.database_url else "<unset>",
            "database_pool_size": self.database_pool_size,
            "database_max_overflow": self.database_max_overflow,
            "jwt_secret": _mask_secret(self.jwt_secret),
            "jwt_algorithm": self.jwt_algorithm,
            "jwt_audience": self.jwt_audience or "<unset>",
            "search_page_size": self.search_page_size,
            "log_level": self.log_level,
            "log_format": self.log_format or "<auto>",
            "cors_origins": list(self.cors_origins),
        }


# ------------------------------------------------------------------------------
# Loader (singleton)
# ------------------------------------------------------------------------------
_logger = logging.getLogger(__name__)


def load_settings() -> Settings:
    """Build settings from the current environment (no caching)."""
    env_file = Path(__file__).resolve().parent.parent.parent / ".env"
    if env_file.exists():
        load_dotenv(dotenv_path=str(env_file), override=False)

    origins = _get_env_str("CORS_ORIGINS", "*") or "*"
    return Settings(
        environment=cast(EnvName, _get_env_str("ENVIRONMENT", "local") or "local"),
        debug=_get_env_bool("DEBUG", False),
        is_testing=_get_env_bool("IS_TESTING", False),
        database_url=_get_env_str("DATABASE_URL", Settings.database_url) or Settings.database_url,
        database_pool_size=_get_env_int("DATABASE_POOL_SIZE", 5),
        database_max_overflow=_get_env_int("DATABASE_MAX_OVERFLOW", 10),
        jwt_secret=_get_env_str("JWT_SECRET", "") or "",
        jwt_algorithm=cast(JwtAlg, _get_env_str("JWT_ALGORITHM", "HS256") or "HS256"),
        jwt_audience=_get_env_str("JWT_AUDIENCE", None),
        search_page_size=_get_env_int("SEARCH_PAGE_SIZE", 50),
        log_level=_get_env_str("LOG_LEVEL", "INFO") or "INFO",
        log_format=cast(Optional[LogFormat], _get_env_str("LOG_FORMAT", None)),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
    )


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    settings = load_settings()
    _logger.info("Settings loaded", extra={"settings": settings.safe_dict()})
    return settings
