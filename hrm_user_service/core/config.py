from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    database_url: str

    jwt_secret_key: str
    jwt_algorithm: str
    jwt_issuer: str
    access_token_ttl_minutes: int
    refresh_token_ttl_minutes: int

    hr_service_url: str
    permission_service_url: str
    rpc_timeout_seconds: float

    cors_allow_origins: list[str]
    log_level: str
    auto_create_schema: bool


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Invalid int env var {name}={raw!r}") from exc


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"Invalid float env var {name}={raw!r}") from exc
    if value <= 0:
        raise RuntimeError(f"Env var {name} must be positive, got {raw!r}")
    return value


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    if raw in {"1", "true", "yes", "y", "on"}:
        return True
    if raw in {"0", "false", "no", "n", "off"}:
        return False
    raise RuntimeError(f"Invalid bool env var {name}={raw!r}")


def _url_env(name: str, default: str) -> str:
    value = os.getenv(name, default).strip().rstrip("/")
    if not (value.startswith("http://") or value.startswith("https://")):
        raise RuntimeError(f"Env var {name} must be an http(s) URL, got {value!r}")
    return value


# PUBLIC_INTERFACE
def load_settings() -> Settings:
    """Build Settings from the current environment.

    Required env vars:
      - DATABASE_URL
      - JWT_SECRET_KEY

    Optional env vars:
      - JWT_ALGORITHM (default: HS256)
      - JWT_ISSUER (default: hrm-user-service)
      - ACCESS_TOKEN_TTL_MINUTES (default: 30)
      - REFRESH_TOKEN_TTL_MINUTES (default: 10080 (7 days))
      - HR_SERVICE_URL (default: http://localhost:8081)
      - PERMISSION_SERVICE_URL (default: http://localhost:8082)
      - RPC_TIMEOUT_SECONDS (default: 5)
      - CORS_ALLOW_ORIGINS (default: "*")
      - LOG_LEVEL (default: INFO)
      - AUTO_CREATE_SCHEMA (default: false)
    """
    database_url = os.getenv("DATABASE_URL", "").strip()
    if not database_url:
        raise RuntimeError("Missing required env var DATABASE_URL")

    jwt_secret_key = os.getenv("JWT_SECRET_KEY", "").strip()
    if not jwt_secret_key:
        raise RuntimeError("Missing required env var JWT_SECRET_KEY")

    jwt_algorithm = os.getenv("JWT_ALGORITHM", "HS256").strip() or "HS256"
    jwt_issuer = os.getenv("JWT_ISSUER", "hrm-user-service").strip() or "hrm-user-service"

    access_ttl = _int_env("ACCESS_TOKEN_TTL_MINUTES", 30)
    refresh_ttl = _int_env("REFRESH_TOKEN_TTL_MINUTES", 60 * 24 * 7)
    if access_ttl < 1 or refresh_ttl < 1:
        raise RuntimeError("Token TTLs must be at least one minute")

    origins_raw = os.getenv("CORS_ALLOW_ORIGINS", "*").strip()
    if origins_raw == "*":
        origins = ["*"]
    else:
        origins = [o.strip() for o in origins_raw.split(",") if o.strip()]

    return Settings(
        database_url=database_url,
        jwt_secret_key=jwt_secret_key,
        jwt_algorithm=jwt_algorithm,
        jwt_issuer=jwt_issuer,
        access_token_ttl_minutes=access_ttl,
        refresh_token_ttl_minutes=refresh_ttl,
        hr_service_url=_url_env("HR_SERVICE_URL", "http://localhost:8081"),
        permission_service_url=_url_env("PERMISSION_SERVICE_URL", "http://localhost:8082"),
        rpc_timeout_seconds=_float_env("RPC_TIMEOUT_SECONDS", 5.0),
        cors_allow_origins=origins,
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        auto_create_schema=_bool_env("AUTO_CREATE_SCHEMA", False),
    )


# PUBLIC_INTERFACE
@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings, loaded once at first use."""
    return load_settings()
