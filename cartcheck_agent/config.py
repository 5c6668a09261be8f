from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_PROVIDER_TIMEOUT_S = 45.0
DEFAULT_GEMINI_MODEL = "gemini-3-flash-preview"


def _env_str(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    gemini_api_key: str | None
    gemini_model: str
    signal_service_url: str | None
    signal_service_token: str | None
    provider_timeout_s: float
    whitelist_domains: str | None
    whitelist_path: str | None
    cors_origins: tuple[str, ...]
    log_level: str


def _cors_allow_origins() -> tuple[str, ...]:
    raw = os.getenv("CARTCHECK_CORS_ORIGINS", "").strip()
    if not raw:
        return ("http://localhost:3000",)
    return tuple(o.strip() for o in raw.split(",") if o.strip())


def load_settings() -> Settings:
    """Read settings from the process environment (after .env has been loaded)."""
    return Settings(
        gemini_api_key=_env_str("GEMINI_API_KEY"),
        gemini_model=_env_str("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
        signal_service_url=_env_str("CARTCHECK_SIGNAL_SERVICE_URL"),
        signal_service_token=_env_str("CARTCHECK_SIGNAL_SERVICE_TOKEN"),
        provider_timeout_s=_env_float("CARTCHECK_PROVIDER_TIMEOUT_S", DEFAULT_PROVIDER_TIMEOUT_S),
        whitelist_domains=_env_str("CARTCHECK_WHITELIST_DOMAINS"),
        whitelist_path=_env_str("CARTCHECK_WHITELIST_PATH"),
        cors_origins=_cors_allow_origins(),
        log_level=(_env_str("CARTCHECK_LOG_LEVEL") or "INFO").upper(),
    )
