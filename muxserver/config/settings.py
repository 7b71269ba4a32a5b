import os
from dataclasses import dataclass
from typing import Optional


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


@dataclass
class Settings:
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"
    shutdown_grace_seconds: float = 1.0
    rate_limit: int = 0
    rate_window_seconds: int = 10
    redis_host: Optional[str] = None
    redis_port: int = 6379
    auth_token: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.getenv("MUX_HOST", "0.0.0.0"),
            port=_env_int("MUX_PORT", 8080),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            shutdown_grace_seconds=_env_float("SHUTDOWN_GRACE_SECONDS", 1.0),
            rate_limit=_env_int("RATE_LIMIT", 0),
            rate_window_seconds=_env_int("RATE_WINDOW_SECONDS", 10),
            redis_host=os.getenv("REDIS_HOST") or None,
            redis_port=_env_int("REDIS_PORT", 6379),
            auth_token=os.getenv("AUTH_TOKEN") or None,
        )
