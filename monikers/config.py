"""Environment-level configuration for the Monikers server.

Deployment concerns (host, port, CORS, catalog location, log level) live
here, away from the game rules in engine_core.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import os

from .engine_core.state import DEFAULT_SECONDS


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


@dataclass
class EnvironmentSettings:
    """Environment / deployment settings."""

    env: str = "development"
    host: str = "127.0.0.1"
    port: int = 8000
    catalog_path: str | None = None
    turn_seconds: int = DEFAULT_SECONDS
    allowed_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> EnvironmentSettings:
        """Build settings from environment variables."""
        return cls(
            env=os.getenv("MONIKERS_ENV", "development"),
            host=os.getenv("MONIKERS_HOST", "127.0.0.1"),
            port=_int_env("MONIKERS_PORT", 8000),
            catalog_path=os.getenv("MONIKERS_CATALOG_PATH") or None,
            turn_seconds=_int_env("MONIKERS_TURN_SECONDS", DEFAULT_SECONDS),
            allowed_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
            log_level=os.getenv("MONIKERS_LOG_LEVEL", "INFO").upper(),
        )


def get_env_settings() -> EnvironmentSettings:
    """Convenience accessor for environment settings."""
    return EnvironmentSettings.from_env()
