"""Relay configuration — plain frozen dataclass, no pydantic.

Built once at process start by ``RelayConfig.from_env()`` and passed
explicitly to ``create_app``. Nothing else reads the environment.
"""

from __future__ import annotations

import math
import os
from collections.abc import Mapping
from dataclasses import dataclass

from ledgerrelay.constants import (
    DEFAULT_BRANCH,
    DEFAULT_CORS_ORIGINS,
    DEFAULT_HOST,
    DEFAULT_LEDGER_PATH,
    DEFAULT_PORT,
    DEFAULT_UPLOAD_DIR,
    GITHUB_API_BASE,
    KEEPALIVE_INTERVAL_SECS,
    KEEPALIVE_PATH,
    KEEPALIVE_TIMEOUT_SECS,
    LEDGER_MAX_ATTEMPTS,
)

REQUIRED_ENV_VARS = ("GITHUB_TOKEN", "GITHUB_OWNER", "GITHUB_REPO", "RENDER_ENDPOINT")
MAX_PORT = 65535


class ConfigError(Exception):
    """Missing or malformed configuration. Fatal at startup."""


def _get_number(env: Mapping[str, str], name: str, default: float, cast: type) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if not math.isfinite(value):
        raise ConfigError(f"{name} must be a finite number, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


@dataclass(frozen=True)
class RelayConfig:
    github_token: str
    github_owner: str
    github_repo: str
    keepalive_endpoint: str
    github_branch: str = DEFAULT_BRANCH
    github_api_base: str = GITHUB_API_BASE
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    ledger_path: str = DEFAULT_LEDGER_PATH
    upload_dir: str = DEFAULT_UPLOAD_DIR
    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS
    keepalive_interval_secs: float = KEEPALIVE_INTERVAL_SECS
    keepalive_path: str = KEEPALIVE_PATH
    keepalive_timeout_secs: float = KEEPALIVE_TIMEOUT_SECS
    ledger_max_attempts: int = LEDGER_MAX_ATTEMPTS
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RelayConfig:
        """Read configuration from ``environ`` (default ``os.environ``).

        Every missing required variable is reported in a single ConfigError.
        """
        env = os.environ if environ is None else environ

        missing = [name for name in REQUIRED_ENV_VARS if not env.get(name, "").strip()]
        if missing:
            raise ConfigError(
                "Missing required environment variable(s): " + ", ".join(missing)
            )

        port = int(_get_number(env, "PORT", DEFAULT_PORT, int))
        if port > MAX_PORT:
            raise ConfigError(f"PORT must be at most {MAX_PORT}, got {port}")

        cors_raw = env.get("CORS_ORIGINS", "").strip()
        if cors_raw:
            cors_origins = tuple(o.strip() for o in cors_raw.split(",") if o.strip())
        else:
            cors_origins = DEFAULT_CORS_ORIGINS

        return cls(
            github_token=env["GITHUB_TOKEN"].strip(),
            github_owner=env["GITHUB_OWNER"].strip(),
            github_repo=env["GITHUB_REPO"].strip(),
            keepalive_endpoint=env["RENDER_ENDPOINT"].strip(),
            github_branch=env.get("GITHUB_BRANCH", "").strip() or DEFAULT_BRANCH,
            github_api_base=env.get("GITHUB_API_BASE", "").strip() or GITHUB_API_BASE,
            host=env.get("HOST", "").strip() or DEFAULT_HOST,
            port=port,
            ledger_path=env.get("LEDGER_PATH", "").strip() or DEFAULT_LEDGER_PATH,
            upload_dir=env.get("UPLOAD_DIR", "").strip() or DEFAULT_UPLOAD_DIR,
            cors_origins=cors_origins,
            keepalive_interval_secs=_get_number(
                env, "KEEPALIVE_INTERVAL_SECS", KEEPALIVE_INTERVAL_SECS, float
            ),
            keepalive_path=env.get("KEEPALIVE_PATH", "").strip() or KEEPALIVE_PATH,
            keepalive_timeout_secs=_get_number(
                env, "KEEPALIVE_TIMEOUT_SECS", KEEPALIVE_TIMEOUT_SECS, float
            ),
            ledger_max_attempts=int(
                _get_number(env, "LEDGER_MAX_ATTEMPTS", LEDGER_MAX_ATTEMPTS, int)
            ),
            log_level=(env.get("LOG_LEVEL", "").strip() or "INFO").upper(),
        )

    def summary(self) -> dict[str, object]:
        """Loggable view of the configuration (no credentials)."""
        return {
            "github_owner": self.github_owner,
            "github_repo": self.github_repo,
            "github_branch": self.github_branch,
            "ledger_path": self.ledger_path,
            "keepalive_endpoint": self.keepalive_endpoint,
            "keepalive_interval_secs": self.keepalive_interval_secs,
            "port": self.port,
        }
