# MISP Bridge: Startup Configuration
#
# Reads the MISP connection settings from the environment (optionally
# seeded from a .env file).  The resulting MispConfig is immutable and
# shared by every tool invocation for the lifetime of the process.

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

DEFAULT_TIMEOUT_SEC = 30.0


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class MispConfig:
    url: str
    api_key: str
    verify_ssl: bool = True
    timeout: float = DEFAULT_TIMEOUT_SEC
    log_level: str = "INFO"
    log_format: str = "console"

    def __post_init__(self):
        object.__setattr__(self, "url", self.url.rstrip("/"))
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")

    def __repr__(self) -> str:
        # Keep the credential out of logs and tracebacks.
        return (
            f"MispConfig(url={self.url!r}, api_key='***', "
            f"verify_ssl={self.verify_ssl}, timeout={self.timeout})"
        )


def load_config(
    env: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[str] = None,
) -> MispConfig:
    """Build a MispConfig from environment variables.

    Args:
        env: Mapping to read instead of ``os.environ`` (tests).
        dotenv_path: Explicit .env file; by default the nearest .env
            is loaded when reading the real environment.

    Raises:
        ConfigError: MISP_URL or MISP_API_KEY is missing, or
            MISP_TIMEOUT is not a positive number.
    """
    if env is None:
        load_dotenv(dotenv_path)
        env = os.environ

    url = (env.get("MISP_URL") or "").strip()
    if not url:
        raise ConfigError("MISP_URL environment variable is required")

    api_key = (env.get("MISP_API_KEY") or "").strip()
    if not api_key:
        raise ConfigError("MISP_API_KEY environment variable is required")

    raw_timeout = env.get("MISP_TIMEOUT") or str(DEFAULT_TIMEOUT_SEC)
    try:
        timeout = float(raw_timeout)
    except ValueError:
        raise ConfigError(f"MISP_TIMEOUT must be a number of seconds, got {raw_timeout!r}")

    log_format = (env.get("MISP_LOG_FORMAT") or "console").lower()
    if log_format not in ("console", "json"):
        raise ConfigError(f"MISP_LOG_FORMAT must be 'console' or 'json', got {log_format!r}")

    return MispConfig(
        url=url,
        api_key=api_key,
        verify_ssl=(env.get("MISP_VERIFY_SSL") or "true").lower() != "false",
        timeout=timeout,
        log_level=(env.get("MISP_LOG_LEVEL") or "INFO").upper(),
        log_format=log_format,
    )
