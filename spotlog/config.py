"""
Harvest configuration.

Values come from the defaults below, then ``SPOT_*`` environment variables
(a ``.env`` file is loaded first by ``env.load_env``), then CLI flags.
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_BASE_URL = (
    "https://api.findmespot.com/spot-main-web/consumer/rest-api/2.0/public/feed"
)
DEFAULT_REQUEST_DELAY = 180.0  # seconds between feed requests
DEFAULT_REQUEST_TIMEOUT = 15.0

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _parse_bool(name: str, value: str) -> bool:
    v = value.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def _parse_number(name: str, value: str, cast):
    try:
        return cast(value.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


@dataclass(frozen=True)
class HarvestConfig:
    base_url: str = DEFAULT_BASE_URL
    request_delay: float = DEFAULT_REQUEST_DELAY
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    max_retries: int = 0
    strict_errors: bool = False
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    log_to_file: bool = True

    def __post_init__(self):
        if self.request_delay <= 0:
            raise ValueError("request_delay must be positive")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")
        if self.log_level.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {self.log_level}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "HarvestConfig":
        """Build a config from ``SPOT_*`` variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        kwargs = {}
        if env.get("SPOT_BASE_URL"):
            kwargs["base_url"] = env["SPOT_BASE_URL"].rstrip("/")
        if env.get("SPOT_REQUEST_DELAY"):
            kwargs["request_delay"] = _parse_number("SPOT_REQUEST_DELAY", env["SPOT_REQUEST_DELAY"], float)
        if env.get("SPOT_REQUEST_TIMEOUT"):
            kwargs["request_timeout"] = _parse_number("SPOT_REQUEST_TIMEOUT", env["SPOT_REQUEST_TIMEOUT"], float)
        if env.get("SPOT_MAX_RETRIES"):
            kwargs["max_retries"] = _parse_number("SPOT_MAX_RETRIES", env["SPOT_MAX_RETRIES"], int)
        if "SPOT_STRICT_ERRORS" in env:
            kwargs["strict_errors"] = _parse_bool("SPOT_STRICT_ERRORS", env["SPOT_STRICT_ERRORS"])
        if env.get("SPOT_LOG_LEVEL"):
            kwargs["log_level"] = env["SPOT_LOG_LEVEL"].strip().upper()
        if env.get("SPOT_LOG_DIR"):
            kwargs["log_dir"] = Path(env["SPOT_LOG_DIR"])
        if "SPOT_LOG_TO_FILE" in env:
            kwargs["log_to_file"] = _parse_bool("SPOT_LOG_TO_FILE", env["SPOT_LOG_TO_FILE"])
        return cls(**kwargs)

    def with_overrides(self, **overrides) -> "HarvestConfig":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
