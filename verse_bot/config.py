"""Bot configuration — loads environment variables from project root .env."""

import math
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(PROJECT_ROOT / ".env")

DEFAULT_PREFIX = "!"
DEFAULT_VERSE_API_URL = "https://bible-api.com/data/web/random"
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_MAX_RESPONSE_BYTES = 10 * 1024


class ConfigError(Exception):
    """Raised when the environment does not describe a runnable bot."""


@dataclass(frozen=True)
class Configuration:
    token: str
    debug: bool = False
    prefix: str = DEFAULT_PREFIX
    verse_api_url: str = DEFAULT_VERSE_API_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    max_response_bytes: int = DEFAULT_MAX_RESPONSE_BYTES


def _positive(name: str, raw: str | None, cast, default):
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw.strip())
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if not math.isfinite(value) or value <= 0:
        raise ConfigError(f"{name} must be a finite number greater than zero, got {raw!r}")
    return value


def load() -> Configuration:
    """Build the bot configuration from the process environment.

    Only DISCORD_BOT_TOKEN is required. The verse API settings are optional
    but always end up bounded: a zero or negative timeout or body cap is
    rejected rather than treated as "unlimited".
    """
    token = os.getenv("DISCORD_BOT_TOKEN", "").strip()
    if not token:
        raise ConfigError("missing credential: DISCORD_BOT_TOKEN is required")

    prefix = os.getenv("COMMAND_PREFIX", DEFAULT_PREFIX)
    if not prefix:
        raise ConfigError("COMMAND_PREFIX must not be empty")

    return Configuration(
        token=token,
        debug=os.getenv("DEBUG", "").strip().lower() == "true",
        prefix=prefix,
        verse_api_url=os.getenv("VERSE_API_URL") or DEFAULT_VERSE_API_URL,
        request_timeout=_positive(
            "VERSE_API_TIMEOUT", os.getenv("VERSE_API_TIMEOUT"),
            float, DEFAULT_REQUEST_TIMEOUT,
        ),
        max_response_bytes=_positive(
            "VERSE_API_MAX_BYTES", os.getenv("VERSE_API_MAX_BYTES"),
            int, DEFAULT_MAX_RESPONSE_BYTES,
        ),
    )
