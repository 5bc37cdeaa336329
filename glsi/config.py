"""Runtime configuration and logging setup.

Architectural role:
    Centralizes process-wide settings consumed by the bootstrap layer when it
    wires the cache store, the web collaborators and the engine. Values are
    read from the environment (a local `.env` file is honoured through
    `python-dotenv`).

Relevant environment variables:
    - `GLSI_DB_PATH`
    - `GLSI_SEARCH_ENGINE`
    - `GLSI_RATE_LIMIT_SECONDS`
    - `GLSI_FETCH_TIMEOUT_SECONDS`
    - `GLSI_MAX_CONCURRENCY`
    - `GLSI_MAX_RESULTS`
    - `GLSI_DEFAULT_COUNT`
    - `GLSI_USER_AGENT`
    - `GLSI_LOG_LEVEL`

Failure behavior:
    Malformed numeric values raise `ConfigurationError` at startup rather than
    silently falling back to defaults.
"""

import logging
import os
from dataclasses import dataclass, replace

from dotenv import load_dotenv

from glsi.core.exceptions import ConfigurationError

load_dotenv()


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    """Process-wide pipeline configuration.

    The rate-limit delay is shared by every call; it does not adapt per call.
    """

    db_path: str = ""
    search_engine: str = "google"
    rate_limit_seconds: float = 1.0
    fetch_timeout_seconds: float = 3.0
    max_concurrency: int = 10
    max_results: int = 20
    default_count: int = 5
    user_agent: str = DEFAULT_USER_AGENT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from `GLSI_*` environment variables."""
        return cls(
            db_path=os.getenv("GLSI_DB_PATH", "").strip(),
            search_engine=os.getenv("GLSI_SEARCH_ENGINE", "google").strip().lower(),
            rate_limit_seconds=_env_number("GLSI_RATE_LIMIT_SECONDS", 1.0, float),
            fetch_timeout_seconds=_env_number("GLSI_FETCH_TIMEOUT_SECONDS", 3.0, float),
            max_concurrency=_env_number("GLSI_MAX_CONCURRENCY", 10, int),
            max_results=_env_number("GLSI_MAX_RESULTS", 20, int),
            default_count=_env_number("GLSI_DEFAULT_COUNT", 5, int),
            user_agent=os.getenv("GLSI_USER_AGENT", DEFAULT_USER_AGENT).strip(),
            log_level=os.getenv("GLSI_LOG_LEVEL", "INFO").strip().upper(),
        ).validated()

    def validated(self) -> "Settings":
        if self.rate_limit_seconds < 0:
            raise ConfigurationError("rate limit must not be negative")
        if self.fetch_timeout_seconds <= 0:
            raise ConfigurationError("fetch timeout must be positive")
        if self.max_concurrency <= 0:
            raise ConfigurationError("max concurrency must be positive")
        if self.max_results <= 0 or self.default_count <= 0:
            raise ConfigurationError("result counts must be positive")
        return self

    def with_overrides(self, **changes) -> "Settings":
        """Return a copy with non-`None` overrides applied."""
        applied = {key: value for key, value in changes.items() if value is not None}
        return replace(self, **applied).validated()


def _env_number(name, default, cast):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(f"invalid value for {name}: {raw!r}") from exc


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for CLI and server entrypoints."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
