"""Settings loaded from the environment or a .env file."""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "PAGETIDY_"


@dataclass(frozen=True)
class Settings:
    """Detection thresholds and session timing."""

    gap_tolerance: int = 2
    min_run: int = 3
    header_lines: int = 3
    idle_seconds: float = 3.0
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.gap_tolerance < 1:
            raise ValueError(f"gap_tolerance must be at least 1, got {self.gap_tolerance}")
        if self.min_run < 1:
            raise ValueError(f"min_run must be at least 1, got {self.min_run}")
        if self.header_lines < 1:
            raise ValueError(f"header_lines must be at least 1, got {self.header_lines}")
        if self.idle_seconds < 0:
            raise ValueError(f"idle_seconds must not be negative, got {self.idle_seconds}")

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """Read ``PAGETIDY_*`` variables, falling back to defaults."""
        if dotenv:
            load_dotenv()
        defaults = cls()
        return cls(
            gap_tolerance=_env_number("GAP_TOLERANCE", defaults.gap_tolerance, int, minimum=1),
            min_run=_env_number("MIN_RUN", defaults.min_run, int, minimum=1),
            header_lines=_env_number("HEADER_LINES", defaults.header_lines, int, minimum=1),
            idle_seconds=_env_number("IDLE_SECONDS", defaults.idle_seconds, float),
            log_level=os.getenv(ENV_PREFIX + "LOG_LEVEL", defaults.log_level).upper(),
        )


def _env_number(name: str, default, cast, minimum=0):
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Ignoring %s%s=%r, using %r", ENV_PREFIX, name, raw, default)
        return default
    if value < minimum:
        logger.warning("Ignoring %s%s=%r, using %r", ENV_PREFIX, name, raw, default)
        return default
    return value
