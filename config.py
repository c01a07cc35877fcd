"""Centralized configuration: scoring rule constants and environment variables."""

import logging
import os

# ---------------------------------------------------------------------------
# Rule constants
# ---------------------------------------------------------------------------

REGULATION_INNINGS = 9
OUTS_PER_HALF = 3
LINEUP_SIZE = 9
BASES_COUNT = 3

# Runaway-game guard: a game still going past this inning is a simulation bug.
MAX_INNINGS = 99

# Single pitcher of record per team unless the caller assigns another id.
DEFAULT_PITCHER_ID = 0

# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

LOG_LEVEL_ENV = "SCOREKEEPER_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def get_log_level() -> int:
    """Return the logging level named by the environment (WARNING if unset)."""
    name = os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).strip().upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ValueError(f"{LOG_LEVEL_ENV} has unknown logging level: {name!r}")
    return level


def configure_logging(level: int | None = None) -> None:
    """Configure root logging for scripts and interactive sessions.

    Library modules only create loggers; the embedding program decides
    whether to call this.
    """
    logging.basicConfig(
        level=get_log_level() if level is None else level,
        format=LOG_FORMAT,
    )
