"""Logging from config and env.

Levels (inclusive):
- ERROR: failed loads that cannot be shown
- WARNING: per-item enrichment failures, unavailable teams, unreadable filters
- INFO: state transitions, load and enrichment summaries
- DEBUG: cache hits, stale results, filter stage counts

Configure via config.yaml (logging.level, logging.format) or env (LOGGING_LEVEL, LOGGING_FORMAT).
"""

import logging

from gitreviewit.config import LoggingConfig

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

DEFAULT_LEVEL = "INFO"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chatty third-party loggers kept at WARNING unless we run at DEBUG
QUIET_LOGGERS = ("urllib3", "requests")


def _resolve_level(level: str) -> int:
    """Map level name to logging constant, INFO if unknown."""
    return LEVELS.get(level.upper().strip(), logging.INFO)


class ReviewItLogging:
    """Configures root logger from LoggingConfig (YAML + env LOGGING_*)."""

    def __init__(self, config: LoggingConfig) -> None:
        self._level = _resolve_level(config.level)
        self._format = config.format or DEFAULT_FORMAT

    @property
    def level(self) -> int:
        return self._level

    def setup(self) -> None:
        """Apply level and format to the root logger."""
        logging.basicConfig(
            level=self._level,
            format=self._format,
            force=True,
        )
        quiet_level = logging.DEBUG if self._level == logging.DEBUG else logging.WARNING
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(quiet_level)
