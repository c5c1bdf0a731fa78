"""UI configuration constants.

Centralizes magic numbers and configuration values for the UI module.
"""

from enum import IntEnum


class LogLevel(IntEnum):
    """Log panel thresholds; a lower value lets more entries through."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40

    @classmethod
    def parse(cls, value: str | None) -> "LogLevel":
        """Map 'debug'/'info'/'warning'/'error' (any case) to a level; DEBUG otherwise."""
        try:
            return cls[(value or "").upper()]
        except KeyError:
            return cls.DEBUG


# Input history configuration
INPUT_HISTORY_MAX_SIZE = 100

# Log panel configuration
LOG_TIMESTAMP_FORMAT = "%H:%M:%S"
LOG_MAX_MESSAGE_LENGTH = 500
LOG_MAX_LINES = 1000

# Notification timeouts (seconds)
NOTIFY_SHORT = 2
NOTIFY_ERROR = 5

# Header shown while a request is in flight
SENDING_SUBTITLE = "Sending..."
