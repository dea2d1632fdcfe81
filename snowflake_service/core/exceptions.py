#!/usr/bin/env python3
"""
Exceptions raised by the Snowflake ID generator.
"""

from typing import Optional


class SnowflakeError(Exception):
    """Base class for all generator errors."""


class InvalidConfiguration(SnowflakeError, ValueError):
    """Raised when the generator is constructed with invalid settings."""


class InvalidSnowflakeID(SnowflakeError, ValueError):
    """Raised when a value cannot be decoded as a Snowflake ID."""


class ClockRegression(SnowflakeError):
    """
    Raised when the wall clock is observed behind the last used timestamp.

    Attributes:
        last_timestamp: Timestamp offset of the most recently produced ID
        current_timestamp: Timestamp offset read from the clock
    """

    def __init__(self, last_timestamp: int, current_timestamp: int):
        self.last_timestamp = last_timestamp
        self.current_timestamp = current_timestamp
        super().__init__(
            f"Clock moved backwards by {self.drift_ms}ms "
            f"(last={last_timestamp}, current={current_timestamp})"
        )

    @property
    def drift_ms(self) -> int:
        return self.last_timestamp - self.current_timestamp


class SequenceExhaustedTimeout(SnowflakeError):
    """Raised when waiting for the next millisecond exceeds the configured timeout."""

    def __init__(self, last_timestamp: int, timeout: Optional[float]):
        self.last_timestamp = last_timestamp
        self.timeout = timeout
        super().__init__(
            f"Sequence exhausted at timestamp {last_timestamp} and clock did not "
            f"advance within {timeout}s"
        )


class TimestampOutOfRange(SnowflakeError):
    """Raised when the clock reading does not fit the timestamp field."""

    def __init__(self, timestamp: int, max_timestamp: int):
        self.timestamp = timestamp
        self.max_timestamp = max_timestamp
        super().__init__(
            f"Timestamp offset {timestamp} is outside [0, {max_timestamp}]"
        )
