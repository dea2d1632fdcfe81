"""
Snowflake ID Service package.
"""

__version__ = "0.1.0"

from snowflake_service.core.exceptions import (
    SnowflakeError,
    InvalidConfiguration,
    InvalidSnowflakeID,
    ClockRegression,
    SequenceExhaustedTimeout,
    TimestampOutOfRange
)
from snowflake_service.core.snowflake import (
    SnowflakeGenerator,
    SnowflakeLayout,
    SnowflakeParts,
    DEFAULT_LAYOUT,
    decode,
    encode
)

__all__ = [
    'SnowflakeError',
    'InvalidConfiguration',
    'InvalidSnowflakeID',
    'ClockRegression',
    'SequenceExhaustedTimeout',
    'TimestampOutOfRange',
    'SnowflakeGenerator',
    'SnowflakeLayout',
    'SnowflakeParts',
    'DEFAULT_LAYOUT',
    'decode',
    'encode'
]
