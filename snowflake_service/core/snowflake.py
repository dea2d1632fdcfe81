#!/usr/bin/env python3
"""
Snowflake ID generator for distributed unique ID generation.
"""

import time
import threading
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable, NamedTuple, Optional, List

from loguru import logger

from snowflake_service.core.const import (
    DEFAULT_EPOCH,
    TOTAL_BITS,
    TIMESTAMP_BITS,
    NODE_BITS,
    SEQUENCE_BITS,
)
from snowflake_service.core.exceptions import (
    InvalidConfiguration,
    InvalidSnowflakeID,
    ClockRegression,
    SequenceExhaustedTimeout,
    TimestampOutOfRange,
)


UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class SnowflakeParts(NamedTuple):
    """Fields packed into a Snowflake ID. `timestamp` is the offset from the epoch."""

    timestamp: int
    node_id: int
    sequence: int

    def unix_ms(self, epoch: int = DEFAULT_EPOCH) -> int:
        """Milliseconds since the Unix epoch at which the ID was minted."""
        return self.timestamp + epoch

    def to_datetime(self, epoch: int = DEFAULT_EPOCH, tz: Optional[tzinfo] = None) -> datetime:
        """
        Instant at which the ID was minted.

        Args:
            epoch: Epoch the ID was generated against
            tz: Target timezone (UTC by default)

        Returns:
            Timezone-aware datetime
        """
        minted = UNIX_EPOCH + timedelta(milliseconds=self.unix_ms(epoch))
        if tz is not None:
            return minted.astimezone(tz)
        return minted


class SnowflakeLayout:
    """
    Bit layout of a Snowflake ID.

    Structure (most to least significant):
    - 1 bit always 0
    - 41 bits for timestamp (milliseconds since epoch)
    - 10 bits for node ID
    - 12 bits for sequence number

    The widths can be changed as long as each is positive and they add up to 63.
    """

    def __init__(self, timestamp_bits: int = TIMESTAMP_BITS, node_bits: int = NODE_BITS,
                 sequence_bits: int = SEQUENCE_BITS):
        for name, bits in (("timestamp_bits", timestamp_bits), ("node_bits", node_bits),
                           ("sequence_bits", sequence_bits)):
            if not isinstance(bits, int) or isinstance(bits, bool) or bits <= 0:
                raise InvalidConfiguration(f"{name} must be a positive integer, got {bits!r}")

        if timestamp_bits + node_bits + sequence_bits != TOTAL_BITS:
            raise InvalidConfiguration(
                f"Bit widths must sum to {TOTAL_BITS}, got "
                f"{timestamp_bits}+{node_bits}+{sequence_bits}"
            )

        self.timestamp_bits = timestamp_bits
        self.node_bits = node_bits
        self.sequence_bits = sequence_bits

        self.max_timestamp = (1 << timestamp_bits) - 1
        self.max_node_id = (1 << node_bits) - 1
        self.max_sequence = (1 << sequence_bits) - 1
        self.node_shift = sequence_bits
        self.timestamp_shift = node_bits + sequence_bits
        self.max_id = (1 << TOTAL_BITS) - 1

    def __repr__(self):
        return (f"<SnowflakeLayout(timestamp_bits={self.timestamp_bits}, "
                f"node_bits={self.node_bits}, sequence_bits={self.sequence_bits})>")

    def __eq__(self, other):
        if not isinstance(other, SnowflakeLayout):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self):
        return hash((self.timestamp_bits, self.node_bits, self.sequence_bits))

    def to_dict(self):
        return {
            "timestamp_bits": self.timestamp_bits,
            "node_bits": self.node_bits,
            "sequence_bits": self.sequence_bits,
        }

    def encode(self, timestamp: int, node_id: int, sequence: int) -> int:
        """
        Pack the three fields into an ID.

        Args:
            timestamp: Milliseconds since epoch
            node_id: Node ID
            sequence: Sequence number within the millisecond

        Returns:
            Snowflake ID as integer

        Raises:
            ValueError: If a field does not fit its bit range
        """
        if not 0 <= timestamp <= self.max_timestamp:
            raise ValueError(f"timestamp must be between 0 and {self.max_timestamp}")
        if not 0 <= node_id <= self.max_node_id:
            raise ValueError(f"node_id must be between 0 and {self.max_node_id}")
        if not 0 <= sequence <= self.max_sequence:
            raise ValueError(f"sequence must be between 0 and {self.max_sequence}")

        return (
            (timestamp << self.timestamp_shift) |  # Timestamp
            (node_id << self.node_shift) |         # Node ID
            sequence                               # Sequence
        )

    def decode(self, snowflake_id: int) -> SnowflakeParts:
        """
        Unpack an ID into its fields.

        Args:
            snowflake_id: Snowflake ID

        Returns:
            SnowflakeParts(timestamp, node_id, sequence)

        Raises:
            InvalidSnowflakeID: If the value is not a non-negative 63-bit integer
        """
        if not isinstance(snowflake_id, int) or isinstance(snowflake_id, bool):
            raise InvalidSnowflakeID(f"Snowflake ID must be an integer, got {type(snowflake_id).__name__}")
        if not 0 <= snowflake_id <= self.max_id:
            raise InvalidSnowflakeID(f"Snowflake ID must be between 0 and {self.max_id}, got {snowflake_id}")

        return SnowflakeParts(
            timestamp=snowflake_id >> self.timestamp_shift,
            node_id=(snowflake_id >> self.node_shift) & self.max_node_id,
            sequence=snowflake_id & self.max_sequence,
        )


DEFAULT_LAYOUT = SnowflakeLayout()


def wall_clock_ms() -> int:
    """
    Get current timestamp in milliseconds.

    Returns:
        Milliseconds since the Unix epoch
    """
    return int(time.time() * 1000)


class SnowflakeGenerator:
    """
    Snowflake ID generator that creates unique 64-bit IDs.

    This provides:
    - ~69 years of usable timestamps from custom epoch
    - Support for 1024 different node IDs
    - 4096 IDs per millisecond per node

    IDs from one instance are strictly increasing. Calls are serialized by a lock
    so the instance can be shared between threads.
    """

    def __init__(self, node_id: int = 0, epoch: int = DEFAULT_EPOCH,
                 layout: SnowflakeLayout = DEFAULT_LAYOUT,
                 clock: Optional[Callable[[], int]] = None,
                 wait_timeout: Optional[float] = None):
        """
        Initialize Snowflake ID generator.

        Args:
            node_id: Node ID (0-1023 with the default layout)
            epoch: Custom epoch in milliseconds (default: 2015-01-01 00:00:00 UTC)
            layout: Bit layout
            clock: Callable returning wall-clock milliseconds since the Unix epoch
            wait_timeout: Seconds to wait for the clock when a millisecond's
                sequence is exhausted (None waits indefinitely)

        Raises:
            InvalidConfiguration: If any argument is out of range
        """
        if not isinstance(layout, SnowflakeLayout):
            raise InvalidConfiguration("layout must be a SnowflakeLayout")

        if not isinstance(node_id, int) or isinstance(node_id, bool) or not 0 <= node_id <= layout.max_node_id:
            raise InvalidConfiguration(f"Node ID must be between 0 and {layout.max_node_id}, got {node_id!r}")

        if not isinstance(epoch, int) or isinstance(epoch, bool) or epoch < 0:
            raise InvalidConfiguration(f"Epoch must be a non-negative integer, got {epoch!r}")

        if wait_timeout is not None and wait_timeout <= 0:
            raise InvalidConfiguration(f"Wait timeout must be positive, got {wait_timeout!r}")

        self._node_id = node_id
        self._epoch = epoch
        self._layout = layout
        self._clock = clock or wall_clock_ms
        self._wait_timeout = wait_timeout

        self._sequence = 0
        self._last_timestamp = -1
        self._lock = threading.Lock()

    def __repr__(self):
        return f"<SnowflakeGenerator(node_id={self._node_id}, epoch={self._epoch})>"

    @property
    def node_id(self) -> int:
        return self._node_id

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def layout(self) -> SnowflakeLayout:
        return self._layout

    @property
    def wait_timeout(self) -> Optional[float]:
        return self._wait_timeout

    @property
    def last_timestamp(self) -> int:
        return self._last_timestamp

    @property
    def sequence(self) -> int:
        return self._sequence

    def next_id(self) -> int:
        """
        Generate next Snowflake ID.

        Returns:
            Snowflake ID as integer

        Raises:
            ClockRegression: If the clock moved behind the last used timestamp
            SequenceExhaustedTimeout: If the wait for the next millisecond timed out
            TimestampOutOfRange: If the clock is before the epoch or past the timestamp field
        """
        with self._lock:
            current_timestamp = self._current_timestamp()

            # Clock before the epoch
            if current_timestamp < 0:
                raise TimestampOutOfRange(current_timestamp, self._layout.max_timestamp)

            if current_timestamp < self._last_timestamp:
                error = ClockRegression(self._last_timestamp, current_timestamp)
                logger.warning(f"Refusing to generate ID on node {self._node_id}: {error}")
                raise error

            if current_timestamp == self._last_timestamp:
                sequence = (self._sequence + 1) & self._layout.max_sequence

                # Sequence overflow, wait for next millisecond
                if sequence == 0:
                    current_timestamp = self._wait_next_millis(self._last_timestamp)
            else:
                sequence = 0

            if current_timestamp > self._layout.max_timestamp:
                raise TimestampOutOfRange(current_timestamp, self._layout.max_timestamp)

            self._last_timestamp = current_timestamp
            self._sequence = sequence

            return (
                (current_timestamp << self._layout.timestamp_shift) |
                (self._node_id << self._layout.node_shift) |
                sequence
            )

    def next_id_str(self) -> str:
        """
        Generate next Snowflake ID as string.

        Returns:
            Snowflake ID as string
        """
        return str(self.next_id())

    def next_ids(self, count: int) -> List[int]:
        """
        Generate a batch of Snowflake IDs.

        Args:
            count: Number of IDs to generate (at least 1)

        Returns:
            IDs in generation order
        """
        if count < 1:
            raise ValueError("count must be at least 1")
        return [self.next_id() for _ in range(count)]

    def decode(self, snowflake_id: int) -> SnowflakeParts:
        """Decode an ID using this generator's layout."""
        return self._layout.decode(snowflake_id)

    def _current_timestamp(self) -> int:
        return self._clock() - self._epoch

    def _wait_next_millis(self, last_timestamp: int) -> int:
        """
        Wait until next millisecond.

        Args:
            last_timestamp: Last timestamp

        Returns:
            Next timestamp

        Raises:
            SequenceExhaustedTimeout: If the clock does not pass `last_timestamp` in time
        """
        logger.debug(f"Sequence exhausted at {last_timestamp} on node {self._node_id}, waiting for next millisecond")

        deadline = None
        if self._wait_timeout is not None:
            deadline = time.monotonic() + self._wait_timeout

        timestamp = self._current_timestamp()
        while timestamp <= last_timestamp:
            if deadline is not None and time.monotonic() >= deadline:
                logger.error(f"Clock did not advance past {last_timestamp} within {self._wait_timeout}s")
                raise SequenceExhaustedTimeout(last_timestamp, self._wait_timeout)
            time.sleep(0)
            timestamp = self._current_timestamp()
        return timestamp


def decode(snowflake_id: int, epoch: int = DEFAULT_EPOCH,
           layout: SnowflakeLayout = DEFAULT_LAYOUT) -> SnowflakeParts:
    """
    Decode a Snowflake ID.

    Args:
        snowflake_id: Snowflake ID
        epoch: Epoch the ID was generated against
        layout: Bit layout the ID was generated with

    Returns:
        SnowflakeParts; `parts.unix_ms(epoch)` recovers the minting instant
    """
    if not isinstance(epoch, int) or epoch < 0:
        raise InvalidConfiguration(f"Epoch must be a non-negative integer, got {epoch!r}")
    return layout.decode(snowflake_id)


def encode(timestamp: int, node_id: int, sequence: int,
           layout: SnowflakeLayout = DEFAULT_LAYOUT) -> int:
    """Pack a `(timestamp, node_id, sequence)` triple with the given layout."""
    return layout.encode(timestamp, node_id, sequence)
