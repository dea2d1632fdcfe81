"""
Constants module for the Snowflake ID Service.
"""

# 2015-01-01T00:00:00Z in milliseconds since the Unix epoch
DEFAULT_EPOCH = 1420070400000

# Bit partition of the 64-bit ID (the sign bit is always 0)
TOTAL_BITS = 63
TIMESTAMP_BITS = 41
NODE_BITS = 10
SEQUENCE_BITS = 12

MAX_NODE_ID = (1 << NODE_BITS) - 1
MAX_SEQUENCE = (1 << SEQUENCE_BITS) - 1

DEFAULT_MAX_BATCH_SIZE = 1000
