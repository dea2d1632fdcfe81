#!/usr/bin/env python3
"""
Process-wide Snowflake generator built from the application configuration.
"""

import sys
from typing import Dict, Any
from loguru import logger

from snowflake_service.core.config import config, get_layout
from snowflake_service.core.const import DEFAULT_EPOCH
from snowflake_service.core.exceptions import InvalidConfiguration
from snowflake_service.core.snowflake import SnowflakeGenerator


def build_generator(config: Dict[str, Any]) -> SnowflakeGenerator:
    """
    Create a generator from the `snowflake` configuration section.

    Args:
        config: Configuration dictionary

    Returns:
        Snowflake generator

    Raises:
        InvalidConfiguration: If the section holds invalid values
    """
    snowflake_config = config.get("snowflake") or {}

    wait_timeout_ms = snowflake_config.get("wait_timeout_ms")
    wait_timeout = wait_timeout_ms / 1000 if wait_timeout_ms is not None else None

    return SnowflakeGenerator(
        node_id=snowflake_config.get("node_id", 0),
        epoch=snowflake_config.get("epoch", DEFAULT_EPOCH),
        layout=get_layout(config),
        wait_timeout=wait_timeout
    )


def _create_global_generator() -> SnowflakeGenerator:
    try:
        generator = build_generator(config)
    except InvalidConfiguration as e:
        logger.error(f"Cannot create Snowflake generator: {str(e)}")
        sys.exit(1)

    logger.info(f"Snowflake generator ready - NodeID: {generator.node_id}, Epoch: {generator.epoch}")
    return generator


# Create a global instance from the loaded configuration
snowflake_generator = _create_global_generator()


def get_generator() -> SnowflakeGenerator:
    """
    Get the process-wide generator (FastAPI dependency).

    Returns:
        Snowflake generator
    """
    return snowflake_generator


def generate_id() -> str:
    """
    Generate a new Snowflake ID.

    Returns:
        Snowflake ID as string
    """
    return snowflake_generator.next_id_str()
