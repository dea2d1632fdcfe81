#!/usr/bin/env python3
"""
Configuration module for the Snowflake ID Service.
"""

import os
import sys
from typing import Dict, Any, Optional
import yaml
import pytz
from datetime import datetime
from pydantic_settings import BaseSettings
from loguru import logger

from snowflake_service.core.const import DEFAULT_EPOCH, DEFAULT_MAX_BATCH_SIZE
from snowflake_service.core.exceptions import InvalidConfiguration
from snowflake_service.core.snowflake import SnowflakeLayout


# Top-level sections of the configuration file
SECTIONS = ("app", "snowflake", "logging")


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Generator configuration (unset values fall back to the configuration file)
    node_id: Optional[int] = None
    epoch: Optional[int] = None
    wait_timeout_ms: Optional[float] = None

    # Logging configuration
    log_level: Optional[str] = None

    # Configuration file path
    config_path: str = "config/settings.yaml"

    # Timezone configuration
    timezone: Optional[str] = None

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore"
    }


def load_yaml_config(file_path: str) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        file_path: Path to YAML configuration file

    Returns:
        Configuration dictionary
    """
    if not os.path.exists(file_path):
        logger.warning(f"Configuration file not found: {file_path}")
        return {}

    try:
        with open(file_path, "r") as f:
            file_config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading configuration file: {str(e)}")
        return {}

    if not isinstance(file_config, dict):
        logger.error(f"Invalid configuration file {file_path}: top level must be a mapping")
        return {}

    return file_config


def get_layout(config: Dict[str, Any]) -> SnowflakeLayout:
    """
    Build the bit layout from the `snowflake.layout` section.

    Raises:
        InvalidConfiguration: If the widths are invalid
    """
    snowflake_config = config.get("snowflake") or {}
    return SnowflakeLayout(**(snowflake_config.get("layout") or {}))


def validate_config(config: Dict[str, Any]) -> bool:
    """
    Validate configuration.

    Args:
        config: Configuration dictionary

    Returns:
        True if configuration is valid, False otherwise
    """
    # Check sections (an empty section loads as None)
    for section in SECTIONS:
        if config.get(section) is not None and not isinstance(config[section], dict):
            logger.error(f"Invalid {section} section: must be a mapping")
            return False

    snowflake_config = config.get("snowflake") or {}

    # Check layout
    layout_config = snowflake_config.get("layout") or {}
    if not isinstance(layout_config, dict) or not set(layout_config) <= {"timestamp_bits", "node_bits", "sequence_bits"}:
        logger.error("Invalid snowflake.layout: expected timestamp_bits, node_bits and sequence_bits")
        return False
    try:
        layout = get_layout(config)
    except InvalidConfiguration as e:
        logger.error(f"Invalid snowflake.layout: {str(e)}")
        return False

    # Check generator settings
    node_id = snowflake_config.get("node_id", 0)
    if not isinstance(node_id, int) or isinstance(node_id, bool) or not 0 <= node_id <= layout.max_node_id:
        logger.error(f"Invalid node_id: must be an integer between 0 and {layout.max_node_id}")
        return False

    epoch = snowflake_config.get("epoch", DEFAULT_EPOCH)
    if not isinstance(epoch, int) or isinstance(epoch, bool) or epoch < 0:
        logger.error("Invalid epoch: must be a non-negative integer (milliseconds)")
        return False

    wait_timeout_ms = snowflake_config.get("wait_timeout_ms")
    if wait_timeout_ms is not None and (not isinstance(wait_timeout_ms, (int, float)) or wait_timeout_ms <= 0):
        logger.error("Invalid wait_timeout_ms: must be a positive number")
        return False

    # Check app configuration
    app_config = config.get("app") or {}
    max_batch_size = app_config.get("max_batch_size", DEFAULT_MAX_BATCH_SIZE)
    if not isinstance(max_batch_size, int) or max_batch_size < 1:
        logger.error("Invalid max_batch_size: must be a positive integer")
        return False

    if not isinstance(app_config.get("port", 8000), int):
        logger.error("Invalid port: must be an integer")
        return False

    # Check logging configuration
    logging_config = config.get("logging") or {}
    if not isinstance(logging_config.get("file") or {}, dict):
        logger.error("Invalid logging.file: must be a mapping")
        return False

    return True


def merge_configs(env_config: Settings, file_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge environment and file configurations.

    Args:
        env_config: Environment configuration
        file_config: File configuration

    Returns:
        Merged configuration
    """
    # Start with file configuration, dropping empty sections
    merged_config = {key: value for key, value in file_config.items() if value is not None}

    # Override with environment variables that were set
    for key, value in env_config.model_dump().items():
        if value is None:
            continue
        if key in ["node_id", "epoch", "wait_timeout_ms"]:
            merged_config.setdefault("snowflake", {})[key] = value
        elif key == "log_level":
            merged_config.setdefault("logging", {})["level"] = value
        elif key == "timezone":
            merged_config.setdefault("app", {})["timezone"] = value

    # Handle PORT environment variable separately
    if "PORT" in os.environ:
        try:
            port_value = int(os.environ["PORT"])
            merged_config.setdefault("app", {})["port"] = port_value
        except (ValueError, TypeError):
            logger.warning(f"Invalid PORT environment variable value: {os.environ['PORT']}")

    return merged_config


def setup_logging(config: Dict[str, Any]) -> None:
    """
    Set up logging configuration.

    Args:
        config: Configuration dictionary
    """
    logging_config = config.get("logging") or {}
    log_level = logging_config.get("level") or "INFO"

    # Remove default logger
    logger.remove()

    # Configure Loguru to display trace_id in request logs
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <yellow>trace_id={extra[trace_id]}</yellow> | <level>{message}</level>",
        filter=lambda record: "trace_id" in record["extra"],
        level=log_level
    )
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>",
        filter=lambda record: "trace_id" not in record["extra"],
        level=log_level
    )

    # Add file logger if configured
    log_file = logging_config.get("file") or {}
    if log_file.get("path"):
        logger.add(
            log_file.get("path"),
            level=log_level,
            rotation=log_file.get("max_size", "100MB"),
            retention=log_file.get("backup_count", 5),
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"
        )


def load_config() -> Dict[str, Any]:
    """
    Load application configuration.

    Returns:
        Configuration dictionary
    """
    # Load environment variables
    try:
        env_config = Settings()
    except Exception as e:
        logger.error(f"Error loading environment variables: {str(e)}")
        sys.exit(1)

    # Load configuration file
    file_config = load_yaml_config(env_config.config_path)

    # Merge configurations
    config = merge_configs(env_config, file_config)

    # Validate configuration
    if not validate_config(config):
        logger.error("Invalid configuration")
        sys.exit(1)

    # Set up logging
    setup_logging(config)

    # Set default timezone
    timezone_name = (config.get("app") or {}).get("timezone") or "UTC"
    try:
        pytz.timezone(timezone_name)
        logger.info(f"Default timezone set to {timezone_name}")
    except pytz.exceptions.UnknownTimeZoneError:
        logger.error(f"Unknown timezone: {timezone_name}, using UTC instead")
        timezone_name = "UTC"

    # Store the timezone in the config
    config.setdefault("app", {})["timezone"] = timezone_name

    logger.info(f"Configuration loaded from {env_config.config_path}")

    return config


# Global configuration instance
config = load_config()

# Get the configured timezone
def get_timezone():
    """Get the configured timezone."""
    timezone_name = (config.get("app") or {}).get("timezone") or "UTC"
    return pytz.timezone(timezone_name)

# Function to get current datetime with timezone
def get_current_datetime():
    """Get current datetime with the configured timezone."""
    tz = get_timezone()
    return datetime.now(tz)
