"""
Models module for the Snowflake ID Service.
"""

from snowflake_service.models.snowflake import (
    IdResponse,
    BatchIdResponse,
    DecodedIdResponse,
    LayoutInfo,
    HealthResponse,
    ErrorResponse
)
