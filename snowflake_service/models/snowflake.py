#!/usr/bin/env python3
"""
Snowflake ID data models for the Snowflake ID Service.
"""

from typing import List, Dict, Any
from datetime import datetime
from pydantic import BaseModel, Field


class IdResponse(BaseModel):
    """Single ID response model."""

    id: str = Field(..., description="Snowflake ID as a decimal string", examples=["175928847299117063"])
    node_id: int


class BatchIdResponse(BaseModel):
    """Batch ID response model."""

    ids: List[str] = Field(..., description="Snowflake IDs in generation order")
    count: int
    node_id: int


class DecodedIdResponse(BaseModel):
    """Decoded ID response model."""

    id: str
    timestamp: int = Field(..., description="Milliseconds since the service epoch")
    unix_ms: int = Field(..., description="Milliseconds since the Unix epoch")
    minted_at: datetime
    node_id: int
    sequence: int


class LayoutInfo(BaseModel):
    """Bit layout model."""

    timestamp_bits: int
    node_bits: int
    sequence_bits: int


class HealthResponse(BaseModel):
    """Service health response model."""

    status: str
    node_id: int
    epoch: int
    layout: LayoutInfo
    server_time: datetime


class ErrorResponse(BaseModel):
    """Error response model."""

    error: Dict[str, Any]
