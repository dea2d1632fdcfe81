#!/usr/bin/env python3
"""
API endpoints for the Snowflake ID Service.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_503_SERVICE_UNAVAILABLE
from loguru import logger

from snowflake_service.models.snowflake import (
    IdResponse,
    BatchIdResponse,
    DecodedIdResponse,
    HealthResponse,
    LayoutInfo
)
from snowflake_service.core.config import config, get_timezone, get_current_datetime
from snowflake_service.core.const import DEFAULT_MAX_BATCH_SIZE
from snowflake_service.core.exceptions import (
    SnowflakeError,
    ClockRegression
)
from snowflake_service.core.generator import get_generator
from snowflake_service.core.snowflake import SnowflakeGenerator


MAX_BATCH_SIZE = (config.get("app") or {}).get("max_batch_size", DEFAULT_MAX_BATCH_SIZE)


router = APIRouter(
    tags=["v1"]
)


def _unavailable(error: SnowflakeError, request: Request) -> HTTPException:
    """
    Log a generation failure and build the HTTP error for it.

    Args:
        error: Generator error
        request: Request object

    Returns:
        HTTP 503 exception
    """
    trace_id = getattr(request.state, "trace_id", None)
    log = logger.bind(trace_id=trace_id) if trace_id else logger

    if isinstance(error, ClockRegression):
        log.error(f"Clock regression on ID generation, drift: {error.drift_ms}ms")
    else:
        log.error(f"ID generation failed: {str(error)}, type: {type(error).__name__}")

    return HTTPException(
        status_code=HTTP_503_SERVICE_UNAVAILABLE,
        detail=str(error)
    )


@router.get("/api/v1/ids/next", response_model=IdResponse, tags=["IDs"])
def next_id(
    request: Request,
    generator: SnowflakeGenerator = Depends(get_generator)
):
    """
    Generate a single ID.

    Args:
        request: Request object
        generator: Snowflake generator

    Returns:
        ID response
    """
    try:
        snowflake_id = generator.next_id_str()
    except SnowflakeError as e:
        raise _unavailable(e, request)

    return {"id": snowflake_id, "node_id": generator.node_id}


@router.get("/api/v1/ids", response_model=BatchIdResponse, tags=["IDs"])
def next_ids(
    request: Request,
    count: int = Query(1, ge=1, le=MAX_BATCH_SIZE, description="Number of IDs to generate"),
    generator: SnowflakeGenerator = Depends(get_generator)
):
    """
    Generate a batch of IDs.

    Args:
        request: Request object
        count: Number of IDs
        generator: Snowflake generator

    Returns:
        Batch ID response
    """
    try:
        ids = generator.next_ids(count)
    except SnowflakeError as e:
        raise _unavailable(e, request)

    return {
        "ids": [str(snowflake_id) for snowflake_id in ids],
        "count": len(ids),
        "node_id": generator.node_id
    }


@router.get("/api/v1/ids/{snowflake_id}/decode", response_model=DecodedIdResponse, tags=["IDs"])
async def decode_id(
    snowflake_id: str,
    generator: SnowflakeGenerator = Depends(get_generator)
):
    """
    Decode an ID using this deployment's epoch and layout.

    Args:
        snowflake_id: Snowflake ID as a decimal string
        generator: Snowflake generator

    Returns:
        Decoded ID response
    """
    try:
        parts = generator.decode(int(snowflake_id))
    except ValueError as e:
        logger.warning(f"Cannot decode ID {snowflake_id}: {str(e)}")
        raise HTTPException(
            status_code=HTTP_400_BAD_REQUEST,
            detail=f"Invalid Snowflake ID: {snowflake_id}"
        )

    return {
        "id": snowflake_id,
        "timestamp": parts.timestamp,
        "unix_ms": parts.unix_ms(generator.epoch),
        "minted_at": parts.to_datetime(generator.epoch, get_timezone()),
        "node_id": parts.node_id,
        "sequence": parts.sequence
    }


@router.get("/api/v1/health", response_model=HealthResponse, tags=["Health"])
async def health(generator: SnowflakeGenerator = Depends(get_generator)):
    """
    Report the generator configuration of this instance.

    Returns:
        Health response
    """
    return {
        "status": "ok",
        "node_id": generator.node_id,
        "epoch": generator.epoch,
        "layout": LayoutInfo(**generator.layout.to_dict()),
        "server_time": get_current_datetime()
    }
