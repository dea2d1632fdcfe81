#!/usr/bin/env python3
"""
Main application module for the Snowflake ID Service.
"""

import time
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR
from loguru import logger

from snowflake_service import __version__
from snowflake_service.core.config import config
from snowflake_service.core.exceptions import SnowflakeError
from snowflake_service.core.generator import generate_id, snowflake_generator
from snowflake_service.api.endpoints import router


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Log startup
    env = (config.get("app") or {}).get("env", "development")
    logger.info(
        f"Snowflake ID Service started - Environment: {env}, Version: {__version__}, "
        f"NodeID: {snowflake_generator.node_id}"
    )

    yield

    # Log shutdown
    logger.info("Snowflake ID Service shutdown")


# Create FastAPI application
app = FastAPI(
    title="Snowflake ID Service",
    description="Generates unique, roughly time-ordered 64-bit IDs. Each deployed instance owns one node ID.",
    version=__version__,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """
    Add security headers to all responses.

    Args:
        request: Request object
        call_next: Next middleware

    Returns:
        Response
    """
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"

    return response


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log all requests.

    Args:
        request: Request object
        call_next: Next middleware

    Returns:
        Response
    """
    trace_id = request.state.trace_id
    request_logger = logger.bind(trace_id=trace_id)

    client_host = request.client.host if request.client else "unknown"
    request_logger.info(
        f"Request {request.method} {request.url.path} - ClientIP: {client_host}, UserAgent: {request.headers.get('User-Agent', 'unknown')}"
    )

    # Process request
    start_time = time.time()

    try:
        response = await call_next(request)

        duration = time.time() - start_time
        request_logger.info(f"Response {response.status_code} - Duration: {duration:.3f}s")

        return response
    except Exception as e:
        duration = time.time() - start_time

        request_logger.exception(
            f"Error processing request: {str(e)}, type: {type(e).__name__}, duration: {duration:.3f}s"
        )

        error_response = JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "internal_server_error",
                    "message": "An internal server error occurred",
                    "trace_id": trace_id
                }
            }
        )

        request_logger.info(f"Response {HTTP_500_INTERNAL_SERVER_ERROR} - Duration: {duration:.3f}s")

        return error_response


# Registered last so it runs first and the trace ID is set for the other middlewares
@app.middleware("http")
async def add_trace_id(request: Request, call_next):
    """
    Add trace ID to all responses.

    Args:
        request: Request object
        call_next: Next middleware

    Returns:
        Response
    """
    # Generate trace ID using Snowflake ID; the endpoint reports generator failures
    try:
        trace_id = generate_id()
    except SnowflakeError as e:
        trace_id = uuid.uuid4().hex
        logger.bind(trace_id=trace_id).warning(
            f"Cannot generate Snowflake trace ID: {str(e)}, type: {type(e).__name__}"
        )

    request.state.trace_id = trace_id

    response = await call_next(request)

    response.headers["X-Trace-ID"] = trace_id

    return response


# Include API router
app.include_router(router)


if __name__ == "__main__":
    """Run the application."""
    import uvicorn

    # Get port from config or use default
    port = (config.get("app") or {}).get("port", 8000)

    # Run the application
    uvicorn.run(
        "snowflake_service.main:app",
        host="0.0.0.0",
        port=port,
        reload=(config.get("app") or {}).get("env") == "development"
    )
