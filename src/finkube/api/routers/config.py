# src/finkube/api/routers/config.py
"""
API routes for health, version and non-sensitive configuration.
"""

import logging

from fastapi import APIRouter

from ... import __version__
from ...core.config import config
from ..schemas import ConfigResponse, HealthResponse, VersionResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    return HealthResponse(status="ok", version=__version__)


@router.get("/version", response_model=VersionResponse)
async def version():
    """Return the current application version."""
    return VersionResponse(version=__version__)


@router.get("/config", response_model=ConfigResponse)
async def get_config():
    """Return non-sensitive configuration values.

    The bearer token of the query backend is never exposed.
    """
    return ConfigResponse(
        query_backend_endpoint=config.QUERY_BACKEND_ENDPOINT,
        query_backend_tenant=config.QUERY_BACKEND_TENANT,
        metrics_sample_period_seconds=config.METRICS_SAMPLE_PERIOD_SECONDS,
        log_level=config.LOG_LEVEL,
        api_host=config.API_HOST,
        api_port=config.API_PORT,
    )
