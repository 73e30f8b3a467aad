# src/finkube/api/app.py
"""
FastAPI application factories.

`create_app` builds the analyzer API (cost and metrics queries over the
metrics backend). `create_agent_app` builds the small app the agent serves
its gauges from.

Uses the factory pattern so the analyzer app can be created with or
without lifespan management (tests skip the backend client).
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST

from .. import __version__
from ..core.aggregator import QueryAggregator
from ..core.analyzer import CostAnalyzer
from ..core.config import config
from ..core.exceptions import AggregateError, DataInconsistencyError, UpstreamQueryError
from ..metrics.sink import MetricsSink
from ..query.prom_client import PromQueryClient
from .routers import config as config_router
from .routers import costs, metrics

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the query client on startup and close it on shutdown."""
    logger.info(f"Starting FinKube analyzer API against {config.QUERY_BACKEND_ENDPOINT}...")
    client = PromQueryClient(config.QUERY_BACKEND_ENDPOINT)
    app.state.analyzer = CostAnalyzer(QueryAggregator(client))
    yield
    logger.info("Shutting down FinKube analyzer API...")
    await client.close()


async def _upstream_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    errors = [str(e) for e in exc.errors] if isinstance(exc, AggregateError) else []
    return JSONResponse(status_code=502, content={"detail": str(exc), "errors": errors})


async def _bad_request_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc), "errors": []})


def create_app(use_lifespan: bool = False) -> FastAPI:
    """Create and configure the analyzer application.

    Args:
        use_lifespan: If True, attach the lifespan handler that creates the
                      query client. Set to False for testing.

    Returns:
        A configured FastAPI application instance.
    """
    app = FastAPI(
        title="FinKube API",
        description="Kubernetes cost accounting: cluster, namespace and workload costs and utilisation.",
        version=__version__,
        docs_url="/api/v1/docs",
        openapi_url="/api/v1/openapi.json",
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for exc_class in (AggregateError, UpstreamQueryError, DataInconsistencyError):
        app.add_exception_handler(exc_class, _upstream_error_handler)
    app.add_exception_handler(ValueError, _bad_request_handler)

    app.include_router(config_router.router, prefix="/api/v1", tags=["Config"])
    app.include_router(costs.router, prefix="/api/v1", tags=["Costs"])
    app.include_router(metrics.router, prefix="/api/v1", tags=["Metrics"])

    return app


def create_agent_app(sink: MetricsSink) -> FastAPI:
    """App serving the agent's gauges in the Prometheus text format."""
    app = FastAPI(title="FinKube agent", version=__version__, docs_url=None, redoc_url=None, openapi_url=None)

    @app.get("/metrics", include_in_schema=False)
    def prometheus_metrics() -> Response:
        return Response(sink.exposition(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/healthz", include_in_schema=False)
    async def healthz():
        return {"status": "ok", "version": __version__}

    return app


def main():
    """Entry point for the finkube-api console script."""
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    app = create_app(use_lifespan=True)
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
