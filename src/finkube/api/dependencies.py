# src/finkube/api/dependencies.py
"""
FastAPI dependency injection functions.

The query client and the analyzer are created once by the application
lifespan and stored on `app.state`; route handlers receive them through
Depends(), so tests can override them without a metrics backend.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Header, HTTPException, Query, Request

from ..core.analyzer import CostAnalyzer
from ..core.config import config
from ..models.cost import TimeWindow
from ..query.prom_client import TENANT_HEADER

logger = logging.getLogger(__name__)


async def get_analyzer(request: Request) -> CostAnalyzer:
    """Provides the CostAnalyzer built at startup."""
    analyzer = getattr(request.app.state, "analyzer", None)
    if analyzer is None:
        raise HTTPException(status_code=503, detail="Query backend is not configured.")
    return analyzer


async def get_tenant(tenant: Optional[str] = Header(None, alias=TENANT_HEADER)) -> Optional[str]:
    """Tenant of the request; falls back to the configured default tenant."""
    return tenant or config.QUERY_BACKEND_TENANT or None


async def get_time_window(
    start: Optional[int] = Query(None, description="Window start, unix seconds. Defaults to the start of the month."),
    end: Optional[int] = Query(None, description="Window end, unix seconds. Defaults to now."),
    step: Optional[int] = Query(None, description="Step in seconds. Derived from the window length when omitted."),
) -> TimeWindow:
    """
    Builds the query window from the request parameters.

    Raises:
        ValueError: If the window is inverted or the step is below the sampling floor.
    """
    if start is None and end is None:
        if step is None:
            return TimeWindow.current_month()
        return TimeWindow.current_month(step_seconds=step)

    end_dt = datetime.fromtimestamp(end, tz=timezone.utc) if end is not None else datetime.now(timezone.utc)
    if start is None:
        start_dt = TimeWindow.current_month(now=end_dt).start
    else:
        start_dt = datetime.fromtimestamp(start, tz=timezone.utc)
    if step is None:
        return TimeWindow.auto(start_dt, end_dt)
    return TimeWindow(start=start_dt, end=end_dt, step_seconds=step)
