"""
Reporting endpoints: energy report and running-log export.

GET /v1/energy meters every energy-reporting device over ``[start, end]``.
Both bounds are optional: ``end`` defaults to now and ``start`` to 24 hours
before ``end``. Naive timestamps are taken as UTC.

GET /v1/logs/export renders the household's running logs as JSON, XML or
HTML.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-014)

TODO:
- None
"""

from datetime import UTC, datetime, timedelta
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response

from homesphere.src.api.deps import CurrentUser, SystemDep
from homesphere.src.energy import EnergyReport, as_utc

router = APIRouter(prefix="/v1", tags=["reports"])

DEFAULT_WINDOW = timedelta(hours=24)

_MEDIA_TYPES = {
    "json": "application/json",
    "xml": "application/xml",
    "html": "text/html",
}


@router.get("/energy")
async def energy(
    system: SystemDep,
    user: CurrentUser,
    start: Annotated[datetime | None, Query()] = None,
    end: Annotated[datetime | None, Query()] = None,
) -> EnergyReport:
    """Return per-device and total energy for the window.

    Raises:
        HTTPException: 422 if ``end`` is before ``start``.
    """
    end = as_utc(end) if end is not None else datetime.now(tz=UTC)
    start = as_utc(start) if start is not None else end - DEFAULT_WINDOW
    try:
        return system.energy_report(start, end)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from None


@router.get("/logs/export")
async def export_logs(
    system: SystemDep,
    user: CurrentUser,
    format: Annotated[str, Query()] = "json",
) -> Response:
    """Render the running logs with the named formatter.

    Raises:
        HTTPException: 422 if the format is unknown.
    """
    fmt = format.strip().lower()
    try:
        body = system.export_logs(fmt)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from None
    return Response(content=body, media_type=_MEDIA_TYPES.get(fmt, "text/plain"))
