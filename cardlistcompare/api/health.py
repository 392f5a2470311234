"""
Health check endpoints.

/health answers as long as the process is up. /ready also needs the snapshot
store: it counts tracked decks, so a missing schema fails the check the same
way an unreachable database does.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cardlistcompare.db.database import get_session
from cardlistcompare.db.operations import count_tracked_decks

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str | None = None
    tracked_decks: int | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness check. Does not touch the database."""
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> HealthResponse:
    """
    Readiness check.

    Returns 503 if the tracked deck table cannot be read.
    """
    try:
        tracked = await count_tracked_decks(session)
    except SQLAlchemyError:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="disconnected")
    return HealthResponse(status="ready", database="connected", tracked_decks=tracked)
