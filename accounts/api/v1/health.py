"""Liveness endpoint; reports whether the users database answers."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from accounts.core.config import settings
from accounts.core.database import check_db_connected, get_db
from accounts.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(response: Response, db: Session = Depends(get_db)) -> HealthResponse:
    """Report service status; 503 with status 'degraded' when the database is unreachable."""
    if check_db_connected(db):
        return HealthResponse(status="ok", environment=settings.APP_ENV, database="connected")
    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(
        status="degraded",
        environment=settings.APP_ENV,
        database="disconnected",
    )
