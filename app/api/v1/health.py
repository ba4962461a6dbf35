"""Liveness plus profile-store reachability, wrapped in the standard envelope."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.envelope import success
from app.core.config import settings
from app.core.database import check_db_connected, get_db
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("/")
def get_health(db: Session = Depends(get_db)) -> JSONResponse:
    """Always 200; a down database shows up as `database: disconnected`, not as an error."""
    db_status = "connected" if check_db_connected(db) else "disconnected"
    return success("HEALTH.OK", HealthResponse(environment=settings.APP_ENV, database=db_status))
