"""Dashboard routes.

- GET /api/stats: aggregate counters for the admin dashboard
- POST /api/visits: record one landing-page visit

Routes are transport-only: each calls exactly one service function.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from luvv.api.deps import get_db
from luvv.responses import success_response
from luvv.services import stats as stats_service

router = APIRouter()


@router.get("/api/stats")
def get_stats(db: Annotated[Session, Depends(get_db)]) -> dict:
    """Return {"data": DashboardStats}."""
    stats = stats_service.get_dashboard_stats(db)
    return success_response(stats.model_dump(mode="json"))


@router.post("/api/visits", status_code=201)
def record_visit(db: Annotated[Session, Depends(get_db)]) -> dict:
    """Append one site visit."""
    stats_service.record_visit(db)
    return success_response({"status": "recorded"})
