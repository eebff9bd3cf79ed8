"""AdsIntel — Dashboard Routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.analyzer.pipeline import build_dashboard
from app.api.deps import get_user_id
from app.core.logging import get_logger
from app.database import get_session
from app.models.aggregate_models import DashboardView

logger = get_logger("api.dashboard")

router = APIRouter(tags=["Dashboard"])


@router.get("/dashboard", response_model=DashboardView)
async def get_dashboard(
    date_range: Optional[str] = Query(
        None,
        description="Preset: today, yesterday, last_7d, last_14d, last_30d, this_month",
    ),
    start_date: Optional[str] = Query(None, description="Start date YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="End date YYYY-MM-DD"),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    """Totals, per-campaign/creative/day/account groups and the CRM funnel.

    Explicit start/end dates win over the preset; with neither, the trailing
    default window is used.
    """
    try:
        return build_dashboard(
            session,
            user_id,
            date_range=date_range,
            start_date=start_date,
            end_date=end_date,
        )
    except SQLAlchemyError as e:
        logger.error(f"Dashboard query failed: {e}", extra={"user_id": user_id})
        raise HTTPException(status_code=500, detail="Dashboard failed. Please try again.")
