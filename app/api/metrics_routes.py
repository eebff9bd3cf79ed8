"""AdsIntel — Metrics Upload Routes."""

from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlmodel import Session, select

from app.api.deps import get_user_id
from app.core.errors import DateParseError, StorageError
from app.core.logging import get_logger
from app.database import get_session
from app.models.aggregate_models import ImportResult
from app.models.metric_models import CampaignMetric
from app.normalizer.metrics import normalize_metric_rows
from app.normalizer.tabular import read_tabular
from app.reconciler.metric_reconciler import reconcile_metrics

logger = get_logger("api.metrics")

router = APIRouter(prefix="/metrics", tags=["Metrics"])


@router.post("/upload", response_model=ImportResult)
async def upload_metrics(
    file: UploadFile = File(...),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    """Import a campaign metrics spreadsheet (CSV/TSV, pt-BR or English headers).

    Rows are upserted on (campaign, date); re-uploading the same file is a no-op.
    """
    content = await file.read()
    try:
        rows = read_tabular(content)
    except ValueError as e:
        logger.warning(f"Unreadable metrics file: {e}", extra={"user_id": user_id})
        raise HTTPException(status_code=400, detail="Could not read the file")

    try:
        records = normalize_metric_rows(rows, user_id)
        result = reconcile_metrics(session, records, operation="upload")
    except DateParseError as e:
        raise HTTPException(status_code=422, detail=f"Invalid date: {e.value!r}")
    except StorageError:
        raise HTTPException(status_code=500, detail="Upload failed. Please try again.")

    result.total = len(rows)
    result.skipped = result.total - result.accepted
    return result


@router.get("", response_model=List[CampaignMetric])
async def list_metrics(
    start_date: str = Query(..., description="YYYY-MM-DD"),
    end_date: str = Query(..., description="YYYY-MM-DD"),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    """Raw stored metric rows for a date range."""
    return session.exec(
        select(CampaignMetric)
        .where(
            CampaignMetric.user_id == user_id,
            CampaignMetric.date >= start_date,
            CampaignMetric.date <= end_date,
        )
        .order_by(CampaignMetric.date, CampaignMetric.campaign_name)
    ).all()
