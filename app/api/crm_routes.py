"""AdsIntel — CRM Lead Routes."""

from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlmodel import Session, select

from app.api.deps import get_secret_store, get_user_id
from app.connectors.meta.client import MetaAPIError
from app.core.errors import StorageError
from app.core.logging import get_logger
from app.core.secret_store import SecretStore
from app.database import get_session
from app.models.aggregate_models import DispatchResult, ImportResult
from app.models.lead_models import CrmLead
from app.normalizer.leads import normalize_crm_status_row, normalize_facebook_leads
from app.normalizer.tabular import read_tabular
from app.reconciler.lead_reconciler import reconcile_crm_status, reconcile_leads
from app.sync.dispatch import force_sync

logger = get_logger("api.crm")

router = APIRouter(prefix="/crm", tags=["CRM"])


async def _read_upload(file: UploadFile, user_id: str) -> list:
    content = await file.read()
    try:
        return read_tabular(content)
    except ValueError as e:
        logger.warning(f"Unreadable lead file: {e}", extra={"user_id": user_id})
        raise HTTPException(status_code=400, detail="Could not read the file")


@router.post("/upload/facebook", response_model=ImportResult)
async def upload_facebook_leads(
    file: UploadFile = File(...),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    """Import a Meta lead-ads export (tab-delimited, one row per lead)."""
    rows = await _read_upload(file, user_id)
    try:
        return reconcile_leads(
            session, normalize_facebook_leads(rows, user_id), operation="upload"
        )
    except StorageError:
        raise HTTPException(status_code=500, detail="Upload failed. Please try again.")


@router.post("/upload/status", response_model=ImportResult)
async def upload_crm_status(
    file: UploadFile = File(...),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    """Apply a status-only CRM export to known leads (and record new sales)."""
    rows = await _read_upload(file, user_id)
    try:
        return reconcile_crm_status(
            session, user_id, [normalize_crm_status_row(r) for r in rows], operation="upload"
        )
    except StorageError:
        raise HTTPException(status_code=500, detail="Upload failed. Please try again.")


@router.get("/leads", response_model=List[CrmLead])
async def list_leads(
    campaign: str | None = Query(None, description="Filter by campanha_nome"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    limit: int = Query(50, ge=1, le=500),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
):
    """Most recent leads, optionally for one campaign."""
    query = select(CrmLead).where(CrmLead.user_id == user_id)
    if campaign:
        query = query.where(CrmLead.campanha_nome == campaign)
    ordering = CrmLead.cadastro.desc() if order == "desc" else CrmLead.cadastro.asc()  # type: ignore
    return session.exec(query.order_by(ordering).limit(limit)).all()


@router.post("/force-sync", response_model=DispatchResult)
async def trigger_force_sync(
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
    secret_store: SecretStore = Depends(get_secret_store),
):
    """Send every stored lead to the Meta Conversions API."""
    try:
        return await force_sync(session, user_id, secret_store)
    except MetaAPIError as e:
        logger.error(f"Force sync failed: {e}", extra={"user_id": user_id})
        raise HTTPException(status_code=502, detail="Sync failed. Please try again.")
