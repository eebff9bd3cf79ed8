"""AdsIntel — Meta API Routes."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse
from sqlmodel import Session

from app.api.deps import get_secret_store, get_user_id
from app.connectors.meta.client import MetaAPIError, MetaClient
from app.core.errors import MissingIdentityError, StorageError
from app.core.logging import get_logger
from app.core.secret_store import META_ACCESS_TOKEN, SecretStore
from app.database import get_session
from app.models.aggregate_models import ImportResult, SyncResult
from app.sync.meta_sync import run_meta_sync
from app.sync.webhook import process_leadgen_webhook, verify_subscription

logger = get_logger("api.meta")

router = APIRouter(prefix="/meta", tags=["Meta"])


@router.post("/sync", response_model=SyncResult)
async def sync_meta(
    date_range: Optional[str] = Query(None, description="Preset range, e.g. last_7d"),
    start_date: Optional[str] = Query(None, description="Start date YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="End date YYYY-MM-DD"),
    level: Optional[str] = Query(None, pattern="^(campaign|ad)$"),
    user_id: str = Depends(get_user_id),
    session: Session = Depends(get_session),
    secret_store: SecretStore = Depends(get_secret_store),
):
    """Pull insights for every configured ad account into campaign_metrics.

    Returns status "skipped" when no token or account list is configured.
    """
    try:
        return await run_meta_sync(
            session,
            user_id,
            secret_store,
            date_range=date_range,
            start_date=start_date,
            end_date=end_date,
            level=level,
        )
    except MetaAPIError as e:
        logger.error(f"Meta sync failed: {e}", extra={"user_id": user_id})
        raise HTTPException(status_code=502, detail=f"Meta sync failed: {e}")
    except StorageError:
        raise HTTPException(status_code=500, detail="Sync failed. Please try again.")


@router.get("/validate-token")
async def validate_token(
    user_id: str = Depends(get_user_id),
    secret_store: SecretStore = Depends(get_secret_store),
):
    """Check the stored Meta access token: validity, expiry and scopes."""
    token = secret_store.get(user_id, META_ACCESS_TOKEN)
    if not token:
        raise HTTPException(status_code=404, detail="No Meta access token configured")

    client = MetaClient(token)
    try:
        result = await client.validate_token()
        return {"status": "success", **result}
    except MetaAPIError as e:
        raise HTTPException(
            status_code=400, detail=f"Token validation failed: {str(e)}"
        )
    finally:
        await client.close()


# ── Lead Ads Webhook ──


@router.get("/webhook", response_class=PlainTextResponse)
async def verify_webhook(
    mode: Optional[str] = Query(None, alias="hub.mode"),
    token: Optional[str] = Query(None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(None, alias="hub.challenge"),
):
    """Subscription handshake: echo hub.challenge when the verify token matches."""
    echoed = verify_subscription(mode, token, challenge)
    if echoed is None:
        raise HTTPException(status_code=403, detail="Verification failed")
    return echoed


@router.post("/webhook", response_model=ImportResult)
async def receive_webhook(
    payload: Dict[str, Any] = Body(...),
    user_id: Optional[str] = Query(None, description="Owner of the subscribed page"),
    session: Session = Depends(get_session),
    secret_store: SecretStore = Depends(get_secret_store),
):
    """leadgen notifications: each lead id is fetched and stored as a CRM lead."""
    try:
        return await process_leadgen_webhook(session, user_id, payload, secret_store)
    except MissingIdentityError:
        raise HTTPException(status_code=401, detail="Missing user identity")
    except MetaAPIError as e:
        raise HTTPException(status_code=502, detail=f"Lead lookup failed: {e}")
    except StorageError:
        raise HTTPException(status_code=500, detail="Webhook failed. Please try again.")
