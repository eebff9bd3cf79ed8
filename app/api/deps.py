"""AdsIntel — Shared API Dependencies."""

from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlmodel import Session

from app.core.errors import SecretStoreError
from app.core.logging import get_logger
from app.core.secret_store import DatabaseSecretStore, SecretStore
from app.database import get_session

logger = get_logger("api.deps")


def get_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Caller identity, set by the authenticating gateway.

    There is no fallback identity: a request without it is rejected.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing user identity")
    return x_user_id.strip()


def get_secret_store(session: Session = Depends(get_session)) -> SecretStore:
    try:
        return DatabaseSecretStore(session)
    except SecretStoreError as e:
        logger.error(f"Secret store unavailable: {e}")
        raise HTTPException(
            status_code=503, detail="Credential storage is not configured"
        )
