"""AdsIntel — Per-User API Settings Routes.

Values are write-only over HTTP: listing returns key names, never secrets.
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from app.api.deps import get_secret_store, get_user_id
from app.core.errors import StorageError
from app.core.secret_store import KNOWN_KEYS, SecretStore

router = APIRouter(prefix="/settings", tags=["Settings"])


class SettingValue(BaseModel):
    value: str = Field(..., min_length=1)


def _check_key(key: str) -> str:
    if key not in KNOWN_KEYS:
        raise HTTPException(status_code=404, detail=f"Unknown setting: {key}")
    return key


@router.get("")
async def list_settings(
    user_id: str = Depends(get_user_id),
    secret_store: SecretStore = Depends(get_secret_store),
):
    configured = set(secret_store.keys(user_id))
    return {"settings": {key: key in configured for key in KNOWN_KEYS}}


@router.put("/{key}")
async def put_setting(
    key: str,
    body: SettingValue,
    user_id: str = Depends(get_user_id),
    secret_store: SecretStore = Depends(get_secret_store),
):
    try:
        secret_store.set(user_id, _check_key(key), body.value.strip())
    except StorageError:
        raise HTTPException(status_code=500, detail="Settings update failed. Please try again.")
    return {"status": "success", "key": key}


@router.delete("/{key}")
async def delete_setting(
    key: str,
    user_id: str = Depends(get_user_id),
    secret_store: SecretStore = Depends(get_secret_store),
):
    try:
        secret_store.delete(user_id, _check_key(key))
    except StorageError:
        raise HTTPException(status_code=500, detail="Settings update failed. Please try again.")
    return {"status": "success", "key": key}
