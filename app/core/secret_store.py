"""AdsIntel — Per-User Secret Store.

Credentials (Meta token, ad account ids, pixel id) are kept encrypted at
rest. Callers only see the SecretStore capability and plaintext strings;
the encryption key is supplied through SECRET_ENCRYPTION_KEY and has no
built-in default.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional

from cryptography.fernet import Fernet, InvalidToken
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.config import settings
from app.core.errors import SecretStoreError, StorageError, require_user_id
from app.core.logging import get_logger
from app.models.secret_models import ApiSetting

logger = get_logger("secrets")

META_ACCESS_TOKEN = "META_ACCESS_TOKEN"
META_AD_ACCOUNT_IDS = "META_AD_ACCOUNT_IDS"
META_PIXEL_ID = "META_PIXEL_ID"

KNOWN_KEYS = (META_ACCESS_TOKEN, META_AD_ACCOUNT_IDS, META_PIXEL_ID)


class SecretStore(ABC):
    """Opaque get/set/delete of per-user secrets."""

    @abstractmethod
    def get(self, user_id: str, key: str) -> Optional[str]:
        """Return the plaintext value, or None when not configured."""
        ...

    @abstractmethod
    def set(self, user_id: str, key: str, value: str) -> None: ...

    @abstractmethod
    def delete(self, user_id: str, key: str) -> None: ...

    @abstractmethod
    def keys(self, user_id: str) -> List[str]:
        """Names of the settings stored for a user."""
        ...


def parse_account_ids(raw: Optional[str]) -> List[str]:
    """Split the stored comma-separated account list, dropping blanks and dupes."""
    seen: List[str] = []
    for part in (raw or "").split(","):
        account = part.strip()
        if account and account not in seen:
            seen.append(account)
    return seen


class DatabaseSecretStore(SecretStore):
    """Secrets in the api_settings table, encrypted with Fernet."""

    def __init__(self, session: Session, key: Optional[str] = None):
        key = key or settings.secret_encryption_key
        if not key:
            raise SecretStoreError("SECRET_ENCRYPTION_KEY is not configured")
        try:
            self.cipher = Fernet(key.encode() if isinstance(key, str) else key)
        except ValueError as e:
            raise SecretStoreError("SECRET_ENCRYPTION_KEY is not a valid Fernet key") from e
        self.session = session

    def _row(self, user_id: str, key: str) -> Optional[ApiSetting]:
        return self.session.exec(
            select(ApiSetting).where(
                ApiSetting.user_id == user_id, ApiSetting.setting_key == key
            )
        ).first()

    def get(self, user_id: str, key: str) -> Optional[str]:
        user_id = require_user_id(user_id, "secret lookup")
        row = self._row(user_id, key)
        if row is None:
            return None
        try:
            return self.cipher.decrypt(row.encrypted_value.encode()).decode()
        except InvalidToken:
            logger.warning(
                f"Could not decrypt {key}; treating as not configured",
                extra={"user_id": user_id},
            )
            return None

    def set(self, user_id: str, key: str, value: str) -> None:
        user_id = require_user_id(user_id, "secret update")
        encrypted = self.cipher.encrypt(value.encode()).decode()
        try:
            row = self._row(user_id, key)
            if row:
                row.encrypted_value = encrypted
                row.updated_at = datetime.now(timezone.utc)
            else:
                row = ApiSetting(user_id=user_id, setting_key=key, encrypted_value=encrypted)
            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError("settings", str(e.__class__.__name__)) from e
        logger.info(f"Stored setting {key}", extra={"user_id": user_id})

    def delete(self, user_id: str, key: str) -> None:
        user_id = require_user_id(user_id, "secret delete")
        try:
            row = self._row(user_id, key)
            if row:
                self.session.delete(row)
                self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError("settings", str(e.__class__.__name__)) from e

    def keys(self, user_id: str) -> List[str]:
        user_id = require_user_id(user_id, "secret listing")
        return list(
            self.session.exec(
                select(ApiSetting.setting_key).where(ApiSetting.user_id == user_id)
            ).all()
        )


def users_with_secret(session: Session, key: str) -> List[str]:
    """Every user id that has a given setting stored."""
    return list(
        session.exec(
            select(ApiSetting.user_id).where(ApiSetting.setting_key == key).distinct()
        ).all()
    )
