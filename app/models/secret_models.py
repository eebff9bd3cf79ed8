"""AdsIntel — Encrypted API Settings."""

from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field, UniqueConstraint


class ApiSetting(SQLModel, table=True):
    """One encrypted per-user credential (token, account list, pixel id)."""

    __tablename__ = "api_settings"
    __table_args__ = (
        UniqueConstraint("user_id", "setting_key", name="uq_api_setting"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    setting_key: str = Field(index=True)
    encrypted_value: str
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
