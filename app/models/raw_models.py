"""AdsIntel — Raw Data Models (Immutable)."""

from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field


class RawMetaData(SQLModel, table=True):
    """Immutable raw insight response from Meta.

    Never modify this data; it is the audit trail of every sync.
    """

    __tablename__ = "raw_meta_data"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    account_id: str = Field(index=True, description="Meta ad account ID")
    endpoint: str = Field(description="Meta API endpoint that produced this data")
    level: str = Field(default="", description="campaign | ad")
    date_start: str = Field(default="", description="Reporting date start")
    date_stop: str = Field(default="", description="Reporting date stop")
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    payload_json: str = Field(description="Full raw JSON response")
