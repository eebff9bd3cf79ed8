"""AdsIntel — Campaign Metric Models.

MetricRecord is the canonical shape every source (CSV upload, Meta API)
normalizes into. CampaignMetric is its persisted form.
"""

from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field, UniqueConstraint


class MetricRecord(SQLModel):
    """One (account, campaign, [ad], date) observation."""

    user_id: str = Field(index=True)
    account_name: Optional[str] = None
    campaign_name: str = Field(index=True)
    ad_set_name: Optional[str] = None
    ad_name: Optional[str] = None
    creative_name: Optional[str] = None
    date: str = Field(index=True, description="YYYY-MM-DD")
    impressions: int = Field(default=0, ge=0)
    clicks: int = Field(default=0, ge=0)
    link_clicks: int = Field(default=0, ge=0)
    unique_link_clicks: int = Field(default=0, ge=0)
    reach: int = Field(default=0, ge=0)
    spend: float = Field(default=0.0, ge=0)
    leads: int = Field(default=0, ge=0)
    conversions: int = Field(default=0, ge=0)
    # Rates as reported by the source; the analyzer recomputes its own
    ctr: float = 0.0
    cpc: float = 0.0
    cpm: float = 0.0
    cpl: float = 0.0
    frequency: float = 0.0
    thumbnail_url: Optional[str] = None
    channel: str = "meta"

    @property
    def natural_key(self) -> tuple[str, str, str]:
        return (self.user_id, self.campaign_name, self.date)


class CampaignMetric(MetricRecord, table=True):
    """Persisted metric row.

    Unique constraint on (user_id, campaign_name, date) makes uploads and
    syncs idempotent: re-importing the same rows replaces them wholesale.
    """

    __tablename__ = "campaign_metrics"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "campaign_name",
            "date",
            name="uq_campaign_metric",
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
