"""AdsIntel — Aggregated View & Batch Outcome Schemas.

Nothing here is persisted. Every group is recomputed from the store on
each request.
"""

from typing import List, Optional
from pydantic import BaseModel


# ─────────────────────────────────────────────
# ROLLUPS
# ─────────────────────────────────────────────


class RatioFields(BaseModel):
    """Sums plus the ratios derived from them."""

    spend: float = 0.0
    leads: int = 0
    impressions: int = 0
    clicks: int = 0
    cpl: float = 0.0
    ctr: float = 0.0
    cpc: float = 0.0
    cpm: float = 0.0


class CampaignGroup(RatioFields):
    campaign_name: str
    account_name: Optional[str] = None
    reach: int = 0
    real_leads: int = 0
    cpr: float = 0.0


class CreativeGroup(RatioFields):
    ad_name: str
    campaign_name: str
    thumbnail_url: Optional[str] = None


class DailyGroup(RatioFields):
    date: str


class AccountGroup(RatioFields):
    account_name: str
    reach: int = 0


class MetricTotals(RatioFields):
    """Dashboard-wide KPI summary."""

    reach: int = 0
    frequency: float = 0.0


class ChannelSlice(BaseModel):
    name: str
    value: float


class MetricAggregation(BaseModel):
    """All rollups produced from one pass over the metric rows."""

    campaigns: List[CampaignGroup] = []
    creatives: List[CreativeGroup] = []
    daily: List[DailyGroup] = []
    accounts: List[AccountGroup] = []
    totals: MetricTotals = MetricTotals()


# ─────────────────────────────────────────────
# CRM VIEWS
# ─────────────────────────────────────────────


class LeadsByDate(BaseModel):
    date: str
    leads: int


class CrmSummary(BaseModel):
    total_leads: int = 0
    total_sales: int = 0
    revenue: float = 0.0
    roi_real: float = 0.0
    cost_per_result: float = 0.0
    leads_by_date: List[LeadsByDate] = []


class LeadCost(BaseModel):
    email: str
    cadastro: str
    cost: float


class LeadCostInsights(BaseModel):
    cheapest: Optional[LeadCost] = None
    most_expensive: Optional[LeadCost] = None


class DashboardView(BaseModel):
    """Everything the dashboard renders for one date range."""

    date_range_start: str
    date_range_end: str
    generated_at: str = ""
    totals: MetricTotals = MetricTotals()
    campaigns: List[CampaignGroup] = []
    creatives: List[CreativeGroup] = []
    daily: List[DailyGroup] = []
    accounts: List[AccountGroup] = []
    channels: List[ChannelSlice] = []
    crm: CrmSummary = CrmSummary()
    lead_costs: LeadCostInsights = LeadCostInsights()


# ─────────────────────────────────────────────
# BATCH OUTCOMES
# ─────────────────────────────────────────────


class ImportResult(BaseModel):
    """Terminal outcome of one upload/reconcile batch."""

    operation: str
    total: int = 0
    accepted: int = 0
    inserted: int = 0
    updated: int = 0
    skipped: int = 0


class SyncResult(BaseModel):
    status: str  # "success" | "skipped"
    reason: str = ""
    accounts: int = 0
    rows: int = 0
    inserted: int = 0
    updated: int = 0
    date_range_start: str = ""
    date_range_end: str = ""


class DispatchResult(BaseModel):
    status: str = "success"  # "success" | "inactive"
    dispatched: int = 0
    succeeded: int = 0
    failed: int = 0
    pages: int = 0
