"""AdsIntel — CRM Engine.

Joins ad spend with CRM-confirmed leads:
- real leads and cost per real lead (CPR) per campaign
- sales, revenue and real ROI for the period
- leads per day (or per hour for a single-day range)
- incremental cost of each lead, from the day's spend spread over 24h
"""

from collections import Counter
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from app.analyzer.kpi_engine import cost_per_real_lead, roi_percent, safe_ratio
from app.config import settings
from app.core.logging import get_logger
from app.models.aggregate_models import (
    CampaignGroup,
    CrmSummary,
    DailyGroup,
    LeadCost,
    LeadCostInsights,
    LeadsByDate,
)
from app.models.lead_models import FunnelStage, LeadRecord

logger = get_logger("analyzer.crm")

MINUTES_PER_DAY = 1440


def apply_real_leads(
    campaigns: List[CampaignGroup], leads: Iterable[LeadRecord]
) -> List[CampaignGroup]:
    """Attach CRM lead counts (matched on campanha_nome) to each campaign."""
    counts = Counter(lead.campanha_nome for lead in leads if lead.campanha_nome)
    for campaign in campaigns:
        campaign.real_leads = counts.get(campaign.campaign_name, 0)
        campaign.cpr = cost_per_real_lead(campaign.spend, campaign.real_leads)
    return campaigns


def _leads_by_date(leads: List[LeadRecord], single_day: bool) -> List[LeadsByDate]:
    buckets: Dict[str, int] = {}
    for lead in leads:
        key = lead.cadastro.strftime("%H:00" if single_day else "%d/%m")
        buckets[key] = buckets.get(key, 0) + 1
    # Plain string order: dd/mm keys are not chronological across months
    return [LeadsByDate(date=k, leads=v) for k, v in sorted(buckets.items())]


def crm_summary(
    leads: List[LeadRecord],
    spend: float,
    single_day: bool = False,
    average_ticket: Optional[float] = None,
) -> CrmSummary:
    """Sales, revenue and real ROI for the leads registered in the period."""
    ticket = settings.average_ticket if average_ticket is None else average_ticket
    sales = sum(1 for lead in leads if lead.situacao_atendimento == FunnelStage.PURCHASE.value)
    revenue = sales * ticket

    return CrmSummary(
        total_leads=len(leads),
        total_sales=sales,
        revenue=round(revenue, 2),
        roi_real=roi_percent(revenue, spend),
        cost_per_result=safe_ratio(spend, len(leads)),
        leads_by_date=_leads_by_date(leads, single_day),
    )


def lead_cost_insights(
    leads: List[LeadRecord], daily: List[DailyGroup]
) -> LeadCostInsights:
    """Find the cheapest and the most expensive lead of the period.

    A day's spend accrues linearly over its 1440 minutes; a lead costs what
    accrued since the previous lead of the same day (or since midnight).
    """
    spend_by_day = {group.date: group.spend for group in daily}
    ordered = sorted(leads, key=lambda lead: lead.cadastro)

    costs: List[LeadCost] = []
    previous: Optional[datetime] = None
    for lead in ordered:
        moment = lead.cadastro
        per_minute = spend_by_day.get(moment.date().isoformat(), 0.0) / MINUTES_PER_DAY
        minutes = moment.hour * 60 + moment.minute
        accrued_before = 0.0
        if previous is not None and previous.date() == moment.date():
            accrued_before = per_minute * (previous.hour * 60 + previous.minute)
        costs.append(
            LeadCost(
                email=lead.email,
                cadastro=moment.isoformat(),
                cost=round(per_minute * minutes - accrued_before, 2),
            )
        )
        previous = moment

    if not costs:
        return LeadCostInsights()
    logger.debug(f"Computed incremental cost for {len(costs)} leads")
    return LeadCostInsights(
        cheapest=min(costs, key=lambda c: c.cost),
        most_expensive=max(costs, key=lambda c: c.cost),
    )
