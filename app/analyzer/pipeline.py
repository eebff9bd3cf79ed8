"""AdsIntel — Dashboard Pipeline.

Runs the read-side data flow for one user and date range:
  query metrics → aggregate → query CRM leads → join → DashboardView

Nothing is cached. Every call re-queries the store and recomputes every
group, so the view always reflects the latest uploads and syncs.
"""

from datetime import datetime, time, timedelta, timezone
from typing import List, Optional

from sqlmodel import Session, select

from app.analyzer.aggregation_engine import aggregate_metrics, channel_breakdown
from app.analyzer.crm_engine import apply_real_leads, crm_summary, lead_cost_insights
from app.config import settings
from app.core.errors import require_user_id
from app.core.logging import get_logger
from app.models.aggregate_models import DashboardView
from app.models.lead_models import CrmLead
from app.models.metric_models import CampaignMetric

logger = get_logger("analyzer.pipeline")


def _validate_date(d: Optional[str]) -> Optional[str]:
    """Return the date string if valid YYYY-MM-DD, else None."""
    if not d:
        return None
    try:
        datetime.strptime(d, "%Y-%m-%d")
        return d
    except ValueError:
        return None


def resolve_dates(
    date_range: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    default_days: Optional[int] = None,
) -> tuple[str, str]:
    """Resolve date parameters into (start, end) strings."""
    today = datetime.now(timezone.utc).date()

    # Sanitize inputs
    start_date = _validate_date(start_date)
    end_date = _validate_date(end_date)

    if start_date and end_date:
        return start_date, end_date

    if date_range:
        mapping = {
            "today": (today, today),
            "yesterday": (today - timedelta(days=1), today - timedelta(days=1)),
            "last_7d": (today - timedelta(days=7), today - timedelta(days=1)),
            "last_14d": (today - timedelta(days=14), today - timedelta(days=1)),
            "last_30d": (today - timedelta(days=30), today - timedelta(days=1)),
            "this_month": (today.replace(day=1), today),
        }
        if date_range in mapping:
            s, e = mapping[date_range]
            return s.strftime("%Y-%m-%d"), e.strftime("%Y-%m-%d")

    # Default: trailing window ending today
    days = settings.default_sync_days if default_days is None else default_days
    return (today - timedelta(days=days)).strftime("%Y-%m-%d"), today.strftime(
        "%Y-%m-%d"
    )


def load_metrics(
    session: Session, user_id: str, date_start: str, date_stop: str
) -> List[CampaignMetric]:
    return list(
        session.exec(
            select(CampaignMetric).where(
                CampaignMetric.user_id == user_id,
                CampaignMetric.date >= date_start,
                CampaignMetric.date <= date_stop,
            )
        ).all()
    )


def load_leads(
    session: Session, user_id: str, date_start: str, date_stop: str
) -> List[CrmLead]:
    """Leads registered within the range (inclusive of the whole last day)."""
    start = datetime.combine(datetime.strptime(date_start, "%Y-%m-%d").date(), time.min)
    stop = datetime.combine(datetime.strptime(date_stop, "%Y-%m-%d").date(), time.max)
    return list(
        session.exec(
            select(CrmLead).where(
                CrmLead.user_id == user_id,
                CrmLead.cadastro >= start,
                CrmLead.cadastro <= stop,
            )
        ).all()
    )


def build_dashboard(
    session: Session,
    user_id: str,
    date_range: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> DashboardView:
    """Assemble the full dashboard view for one user."""
    user_id = require_user_id(user_id, "dashboard")
    date_start, date_stop = resolve_dates(date_range, start_date, end_date)

    metrics = load_metrics(session, user_id, date_start, date_stop)
    aggregation = aggregate_metrics(metrics)

    leads = load_leads(session, user_id, date_start, date_stop)
    campaigns = apply_real_leads(aggregation.campaigns, leads)
    crm = crm_summary(
        leads,
        spend=aggregation.totals.spend,
        single_day=date_start == date_stop,
    )

    view = DashboardView(
        date_range_start=date_start,
        date_range_end=date_stop,
        generated_at=datetime.now(timezone.utc).isoformat(),
        totals=aggregation.totals,
        campaigns=campaigns,
        creatives=aggregation.creatives,
        daily=aggregation.daily,
        accounts=aggregation.accounts,
        channels=channel_breakdown(metrics),
        crm=crm,
        lead_costs=lead_cost_insights(leads, aggregation.daily),
    )
    logger.info(
        f"Dashboard built: {date_start} → {date_stop}, {len(metrics)} metric rows, "
        f"{len(leads)} leads",
        extra={"user_id": user_id, "operation": "dashboard"},
    )
    return view
