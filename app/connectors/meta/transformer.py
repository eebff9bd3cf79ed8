"""AdsIntel — Meta Insights → MetricRecord Transformer.

Converts raw Meta insight rows into the canonical MetricRecord shape used
by CSV uploads, so both sources reconcile into the same table.
"""

from typing import Any, Dict, List, Optional

from app.config import settings
from app.models.metric_models import MetricRecord
from app.normalizer.parsing import FALLBACK_CAMPAIGN, parse_date, parse_int
from app.core.logging import get_logger

logger = get_logger("meta.transformer")

NO_ACTIVE_CAMPAIGNS = "Sem Campanhas Ativas"

# Action types that count as a lead when no generic "lead" action exists
LEAD_ACTION_TYPES = ("lead", "on_facebook_lead", "contact", "submit_application")


def _safe_float(value: Any) -> float:
    """Safely convert a value to float."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def count_leads(row: Dict[str, Any]) -> int:
    """Lead count from actions + conversions.

    The generic "lead" action already aggregates every lead source, so it
    wins when present; otherwise the specific lead-like actions are summed.
    """
    events = list(row.get("actions") or []) + list(row.get("conversions") or [])
    for event in events:
        if event.get("action_type") == "lead":
            return parse_int(_safe_float(event.get("value", 0)))
    return sum(
        parse_int(_safe_float(e.get("value", 0)))
        for e in events
        if e.get("action_type") in LEAD_ACTION_TYPES
    )


def _action_value(row: Dict[str, Any], action_type: str) -> int:
    for action in row.get("actions") or []:
        if action.get("action_type") == action_type:
            return parse_int(_safe_float(action.get("value", 0)))
    return 0


def transform_insight(
    row: Dict[str, Any],
    user_id: str,
    account_name: str,
    thumbnail_url: Optional[str] = None,
) -> MetricRecord:
    """Transform one insight row into a MetricRecord."""
    clicks = parse_int(_safe_float(row.get("clicks")))
    leads = count_leads(row)
    link_clicks = _action_value(row, "link_click") or clicks
    return MetricRecord(
        user_id=user_id,
        account_name=account_name,
        campaign_name=row.get("campaign_name") or FALLBACK_CAMPAIGN,
        ad_set_name=row.get("adset_name"),
        ad_name=row.get("ad_name"),
        creative_name=row.get("ad_name"),
        date=parse_date(row.get("date_start")),
        impressions=parse_int(_safe_float(row.get("impressions"))),
        clicks=clicks,
        link_clicks=link_clicks,
        reach=parse_int(_safe_float(row.get("reach"))),
        spend=max(_safe_float(row.get("spend")), 0.0),
        leads=leads,
        conversions=leads,
        ctr=_safe_float(row.get("ctr")),
        cpc=_safe_float(row.get("cpc")),
        cpm=_safe_float(row.get("cpm")),
        frequency=_safe_float(row.get("frequency")),
        thumbnail_url=thumbnail_url,
        channel=settings.default_channel,
    )


def placeholder_record(user_id: str, account_name: str, date_start: str) -> MetricRecord:
    """Zero row so an account without delivery still shows up in the account list."""
    return MetricRecord(
        user_id=user_id,
        account_name=account_name,
        campaign_name=NO_ACTIVE_CAMPAIGNS,
        ad_name="-",
        date=parse_date(date_start),
        channel=settings.default_channel,
    )


def transform_insights(
    rows: List[Dict[str, Any]],
    user_id: str,
    account_name: str,
    date_start: str,
    thumbnails: Optional[Dict[str, str]] = None,
) -> List[MetricRecord]:
    """Transform an account's insight rows; an empty response yields a placeholder."""
    if not rows:
        logger.info(f"No insight rows for {account_name}, adding placeholder")
        return [placeholder_record(user_id, account_name, date_start)]

    thumbnails = thumbnails or {}
    records = [
        transform_insight(row, user_id, account_name, thumbnails.get(row.get("ad_id", "")))
        for row in rows
    ]
    logger.info(f"Transformed {len(records)} insight rows for {account_name}")
    return records
