"""AdsIntel — Spreadsheet Row → MetricRecord."""

from typing import Any, Dict, List

from app.config import settings
from app.core.metric_registry import MetricType, metrics_by_type
from app.models.metric_models import MetricRecord
from app.normalizer.parsing import (
    FALLBACK_CAMPAIGN,
    normalize_header,
    parse_date,
    parse_int,
    parse_number,
)

COUNT_FIELDS = [m.name for m in metrics_by_type(MetricType.VOLUME)]
RATE_FIELDS = [m.name for m in metrics_by_type(MetricType.RATE)]


def map_headers(row: Dict[str, Any]) -> Dict[str, Any]:
    """Re-key a raw row by canonical field names."""
    return {normalize_header(key): value for key, value in row.items()}


def _text(value: Any) -> str | None:
    text = str(value).strip() if value is not None else ""
    return text or None


def normalize_metric_row(row: Dict[str, Any], user_id: str) -> MetricRecord:
    """Build a canonical MetricRecord from one uploaded row."""
    mapped = map_headers(row)

    # Empty cells fall back to a sibling column
    if not _text(mapped.get("link_clicks")):
        mapped["link_clicks"] = mapped.get("clicks")
    if not _text(mapped.get("conversions")):
        mapped["conversions"] = mapped.get("leads")

    ad_name = _text(mapped.get("ad_name"))
    fields: Dict[str, Any] = {
        "user_id": user_id,
        "account_name": _text(mapped.get("account_name")),
        "campaign_name": _text(mapped.get("campaign_name")) or FALLBACK_CAMPAIGN,
        "ad_set_name": _text(mapped.get("ad_set_name")),
        "ad_name": ad_name,
        "creative_name": _text(mapped.get("creative_name")) or ad_name,
        "date": parse_date(mapped.get("date")),
        "spend": max(float(parse_number(mapped.get("spend"))), 0.0),
        "thumbnail_url": _text(mapped.get("thumbnail_url")),
        "channel": _text(mapped.get("channel")) or settings.default_channel,
    }
    for name in COUNT_FIELDS:
        fields[name] = parse_int(mapped.get(name))
    for name in RATE_FIELDS:
        fields[name] = float(parse_number(mapped.get(name)))

    return MetricRecord(**fields)


def normalize_metric_rows(rows: List[Dict[str, Any]], user_id: str) -> List[MetricRecord]:
    """Normalize a whole upload. Rows always survive with a campaign label."""
    records = [normalize_metric_row(row, user_id) for row in rows]
    return [r for r in records if r.campaign_name]
