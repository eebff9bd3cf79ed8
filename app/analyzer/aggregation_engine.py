"""AdsIntel — Aggregation Engine.

Groups canonical metric rows into four rollups in a single pass:
campaign, creative (ad within campaign), day and account. Sums are
accumulated first; ratios are derived once per group at the end.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from app.analyzer.kpi_engine import derive_ratios, frequency
from app.core.logging import get_logger
from app.models.aggregate_models import (
    AccountGroup,
    CampaignGroup,
    ChannelSlice,
    CreativeGroup,
    DailyGroup,
    MetricAggregation,
    MetricTotals,
)
from app.models.metric_models import MetricRecord

logger = get_logger("analyzer.aggregation")

NO_AD_NAME = "-"


class _Bucket:
    """Running sums for one group."""

    __slots__ = ("spend", "leads", "impressions", "clicks", "reach", "label", "thumbnail_url")

    def __init__(self) -> None:
        self.spend = 0.0
        self.leads = 0
        self.impressions = 0
        self.clicks = 0
        self.reach = 0
        self.label: Optional[str] = None
        self.thumbnail_url: Optional[str] = None

    def add(self, record: MetricRecord) -> None:
        self.spend += record.spend
        self.leads += record.leads
        self.impressions += record.impressions
        self.clicks += record.clicks
        self.reach += record.reach

    def sums(self) -> dict:
        return {
            "spend": round(self.spend, 2),
            "leads": self.leads,
            "impressions": self.impressions,
            "clicks": self.clicks,
            **derive_ratios(self.spend, self.leads, self.impressions, self.clicks),
        }


def aggregate_metrics(records: Iterable[MetricRecord]) -> MetricAggregation:
    """Build every rollup from the rows in scope (already date-filtered)."""
    campaigns: Dict[str, _Bucket] = {}
    creatives: Dict[Tuple[str, str], _Bucket] = {}
    daily: Dict[str, _Bucket] = {}
    accounts: Dict[str, _Bucket] = {}
    totals = _Bucket()
    row_count = 0

    for record in records:
        row_count += 1
        totals.add(record)

        campaign = campaigns.setdefault(record.campaign_name, _Bucket())
        campaign.add(record)
        if campaign.label is None and record.account_name:
            campaign.label = record.account_name

        creative_key = (record.ad_name or NO_AD_NAME, record.campaign_name)
        creative = creatives.setdefault(creative_key, _Bucket())
        creative.add(record)
        if creative.thumbnail_url is None and record.thumbnail_url:
            creative.thumbnail_url = record.thumbnail_url

        daily.setdefault(record.date, _Bucket()).add(record)

        if record.account_name:
            accounts.setdefault(record.account_name, _Bucket()).add(record)

    result = MetricAggregation(
        campaigns=[
            CampaignGroup(
                campaign_name=name,
                account_name=bucket.label,
                reach=bucket.reach,
                **bucket.sums(),
            )
            for name, bucket in campaigns.items()
        ],
        creatives=[
            CreativeGroup(
                ad_name=ad_name,
                campaign_name=campaign_name,
                thumbnail_url=bucket.thumbnail_url,
                **bucket.sums(),
            )
            for (ad_name, campaign_name), bucket in creatives.items()
        ],
        daily=[
            DailyGroup(date=day, **daily[day].sums()) for day in sorted(daily)
        ],
        accounts=[
            AccountGroup(account_name=name, reach=bucket.reach, **bucket.sums())
            for name, bucket in accounts.items()
        ],
        totals=MetricTotals(
            reach=totals.reach,
            frequency=frequency(totals.impressions, totals.reach),
            **totals.sums(),
        ),
    )

    logger.info(
        f"Aggregated {row_count} rows into {len(result.campaigns)} campaigns, "
        f"{len(result.creatives)} creatives, {len(result.daily)} days, "
        f"{len(result.accounts)} accounts",
        extra={"count": row_count},
    )
    return result


def channel_breakdown(records: Iterable[MetricRecord]) -> List[ChannelSlice]:
    """Spend per acquisition channel."""
    spend: Dict[str, float] = defaultdict(float)
    for record in records:
        spend[record.channel or "meta"] += record.spend
    return [ChannelSlice(name=name, value=round(value, 2)) for name, value in spend.items()]
