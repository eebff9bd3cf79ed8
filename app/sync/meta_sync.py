"""AdsIntel — Meta Ads Sync.

For each configured ad account: fetch account name → fetch daily insights
→ store raw → transform → reconcile into campaign_metrics.

Sync is optional. Without a token or an account list it is skipped, and
the dashboard simply shows what is already stored.
"""

from typing import Callable, List, Optional

from sqlmodel import Session

from app.analyzer.pipeline import resolve_dates
from app.config import settings
from app.connectors.meta.client import MetaAPIError, MetaClient
from app.connectors.meta.endpoints import MetaEndpoints
from app.connectors.meta.transformer import transform_insights
from app.core.errors import require_user_id
from app.core.logging import get_logger
from app.core.secret_store import (
    META_ACCESS_TOKEN,
    META_AD_ACCOUNT_IDS,
    SecretStore,
    parse_account_ids,
)
from app.models.aggregate_models import SyncResult
from app.models.metric_models import MetricRecord
from app.reconciler.metric_reconciler import reconcile_metrics

logger = get_logger("sync.meta")

ClientFactory = Callable[[str], MetaClient]


async def run_meta_sync(
    session: Session,
    user_id: str,
    secret_store: SecretStore,
    date_range: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    level: Optional[str] = None,
    client_factory: ClientFactory = MetaClient,
) -> SyncResult:
    """Pull insights for every configured account and upsert them.

    A MetaAPIError on any account aborts the whole attempt: pending raw rows
    are rolled back and the error propagates to the caller.
    """
    user_id = require_user_id(user_id, "meta sync")
    token = secret_store.get(user_id, META_ACCESS_TOKEN)
    accounts = parse_account_ids(secret_store.get(user_id, META_AD_ACCOUNT_IDS))

    if not token or not accounts:
        logger.info(
            "Meta credentials not configured, skipping sync",
            extra={"user_id": user_id, "operation": "sync"},
        )
        return SyncResult(status="skipped", reason="Meta credentials not configured")

    level = level or settings.meta_insights_level
    date_start, date_stop = resolve_dates(
        date_range, start_date, end_date, default_days=settings.default_sync_days
    )
    logger.info(
        f"Starting Meta sync: {len(accounts)} accounts, {date_start} → {date_stop} ({level})",
        extra={"user_id": user_id, "operation": "sync"},
    )

    client = client_factory(token)
    records: List[MetricRecord] = []
    try:
        endpoints = MetaEndpoints(client, session, user_id)
        for account_id in accounts:
            account_name = await endpoints.fetch_account_name(account_id)
            rows = await endpoints.fetch_insights(account_id, date_start, date_stop, level)

            thumbnails = {}
            ad_ids = sorted({r["ad_id"] for r in rows if r.get("ad_id")})
            if level == "ad" and ad_ids:
                try:
                    thumbnails = await endpoints.fetch_thumbnails(ad_ids)
                except MetaAPIError as e:
                    # Thumbnails are cosmetic; metrics still go through
                    logger.warning(
                        f"Thumbnail lookup failed: {e}", extra={"account_id": account_id}
                    )

            records.extend(
                transform_insights(rows, user_id, account_name, date_start, thumbnails)
            )
    except MetaAPIError:
        session.rollback()
        logger.error(
            "Meta sync aborted", extra={"user_id": user_id, "operation": "sync"}
        )
        raise
    finally:
        await client.close()

    outcome = reconcile_metrics(session, records, operation="sync")
    return SyncResult(
        status="success",
        accounts=len(accounts),
        rows=outcome.total,
        inserted=outcome.inserted,
        updated=outcome.updated,
        date_range_start=date_start,
        date_range_end=date_stop,
    )
