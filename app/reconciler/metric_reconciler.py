"""AdsIntel — Metric Reconciler.

Idempotent upsert of MetricRecord batches keyed on
(user_id, campaign_name, date). An incoming record replaces the stored
row wholesale; fields are never merged.

Caveat: two imports covering overlapping dates clobber each other's rows
for shared keys (last write wins). There is no locking.
"""

from datetime import datetime, timezone
from typing import Dict, List, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.core.errors import StorageError
from app.core.logging import get_logger
from app.models.aggregate_models import ImportResult
from app.models.metric_models import CampaignMetric, MetricRecord

logger = get_logger("reconciler.metrics")


def dedupe_metrics(records: List[MetricRecord]) -> List[MetricRecord]:
    """Collapse rows sharing a natural key; the last one wins."""
    unique: Dict[Tuple[str, str, str], MetricRecord] = {}
    for record in records:
        unique[record.natural_key] = record
    return list(unique.values())


def reconcile_metrics(
    session: Session,
    records: List[MetricRecord],
    operation: str = "upload",
) -> ImportResult:
    """Upsert a batch of metric records. Any storage failure aborts the batch."""
    result = ImportResult(operation=operation, total=len(records))
    batch = dedupe_metrics(records)

    try:
        for record in batch:
            existing = session.exec(
                select(CampaignMetric).where(
                    CampaignMetric.user_id == record.user_id,
                    CampaignMetric.campaign_name == record.campaign_name,
                    CampaignMetric.date == record.date,
                )
            ).first()

            if existing:
                for field, value in record.model_dump().items():
                    setattr(existing, field, value)
                existing.updated_at = datetime.now(timezone.utc)
                session.add(existing)
                result.updated += 1
            else:
                session.add(CampaignMetric.model_validate(record.model_dump()))
                result.inserted += 1

        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(
            f"Metric upsert failed, batch rolled back: {e}",
            extra={"operation": operation, "count": len(batch)},
        )
        raise StorageError(operation, str(e.__class__.__name__)) from e

    result.accepted = result.inserted + result.updated
    result.skipped = result.total - len(batch)
    logger.info(
        f"Upserted {len(batch)} metric rows ({result.inserted} new, {result.updated} replaced)",
        extra={"operation": operation, "count": len(batch)},
    )
    return result
