"""AdsIntel — Lead Reconciler.

Two upsert flavours, both keyed on (user_id, email):

  reconcile_leads       full-fidelity sources (Meta export, webhook);
                        every field of the stored lead is replaced.
  reconcile_crm_status  status-only CRM exports; a row may only touch a
                        lead that already exists, unless it reports a
                        sale, in which case it is created.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.config import settings
from app.core.errors import StorageError
from app.core.logging import get_logger
from app.models.aggregate_models import ImportResult
from app.models.lead_models import CrmLead, FunnelStage, LeadOrigin, LeadRecord
from app.normalizer.leads import CrmStatusRow, build_lead
from app.normalizer.parsing import split_name
from app.normalizer.status_mapper import map_status

logger = get_logger("reconciler.leads")


def _find_lead(session: Session, user_id: str, email: str) -> Optional[CrmLead]:
    return session.exec(
        select(CrmLead).where(CrmLead.user_id == user_id, CrmLead.email == email)
    ).first()


def existing_emails(session: Session, user_id: str) -> Set[str]:
    return set(session.exec(select(CrmLead.email).where(CrmLead.user_id == user_id)).all())


def reconcile_leads(
    session: Session,
    records: List[LeadRecord],
    operation: str = "lead import",
) -> ImportResult:
    """Upsert full-fidelity leads. Rows without an email are dropped."""
    result = ImportResult(operation=operation, total=len(records))

    unique: Dict[tuple[str, str], LeadRecord] = {}
    for record in records:
        if not record.email:
            continue
        unique[(record.user_id, record.email)] = record

    try:
        for record in unique.values():
            existing = _find_lead(session, record.user_id, record.email)
            if existing:
                for field, value in record.model_dump().items():
                    setattr(existing, field, value)
                existing.updated_at = datetime.now(timezone.utc)
                session.add(existing)
                result.updated += 1
            else:
                session.add(CrmLead.model_validate(record.model_dump()))
                result.inserted += 1
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Lead upsert failed, batch rolled back: {e}", extra={"operation": operation})
        raise StorageError(operation, str(e.__class__.__name__)) from e

    result.accepted = result.inserted + result.updated
    result.skipped = result.total - result.accepted
    logger.info(
        f"Upserted {result.accepted} leads ({result.inserted} new, {result.updated} updated, "
        f"{result.skipped} skipped)",
        extra={"operation": operation, "count": result.accepted},
    )
    return result


def reconcile_crm_status(
    session: Session,
    user_id: str,
    rows: List[CrmStatusRow],
    operation: str = "crm status import",
) -> ImportResult:
    """Apply a status-only CRM feed.

    A row is applied only when its email is already stored for the user or
    its status maps to Purchase. Anything else would fabricate a contact
    from a partial feed, so it is discarded.
    """
    result = ImportResult(operation=operation, total=len(rows))
    finished = settings.crm_finished_status.strip()

    try:
        known = existing_emails(session, user_id)
        for row in rows:
            if not row.email:
                continue
            if row.raw_status.strip() == finished:
                continue

            stage = map_status(row.raw_status)
            if row.email in known:
                lead = _find_lead(session, user_id, row.email)
                lead.situacao_atendimento = stage.value
                if row.nome:
                    lead.nome = row.nome
                    lead.first_name, lead.last_name = split_name(row.nome)
                lead.updated_at = datetime.now(timezone.utc)
                session.add(lead)
                result.updated += 1
            elif stage == FunnelStage.PURCHASE:
                record = build_lead(
                    user_id=user_id,
                    email=row.email,
                    full_name=row.nome,
                    origin=LeadOrigin.CRM_STATUS_CSV,
                    stage=stage,
                )
                session.add(CrmLead.model_validate(record.model_dump()))
                known.add(row.email)
                result.inserted += 1
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"CRM status sync failed, batch rolled back: {e}", extra={"operation": operation})
        raise StorageError(operation, str(e.__class__.__name__)) from e

    result.accepted = result.inserted + result.updated
    result.skipped = result.total - result.accepted
    logger.info(
        f"CRM status applied: {result.updated} updated, {result.inserted} sales created, "
        f"{result.skipped} discarded",
        extra={"operation": operation, "user_id": user_id, "count": result.accepted},
    )
    return result
