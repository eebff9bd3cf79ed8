"""AdsIntel — Force Sync (outbound per-lead dispatch).

Walks every stored lead of a user in fixed-size pages. Leads within a page
are dispatched concurrently; the next page is only read once the current
one has fully settled. A failed lead is logged and counted, never raised.
"""

import asyncio
from typing import Callable, Optional

from sqlmodel import Session, select

from app.config import settings
from app.connectors.meta.client import MetaClient
from app.connectors.meta.conversions import LeadDispatcher, MetaConversionsDispatcher
from app.core.errors import require_user_id
from app.core.logging import get_logger
from app.core.secret_store import META_ACCESS_TOKEN, META_PIXEL_ID, SecretStore
from app.models.aggregate_models import DispatchResult
from app.models.lead_models import CrmLead

logger = get_logger("sync.dispatch")


async def dispatch_all_leads(
    session: Session,
    user_id: str,
    dispatcher: LeadDispatcher,
    page_size: Optional[int] = None,
) -> DispatchResult:
    """Dispatch every lead of a user, one page at a time."""
    user_id = require_user_id(user_id, "force sync")
    page_size = page_size or settings.dispatch_page_size
    result = DispatchResult()
    offset = 0

    while True:
        page = session.exec(
            select(CrmLead)
            .where(CrmLead.user_id == user_id)
            .order_by(CrmLead.id)
            .offset(offset)
            .limit(page_size)
        ).all()
        if not page:
            break

        outcomes = await asyncio.gather(
            *(dispatcher.dispatch(lead) for lead in page), return_exceptions=True
        )
        for lead, outcome in zip(page, outcomes):
            if isinstance(outcome, BaseException):
                result.failed += 1
                logger.warning(
                    f"Dispatch failed for lead {lead.id}: {outcome}",
                    extra={"user_id": user_id, "operation": "force_sync"},
                )
            elif outcome:
                result.succeeded += 1
            else:
                result.failed += 1

        result.dispatched += len(page)
        result.pages += 1
        if len(page) < page_size:
            break
        offset += page_size

    logger.info(
        f"Force sync finished: {result.succeeded}/{result.dispatched} leads accepted",
        extra={"user_id": user_id, "operation": "force_sync", "count": result.dispatched},
    )
    return result


async def force_sync(
    session: Session,
    user_id: str,
    secret_store: SecretStore,
    client_factory: Callable[[str], MetaClient] = MetaClient,
) -> DispatchResult:
    """Send every lead to the Conversions API using the user's pixel."""
    user_id = require_user_id(user_id, "force sync")
    token = secret_store.get(user_id, META_ACCESS_TOKEN)
    pixel_id = secret_store.get(user_id, META_PIXEL_ID)
    if not token or not pixel_id:
        logger.info(
            "Pixel or token not configured, dispatch inactive",
            extra={"user_id": user_id, "operation": "force_sync"},
        )
        return DispatchResult(status="inactive")

    client = client_factory(token)
    try:
        dispatcher = MetaConversionsDispatcher(client, pixel_id)
        return await dispatch_all_leads(session, user_id, dispatcher)
    finally:
        await client.close()
