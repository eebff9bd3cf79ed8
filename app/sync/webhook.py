"""AdsIntel — Meta Lead Ads Webhook.

Meta first verifies the subscription with a GET challenge, then POSTs
`leadgen` change notifications carrying only the lead id. Each id is
resolved with the user's token and upserted as one lead.
"""

from typing import Any, Callable, Dict, List, Optional

from sqlmodel import Session

from app.config import settings
from app.connectors.meta.client import MetaClient
from app.connectors.meta.endpoints import MetaEndpoints
from app.core.errors import require_user_id
from app.core.logging import get_logger
from app.core.secret_store import META_ACCESS_TOKEN, SecretStore
from app.models.aggregate_models import ImportResult
from app.models.lead_models import LeadRecord
from app.normalizer.leads import lead_from_leadgen
from app.reconciler.lead_reconciler import reconcile_leads

logger = get_logger("sync.webhook")


def verify_subscription(
    mode: Optional[str], token: Optional[str], challenge: Optional[str]
) -> Optional[str]:
    """Return the challenge to echo back, or None if verification fails."""
    expected = settings.meta_webhook_verify_token
    if mode == "subscribe" and expected and token == expected:
        return challenge
    return None


def leadgen_ids(payload: Dict[str, Any]) -> List[str]:
    """Extract leadgen ids from a webhook body."""
    ids: List[str] = []
    for entry in payload.get("entry") or []:
        for change in entry.get("changes") or []:
            if change.get("field") != "leadgen":
                continue
            leadgen_id = (change.get("value") or {}).get("leadgen_id")
            if leadgen_id:
                ids.append(str(leadgen_id))
    return ids


async def process_leadgen_webhook(
    session: Session,
    user_id: Optional[str],
    payload: Dict[str, Any],
    secret_store: SecretStore,
    client_factory: Callable[[str], MetaClient] = MetaClient,
) -> ImportResult:
    user_id = require_user_id(user_id, "lead webhook")
    ids = leadgen_ids(payload)
    token = secret_store.get(user_id, META_ACCESS_TOKEN)
    if not token:
        logger.warning(
            f"No access token, {len(ids)} webhook leads ignored",
            extra={"user_id": user_id, "operation": "webhook"},
        )
        return ImportResult(operation="webhook", total=len(ids), skipped=len(ids))

    leads: List[LeadRecord] = []
    client = client_factory(token)
    try:
        endpoints = MetaEndpoints(client, session, user_id)
        for leadgen_id in ids:
            details = await endpoints.fetch_leadgen(leadgen_id)
            lead = lead_from_leadgen(user_id, details)
            if not lead.email:
                logger.warning(f"Skipping lead {leadgen_id}: no email address")
                continue
            leads.append(lead)
    finally:
        await client.close()

    result = reconcile_leads(session, leads, operation="webhook")
    result.total = len(ids)
    result.skipped = result.total - result.accepted
    return result
