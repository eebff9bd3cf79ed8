"""AdsIntel — Meta Conversions API Dispatcher.

Sends one server-side event per CRM lead so Meta can optimise on real
funnel progress. The event name is the lead's funnel stage.
"""

import hashlib
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from app.connectors.meta.client import MetaClient, META_BASE
from app.core.logging import get_logger
from app.models.lead_models import CrmLead

logger = get_logger("meta.conversions")


class LeadDispatcher(ABC):
    """Outbound per-lead target used by the force-sync loop."""

    @abstractmethod
    async def dispatch(self, lead: CrmLead) -> bool:
        """Send one lead. Return True on success; may raise on failure."""
        ...


def hash_value(value: Any) -> str:
    """SHA-256 of the trimmed, lower-cased value; empty input hashes to ''."""
    if value is None or value == "":
        return ""
    clean = str(value).strip().lower()
    return hashlib.sha256(clean.encode("utf-8")).hexdigest()


def build_event(lead: CrmLead, event_time: Optional[int] = None) -> Dict[str, Any]:
    """One Conversions API event for a lead, with hashed user data."""
    first_name = lead.first_name or (lead.nome.split(" ")[0] if lead.nome else "")
    last_name = lead.last_name or (" ".join(lead.nome.split(" ")[1:]) if lead.nome else "")
    return {
        "event_name": lead.situacao_atendimento or "Lead",
        "event_time": event_time if event_time is not None else int(time.time()),
        "action_source": "system_generated",
        "event_id": lead.fac_id or str(lead.id),
        "user_data": {
            "em": [hash_value(lead.email)],
            "ph": [hash_value(lead.telefone)],
            "fn": [hash_value(first_name)],
            "ln": [hash_value(last_name)],
            "external_id": [hash_value(lead.id)],
        },
    }


class MetaConversionsDispatcher(LeadDispatcher):
    """Posts lead events to /{pixel_id}/events."""

    def __init__(self, client: MetaClient, pixel_id: str):
        self.client = client
        self.pixel_id = pixel_id

    async def dispatch(self, lead: CrmLead) -> bool:
        url = f"{META_BASE}/{self.pixel_id}/events"
        result = await self.client.post(url, json_body={"data": [build_event(lead)]})
        received = result.get("events_received", 0) if isinstance(result, dict) else 0
        logger.debug(f"Lead {lead.id} sent, events_received={received}")
        return received > 0
