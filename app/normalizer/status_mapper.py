"""AdsIntel — CRM Status → Funnel Stage.

Free-text statuses come from Brazilian CRMs ("Venda Realizada",
"Em Negociação", "Visita Agendada"...). Rules are checked top to bottom
and the first hit wins.
"""

import unicodedata
from typing import Optional

from app.models.lead_models import FunnelStage

STATUS_RULES: list[tuple[tuple[str, ...], FunnelStage]] = [
    (("venda",), FunnelStage.PURCHASE),
    (("proposta", "negociacao"), FunnelStage.SUBMIT_APPLICATION),
    (("visita",), FunnelStage.SCHEDULE),
    (("atendimento", "contato"), FunnelStage.CONTACT),
]


def strip_accents(text: str) -> str:
    return "".join(
        c for c in unicodedata.normalize("NFD", text) if unicodedata.category(c) != "Mn"
    )


def map_status(status: Optional[str]) -> FunnelStage:
    """Map a raw CRM status string to a funnel stage."""
    if not status:
        return FunnelStage.LEAD

    folded = strip_accents(status.lower())
    for keywords, stage in STATUS_RULES:
        if any(keyword in folded for keyword in keywords):
            return stage
    return FunnelStage.LEAD
