"""AdsIntel — Lead Rows → LeadRecord.

Three sources produce leads:
  - Meta lead export CSV (full fields)
  - CRM status export CSV (email + status + name only)
  - Meta lead-gen webhook payloads (full fields)
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from app.core.metric_registry import LEAD_FIELD_SOURCES
from app.models.lead_models import FunnelStage, LeadOrigin, LeadRecord
from app.normalizer.parsing import (
    FALLBACK_NAME,
    normalize_email,
    normalize_phone,
    parse_timestamp,
    pick_field,
    split_name,
)
from app.normalizer.status_mapper import map_status


class CrmStatusRow(BaseModel):
    """A partial lead from a status-only CRM export."""

    email: str
    nome: str = ""
    raw_status: str = ""


def _field(row: Dict[str, Any], name: str) -> str:
    return pick_field(row, LEAD_FIELD_SOURCES[name])


def build_lead(
    user_id: str,
    email: str,
    full_name: str = "",
    phone: str = "",
    origin: LeadOrigin = LeadOrigin.FACEBOOK_CSV,
    stage: FunnelStage = FunnelStage.LEAD,
    cadastro: Any = None,
    campanha_nome: Optional[str] = None,
    fac_id: Optional[str] = None,
) -> LeadRecord:
    first_name, last_name = split_name(full_name)
    return LeadRecord(
        user_id=user_id,
        email=normalize_email(email),
        nome=full_name.strip() if full_name else FALLBACK_NAME,
        first_name=first_name,
        last_name=last_name,
        telefone=normalize_phone(phone),
        cadastro=parse_timestamp(cadastro),
        campanha_nome=campanha_nome or None,
        fac_id=fac_id or None,
        origem_importacao=origin.value,
        situacao_atendimento=stage.value,
    )


def normalize_facebook_lead(row: Dict[str, Any], user_id: str) -> LeadRecord:
    """Meta lead export row → LeadRecord."""
    return build_lead(
        user_id=user_id,
        email=_field(row, "email"),
        full_name=_field(row, "nome"),
        phone=_field(row, "telefone"),
        origin=LeadOrigin.FACEBOOK_CSV,
        stage=map_status(_field(row, "status")),
        cadastro=_field(row, "cadastro"),
        campanha_nome=_field(row, "campanha_nome"),
        fac_id=_field(row, "fac_id"),
    )


def normalize_facebook_leads(rows: List[Dict[str, Any]], user_id: str) -> List[LeadRecord]:
    return [normalize_facebook_lead(row, user_id) for row in rows]


def normalize_crm_status_row(row: Dict[str, Any]) -> CrmStatusRow:
    return CrmStatusRow(
        email=normalize_email(_field(row, "email")),
        nome=_field(row, "nome"),
        raw_status=_field(row, "status"),
    )


def lead_from_leadgen(user_id: str, leadgen: Dict[str, Any]) -> LeadRecord:
    """Meta lead-gen details (GET /{leadgen_id}) → LeadRecord."""
    field_data = leadgen.get("field_data") or []

    def get_field(name: str) -> str:
        for item in field_data:
            if item.get("name") == name:
                values = item.get("values") or []
                return str(values[0]).strip() if values else ""
        return ""

    full_name = get_field("full_name") or (
        f"{get_field('first_name')} {get_field('last_name')}".strip()
    )
    return build_lead(
        user_id=user_id,
        email=get_field("email"),
        full_name=full_name,
        phone=get_field("phone_number"),
        origin=LeadOrigin.META_WEBHOOK,
        stage=FunnelStage.LEAD,
        cadastro=leadgen.get("created_time"),
        campanha_nome=leadgen.get("campaign_name"),
        fac_id=str(leadgen.get("id", "")),
    )
