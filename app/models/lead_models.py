"""AdsIntel — CRM Lead Models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field, UniqueConstraint


class FunnelStage(str, Enum):
    """Fixed CRM funnel taxonomy (also used as Conversions API event names)."""

    LEAD = "Lead"
    CONTACT = "Contact"
    SCHEDULE = "Schedule"
    SUBMIT_APPLICATION = "SubmitApplication"
    PURCHASE = "Purchase"


class LeadOrigin(str, Enum):
    FACEBOOK_CSV = "facebook_csv"
    CRM_STATUS_CSV = "crm_status_csv"
    META_WEBHOOK = "meta_webhook"


class LeadRecord(SQLModel):
    """One CRM contact in canonical form."""

    user_id: str = Field(index=True)
    email: str = Field(index=True, description="Lower-cased, trimmed")
    nome: str = ""
    first_name: str = ""
    last_name: str = ""
    telefone: str = Field(default="", description="Digits only")
    cadastro: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    campanha_nome: Optional[str] = Field(default=None, index=True)
    fac_id: Optional[str] = None
    origem_importacao: str = LeadOrigin.FACEBOOK_CSV.value
    situacao_atendimento: str = FunnelStage.LEAD.value


class CrmLead(LeadRecord, table=True):
    """Persisted CRM lead, unique per (user_id, email)."""

    __tablename__ = "crm_leads"
    __table_args__ = (
        UniqueConstraint("user_id", "email", name="uq_crm_lead_email"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
