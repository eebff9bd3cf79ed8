"""AdsIntel — Canonical Field Registry.

Defines the canonical metric fields, how they are classified, and the
header-alias tables used to map arbitrary spreadsheet columns onto them.
When a new export format shows up, register its column spellings here so
the normalizer treats them uniformly.
"""

from enum import Enum
from typing import Dict, List


class MetricType(str, Enum):
    """How a metric is categorised."""

    VOLUME = "volume"  # Raw counts: impressions, clicks, reach
    COST = "cost"  # Monetary: spend
    RATE = "rate"  # Pre-computed rates from source: ctr, cpc
    DERIVED = "derived"  # Computed by the analyzer: cpl, cpr, roi
    DIMENSION = "dimension"  # Grouping attributes: campaign, ad, date


class MetricDefinition:
    """Describes a single canonical field."""

    def __init__(
        self, name: str, metric_type: MetricType, unit: str = "", description: str = ""
    ):
        self.name = name
        self.metric_type = metric_type
        self.unit = unit
        self.description = description

    def __repr__(self) -> str:
        return f"<Metric {self.name} ({self.metric_type.value})>"


# ─────────────────────────────────────────────
# CANONICAL METRIC FIELDS
# ─────────────────────────────────────────────

METRIC_FIELDS: Dict[str, MetricDefinition] = {
    # Dimensions
    "account_name": MetricDefinition("account_name", MetricType.DIMENSION),
    "campaign_name": MetricDefinition("campaign_name", MetricType.DIMENSION),
    "ad_set_name": MetricDefinition("ad_set_name", MetricType.DIMENSION),
    "ad_name": MetricDefinition("ad_name", MetricType.DIMENSION),
    "creative_name": MetricDefinition("creative_name", MetricType.DIMENSION),
    "date": MetricDefinition("date", MetricType.DIMENSION, "YYYY-MM-DD"),
    "thumbnail_url": MetricDefinition("thumbnail_url", MetricType.DIMENSION),
    "channel": MetricDefinition("channel", MetricType.DIMENSION),
    # Volume
    "impressions": MetricDefinition(
        "impressions", MetricType.VOLUME, "count", "Number of times ad was shown"
    ),
    "clicks": MetricDefinition("clicks", MetricType.VOLUME, "count", "Total clicks"),
    "link_clicks": MetricDefinition(
        "link_clicks", MetricType.VOLUME, "count", "Clicks on the ad link"
    ),
    "unique_link_clicks": MetricDefinition(
        "unique_link_clicks", MetricType.VOLUME, "count", "Unique users who clicked"
    ),
    "reach": MetricDefinition(
        "reach", MetricType.VOLUME, "count", "Unique users who saw ad"
    ),
    "leads": MetricDefinition(
        "leads", MetricType.VOLUME, "count", "Platform-reported leads"
    ),
    "conversions": MetricDefinition(
        "conversions", MetricType.VOLUME, "count", "Platform-reported conversions"
    ),
    # Cost
    "spend": MetricDefinition(
        "spend", MetricType.COST, "currency", "Total amount spent"
    ),
    # Rates (as reported by the source)
    "ctr": MetricDefinition("ctr", MetricType.RATE, "%", "Click-through rate"),
    "cpc": MetricDefinition("cpc", MetricType.RATE, "currency", "Cost per click"),
    "cpm": MetricDefinition(
        "cpm", MetricType.RATE, "currency", "Cost per 1000 impressions"
    ),
    "cpl": MetricDefinition("cpl", MetricType.RATE, "currency", "Cost per lead"),
    "frequency": MetricDefinition(
        "frequency", MetricType.RATE, "avg", "Average times ad shown per user"
    ),
}

DERIVED_METRICS: Dict[str, MetricDefinition] = {
    "cpr": MetricDefinition(
        "cpr", MetricType.DERIVED, "currency", "Spend / CRM-confirmed leads"
    ),
    "roi_real": MetricDefinition(
        "roi_real", MetricType.DERIVED, "%", "(CRM revenue - spend) / spend"
    ),
}


# ─────────────────────────────────────────────
# HEADER ALIASES: normalized header → canonical field
# ─────────────────────────────────────────────

HEADER_ALIASES: Dict[str, str] = {
    "account_name": "account_name",
    "conta": "account_name",
    "nome_da_conta": "account_name",
    "campaign_name": "campaign_name",
    "campanha": "campaign_name",
    "nome_da_campanha": "campaign_name",
    "ad_set_name": "ad_set_name",
    "conjunto": "ad_set_name",
    "nome_do_conjunto": "ad_set_name",
    "nome_do_conjunto_de_anúncios": "ad_set_name",
    "ad_name": "ad_name",
    "anúncio": "ad_name",
    "anuncio": "ad_name",
    "nome_do_anúncio": "ad_name",
    "nome_do_anuncio": "ad_name",
    "creative_name": "creative_name",
    "criativo": "creative_name",
    "ad_creative_name": "creative_name",
    "date": "date",
    "data": "date",
    "dia": "date",
    "reporting_starts": "date",
    "início_dos_relatórios": "date",
    "impressions": "impressions",
    "impressões": "impressions",
    "impressoes": "impressions",
    "clicks": "clicks",
    "cliques": "clicks",
    "link_clicks": "link_clicks",
    "cliques_no_link": "link_clicks",
    "unique_link_clicks": "unique_link_clicks",
    "reach": "reach",
    "alcance": "reach",
    "spend": "spend",
    "amount_spend": "spend",
    "amount_spent": "spend",
    "amount_spent_(brl)": "spend",
    "valor_usado_(brl)": "spend",
    "gasto": "spend",
    "investimento": "spend",
    "leads": "leads",
    "resultados": "leads",
    "conversions": "conversions",
    "conversões": "conversions",
    "conversoes": "conversions",
    "ctr": "ctr",
    "cpc": "cpc",
    "cpm": "cpm",
    "cpl": "cpl",
    "cpv": "cpl",
    "frequency": "frequency",
    "frequência": "frequency",
    "frequencia": "frequency",
    "thumbnail": "thumbnail_url",
    "thumbnail_url": "thumbnail_url",
    "imagem": "thumbnail_url",
    "channel": "channel",
    "canal": "channel",
}


# ─────────────────────────────────────────────
# LEAD FIELD SOURCES: priority-ordered column spellings
# ─────────────────────────────────────────────

LEAD_FIELD_SOURCES: Dict[str, List[str]] = {
    "email": ["email", "Email", "E-mail", "e-mail", "EMAIL"],
    "nome": ["full_name", "Nome", "nome", "Nome completo", "Name", "name"],
    "telefone": [
        "Seu melhor telefone",
        "phone_number",
        "Número de telefone",
        "Numero de telefone",
        "Telefone",
        "telefone",
        "Phone",
        "phone",
    ],
    "campanha_nome": ["campaign_name", "Campanha", "campanha", "campanha_nome"],
    "fac_id": ["id", "Fac_id", "fac_id", "leadgen_id"],
    "cadastro": ["created_time", "Cadastro", "cadastro", "Data de cadastro"],
    "status": [
        "Situação Atendimento",
        "Situacao Atendimento",
        "situacao_atendimento",
        "Situação",
        "Status",
        "status",
    ],
}


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────

ALL_METRICS = {**METRIC_FIELDS, **DERIVED_METRICS}


def metrics_by_type(metric_type: MetricType) -> list[MetricDefinition]:
    """Return all metrics of a given type."""
    return [m for m in ALL_METRICS.values() if m.metric_type == metric_type]
