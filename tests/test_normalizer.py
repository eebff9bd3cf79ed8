"""Tests for spreadsheet decoding and row normalization."""

from app.models.lead_models import FunnelStage, LeadOrigin
from app.normalizer.leads import (
    lead_from_leadgen,
    normalize_crm_status_row,
    normalize_facebook_lead,
)
from app.normalizer.metrics import normalize_metric_row
from app.normalizer.parsing import FALLBACK_CAMPAIGN, FALLBACK_NAME
from app.normalizer.tabular import decode_bytes, detect_delimiter, read_tabular


class TestTabular:
    def test_utf16_meta_export(self):
        content = "email\tfull_name\nana@x.com\tAna\n".encode("utf-16")
        assert decode_bytes(content).startswith("email")
        assert read_tabular(content) == [{"email": "ana@x.com", "full_name": "Ana"}]

    def test_semicolon_csv_keeps_values_as_text(self):
        rows = read_tabular("Campanha;Gasto\nPromo A;1.234,56\n".encode("utf-8"))
        assert rows == [{"Campanha": "Promo A", "Gasto": "1.234,56"}]

    def test_latin1_fallback(self):
        rows = read_tabular("Campanha,Impressões\nPromo,10\n".encode("latin-1"))
        assert rows[0]["Impressões"] == "10"

    def test_detect_delimiter(self):
        assert detect_delimiter("a\tb\tc\n1\t2\t3") == "\t"
        assert detect_delimiter("a;b\n1;2") == ";"
        assert detect_delimiter("single") == ","

    def test_empty_upload(self):
        assert read_tabular(b"") == []

    def test_row_with_extra_cells_is_kept(self):
        rows = read_tabular(
            b"campanha,data,gasto\nPromo A,01/01/2024,10\nPromo B,02/01/2024,5,extra\n"
        )
        assert rows == [
            {"campanha": "Promo A", "data": "01/01/2024", "gasto": "10"},
            {"campanha": "Promo B", "data": "02/01/2024", "gasto": "5"},
        ]


class TestMetricRow:
    def test_portuguese_export(self):
        record = normalize_metric_row(
            {
                "Nome da conta": "Conta A",
                "Campanha": "Promo A",
                "Anúncio": "Video 1",
                "Data": "01/01/2024",
                "Valor usado (BRL)": "R$ 1.234,56",
                "Impressões": "10.000",
                "Cliques": "150",
                "Resultados": "12",
            },
            "user-1",
        )
        assert record.account_name == "Conta A"
        assert record.campaign_name == "Promo A"
        assert record.date == "2024-01-01"
        assert record.spend == 1234.56
        assert record.impressions == 10000
        assert record.leads == 12

    def test_fallback_columns(self):
        record = normalize_metric_row(
            {"campaign_name": "Promo", "ad_name": "Ad 1", "clicks": "30", "leads": "4"},
            "user-1",
        )
        assert record.link_clicks == 30
        assert record.conversions == 4
        assert record.creative_name == "Ad 1"
        assert record.channel == "meta"

    def test_missing_campaign_gets_label(self):
        record = normalize_metric_row({"date": "2024-01-01", "spend": "10"}, "user-1")
        assert record.campaign_name == FALLBACK_CAMPAIGN

    def test_negative_values_are_clamped(self):
        record = normalize_metric_row(
            {"campaign_name": "Promo", "spend": "-10", "clicks": "-3"}, "user-1"
        )
        assert record.spend == 0
        assert record.clicks == 0


class TestLeadRows:
    def test_facebook_export_row(self):
        lead = normalize_facebook_lead(
            {
                "Email": "User@Test.com",
                "Nome": "Ana Silva",
                "Seu melhor telefone": "11987654321",
            },
            "user-1",
        )
        assert lead.email == "user@test.com"
        assert lead.first_name == "Ana"
        assert lead.last_name == "Silva"
        assert lead.telefone == "5511987654321"
        assert lead.origem_importacao == LeadOrigin.FACEBOOK_CSV.value
        assert lead.situacao_atendimento == FunnelStage.LEAD.value

    def test_missing_name_falls_back(self):
        lead = normalize_facebook_lead({"email": "x@y.com"}, "user-1")
        assert lead.nome == FALLBACK_NAME

    def test_meta_columns(self):
        lead = normalize_facebook_lead(
            {
                "id": "l:123",
                "created_time": "2024-01-05T10:00:00+0000",
                "campaign_name": "Promo A",
                "full_name": "Bruno Costa",
                "email": "bruno@x.com",
                "phone_number": "+5511912345678",
            },
            "user-1",
        )
        assert lead.fac_id == "l:123"
        assert lead.campanha_nome == "Promo A"
        assert lead.telefone == "5511912345678"
        assert lead.cadastro.day == 5

    def test_crm_status_row(self):
        row = normalize_crm_status_row(
            {"E-mail": " Cliente@X.com", "Nome": "Cliente", "Situação Atendimento": "Venda"}
        )
        assert row.email == "cliente@x.com"
        assert row.raw_status == "Venda"

    def test_leadgen_details(self):
        lead = lead_from_leadgen(
            "user-1",
            {
                "id": "999",
                "created_time": "2024-02-01T12:00:00+0000",
                "campaign_name": "Promo B",
                "field_data": [
                    {"name": "email", "values": ["Lead@X.com"]},
                    {"name": "first_name", "values": ["Carla"]},
                    {"name": "last_name", "values": ["Dias"]},
                ],
            },
        )
        assert lead.email == "lead@x.com"
        assert lead.nome == "Carla Dias"
        assert lead.fac_id == "999"
        assert lead.origem_importacao == LeadOrigin.META_WEBHOOK.value
