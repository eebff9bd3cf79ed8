"""Tests for metric and lead upserts."""

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from app.core.errors import StorageError
from app.models.lead_models import CrmLead, FunnelStage
from app.normalizer.leads import CrmStatusRow, build_lead
from app.reconciler.lead_reconciler import reconcile_crm_status, reconcile_leads
from app.reconciler.metric_reconciler import dedupe_metrics, reconcile_metrics
from app.models.metric_models import CampaignMetric

from conftest import make_metric


def _metric_rows(session):
    return session.exec(select(CampaignMetric).order_by(CampaignMetric.date)).all()


def _lead_rows(session):
    return session.exec(select(CrmLead).order_by(CrmLead.email)).all()


class TestMetricReconciler:
    def test_insert_then_replace(self, session):
        first = reconcile_metrics(session, [make_metric()])
        assert (first.inserted, first.updated) == (1, 0)

        second = reconcile_metrics(session, [make_metric(spend=250.0, leads=5)])
        assert (second.inserted, second.updated) == (0, 1)

        rows = _metric_rows(session)
        assert len(rows) == 1
        assert rows[0].spend == 250.0
        assert rows[0].leads == 5

    def test_same_batch_twice_is_idempotent(self, session):
        batch = [make_metric(date="2024-01-01"), make_metric(date="2024-01-02", spend=50.0)]
        reconcile_metrics(session, batch)
        snapshot = [(r.campaign_name, r.date, r.spend) for r in _metric_rows(session)]

        reconcile_metrics(session, batch)
        assert [(r.campaign_name, r.date, r.spend) for r in _metric_rows(session)] == snapshot

    def test_replacement_is_wholesale(self, session):
        reconcile_metrics(session, [make_metric(thumbnail_url="http://img", reach=900)])
        reconcile_metrics(session, [make_metric(thumbnail_url=None, reach=0)])
        row = _metric_rows(session)[0]
        assert row.thumbnail_url is None
        assert row.reach == 0

    def test_users_are_isolated(self, session):
        reconcile_metrics(session, [make_metric(user_id="a"), make_metric(user_id="b")])
        assert len(_metric_rows(session)) == 2

    def test_in_batch_duplicates_last_wins(self):
        batch = dedupe_metrics([make_metric(spend=1.0), make_metric(spend=2.0)])
        assert len(batch) == 1
        assert batch[0].spend == 2.0

    def test_storage_failure_rolls_back_batch(self, session, monkeypatch):
        def fail():
            raise OperationalError("INSERT", {}, Exception("disk full"))

        monkeypatch.setattr(session, "commit", fail)
        with pytest.raises(StorageError) as exc:
            reconcile_metrics(session, [make_metric()], operation="upload")
        assert exc.value.operation == "upload"

        monkeypatch.undo()
        assert _metric_rows(session) == []


class TestLeadReconciler:
    def test_upsert_by_email(self, session):
        reconcile_leads(session, [build_lead("user-1", "ana@x.com", "Ana")])
        result = reconcile_leads(
            session, [build_lead("user-1", "ANA@x.com", "Ana Silva", phone="11987654321")]
        )
        assert result.updated == 1
        rows = _lead_rows(session)
        assert len(rows) == 1
        assert rows[0].nome == "Ana Silva"
        assert rows[0].telefone == "5511987654321"

    def test_rows_without_email_are_skipped(self, session):
        result = reconcile_leads(
            session,
            [build_lead("user-1", "", "Sem Email"), build_lead("user-1", "a@x.com", "A")],
        )
        assert result.total == 2
        assert result.inserted == 1
        assert result.skipped == 1


class TestCrmStatusReconciler:
    def test_unknown_contact_is_not_created(self, session):
        result = reconcile_crm_status(
            session, "user-1", [CrmStatusRow(email="novo@x.com", raw_status="Em contato")]
        )
        assert result.inserted == 0
        assert result.skipped == 1
        assert _lead_rows(session) == []

    def test_unknown_purchase_is_created(self, session):
        result = reconcile_crm_status(
            session,
            "user-1",
            [CrmStatusRow(email="novo@x.com", nome="Novo Cliente", raw_status="Venda Realizada")],
        )
        assert result.inserted == 1
        lead = _lead_rows(session)[0]
        assert lead.situacao_atendimento == FunnelStage.PURCHASE.value
        assert lead.nome == "Novo Cliente"

    def test_known_lead_gets_new_stage(self, session):
        reconcile_leads(session, [build_lead("user-1", "ana@x.com", "Ana")])
        result = reconcile_crm_status(
            session, "user-1", [CrmStatusRow(email="ana@x.com", raw_status="Visita Agendada")]
        )
        assert result.updated == 1
        assert _lead_rows(session)[0].situacao_atendimento == FunnelStage.SCHEDULE.value

    def test_new_name_replaces_name_parts(self, session):
        reconcile_leads(session, [build_lead("user-1", "ana@x.com", "Ana Silva")])
        reconcile_crm_status(
            session,
            "user-1",
            [CrmStatusRow(email="ana@x.com", nome="Beatriz Souza", raw_status="Em contato")],
        )
        lead = _lead_rows(session)[0]
        assert (lead.nome, lead.first_name, lead.last_name) == ("Beatriz Souza", "Beatriz", "Souza")

    def test_finished_rows_are_ignored(self, session):
        reconcile_leads(session, [build_lead("user-1", "ana@x.com", "Ana")])
        result = reconcile_crm_status(
            session, "user-1", [CrmStatusRow(email="ana@x.com", raw_status=" Finalizado ")]
        )
        assert result.updated == 0
        assert _lead_rows(session)[0].situacao_atendimento == FunnelStage.LEAD.value

    def test_other_users_leads_are_not_matched(self, session):
        reconcile_leads(session, [build_lead("user-2", "ana@x.com", "Ana")])
        result = reconcile_crm_status(
            session, "user-1", [CrmStatusRow(email="ana@x.com", raw_status="Em contato")]
        )
        assert result.accepted == 0
