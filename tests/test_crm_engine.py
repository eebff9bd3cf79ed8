"""Tests for CRM-joined reporting."""

from datetime import datetime, timezone

from app.analyzer.aggregation_engine import aggregate_metrics
from app.analyzer.crm_engine import apply_real_leads, crm_summary, lead_cost_insights
from app.models.aggregate_models import DailyGroup
from app.models.lead_models import FunnelStage
from app.normalizer.leads import build_lead

from conftest import make_metric


def _lead(email, when, campaign="Promo A", stage=FunnelStage.LEAD):
    return build_lead(
        "user-1",
        email,
        "Lead",
        stage=stage,
        cadastro=when,
        campanha_nome=campaign,
    )


def _at(day, hour, minute=0):
    return datetime(2024, 1, day, hour, minute, tzinfo=timezone.utc)


def test_real_leads_and_cpr():
    aggregation = aggregate_metrics(
        [make_metric(campaign_name="Promo A", spend=120.0), make_metric(campaign_name="Promo B")]
    )
    leads = [
        _lead("a@x.com", _at(1, 9)),
        _lead("b@x.com", _at(1, 10)),
        _lead("c@x.com", _at(1, 11)),
        _lead("d@x.com", _at(1, 12), campaign=None),
    ]
    campaigns = {c.campaign_name: c for c in apply_real_leads(aggregation.campaigns, leads)}
    assert campaigns["Promo A"].real_leads == 3
    assert campaigns["Promo A"].cpr == 40.0
    assert campaigns["Promo B"].real_leads == 0
    assert campaigns["Promo B"].cpr == 0


def test_summary_roi():
    leads = [
        _lead("a@x.com", _at(1, 9), stage=FunnelStage.PURCHASE),
        _lead("b@x.com", _at(1, 10)),
        _lead("c@x.com", _at(2, 10)),
        _lead("d@x.com", _at(2, 11)),
    ]
    summary = crm_summary(leads, spend=1000.0, average_ticket=2000.0)
    assert summary.total_leads == 4
    assert summary.total_sales == 1
    assert summary.revenue == 2000.0
    assert summary.roi_real == 100.0
    assert summary.cost_per_result == 250.0
    assert [(b.date, b.leads) for b in summary.leads_by_date] == [("01/01", 2), ("02/01", 2)]


def test_single_day_groups_by_hour():
    leads = [_lead("a@x.com", _at(1, 9, 5)), _lead("b@x.com", _at(1, 9, 50))]
    summary = crm_summary(leads, spend=0.0, single_day=True)
    assert [(b.date, b.leads) for b in summary.leads_by_date] == [("09:00", 2)]
    assert summary.roi_real == 0


def test_lead_cost_insights():
    daily = [DailyGroup(date="2024-01-01", spend=1440.0)]
    leads = [
        _lead("late@x.com", _at(1, 10)),
        _lead("first@x.com", _at(1, 1)),
        _lead("second@x.com", _at(1, 1, 30)),
    ]
    insights = lead_cost_insights(leads, daily)
    assert insights.cheapest.email == "second@x.com"
    assert insights.cheapest.cost == 30.0
    assert insights.most_expensive.email == "late@x.com"
    assert insights.most_expensive.cost == 510.0


def test_lead_cost_insights_empty():
    insights = lead_cost_insights([], [])
    assert insights.cheapest is None
    assert insights.most_expensive is None
