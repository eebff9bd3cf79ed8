"""Tests for the Meta Ads sync, served by a mock Graph API."""

import httpx
import pytest
from sqlmodel import select

from app.connectors.meta.client import MetaAPIError, MetaClient
from app.connectors.meta.transformer import NO_ACTIVE_CAMPAIGNS, count_leads
from app.core.errors import MissingIdentityError
from app.core.secret_store import META_ACCESS_TOKEN, META_AD_ACCOUNT_IDS
from app.models.metric_models import CampaignMetric
from app.models.raw_models import RawMetaData
from app.sync.meta_sync import run_meta_sync

INSIGHT_ROW = {
    "campaign_name": "Promo A",
    "date_start": "2024-01-01",
    "spend": "100.50",
    "impressions": "1000",
    "clicks": "20",
    "reach": "800",
    "actions": [
        {"action_type": "link_click", "value": "15"},
        {"action_type": "lead", "value": "4"},
    ],
}


def graph_api(insights=None, status_code=200):
    """Handler answering account and insights requests for act_123."""

    def handler(request: httpx.Request) -> httpx.Response:
        if status_code != 200:
            return httpx.Response(
                status_code, json={"error": {"message": "Invalid token", "code": 190}}
            )
        if request.url.path.endswith("/act_123/insights"):
            return httpx.Response(200, json={"data": insights or []})
        if request.url.path.endswith("/act_123"):
            return httpx.Response(200, json={"name": "Conta Teste"})
        return httpx.Response(404, json={"error": {"message": "Unknown path"}})

    return handler


@pytest.fixture
def configured_store(secret_store):
    secret_store.set("user-1", META_ACCESS_TOKEN, "token")
    secret_store.set("user-1", META_AD_ACCOUNT_IDS, "123")
    return secret_store


class TestRunMetaSync:
    @pytest.mark.asyncio
    async def test_skips_without_credentials(self, session, secret_store):
        result = await run_meta_sync(session, "user-1", secret_store)
        assert result.status == "skipped"
        assert session.exec(select(CampaignMetric)).all() == []

    @pytest.mark.asyncio
    async def test_requires_user(self, session, secret_store):
        with pytest.raises(MissingIdentityError):
            await run_meta_sync(session, "", secret_store)

    @pytest.mark.asyncio
    async def test_insights_are_upserted(self, session, configured_store, meta_client_factory):
        result = await run_meta_sync(
            session,
            "user-1",
            configured_store,
            start_date="2024-01-01",
            end_date="2024-01-01",
            client_factory=meta_client_factory(graph_api([INSIGHT_ROW])),
        )
        assert result.status == "success"
        assert result.inserted == 1
        assert result.date_range_start == "2024-01-01"

        row = session.exec(select(CampaignMetric)).one()
        assert row.account_name == "Conta Teste"
        assert row.campaign_name == "Promo A"
        assert row.spend == 100.5
        assert row.leads == 4
        assert row.link_clicks == 15

        raw = session.exec(select(RawMetaData)).one()
        assert raw.endpoint == "insights"
        assert raw.account_id == "123"

    @pytest.mark.asyncio
    async def test_resync_replaces_rows(self, session, configured_store, meta_client_factory):
        factory = meta_client_factory(graph_api([INSIGHT_ROW]))
        for _ in range(2):
            result = await run_meta_sync(
                session,
                "user-1",
                configured_store,
                start_date="2024-01-01",
                end_date="2024-01-01",
                client_factory=factory,
            )
        assert result.updated == 1
        assert len(session.exec(select(CampaignMetric)).all()) == 1

    @pytest.mark.asyncio
    async def test_account_without_delivery_gets_placeholder(
        self, session, configured_store, meta_client_factory
    ):
        await run_meta_sync(
            session,
            "user-1",
            configured_store,
            start_date="2024-01-01",
            end_date="2024-01-07",
            client_factory=meta_client_factory(graph_api([])),
        )
        row = session.exec(select(CampaignMetric)).one()
        assert row.campaign_name == NO_ACTIVE_CAMPAIGNS
        assert row.date == "2024-01-01"
        assert row.spend == 0

    @pytest.mark.asyncio
    async def test_api_error_propagates_and_stores_nothing(
        self, session, configured_store, meta_client_factory
    ):
        with pytest.raises(MetaAPIError) as exc:
            await run_meta_sync(
                session,
                "user-1",
                configured_store,
                client_factory=meta_client_factory(graph_api(status_code=400)),
            )
        assert exc.value.status_code == 400
        assert exc.value.error_code == 190
        assert session.exec(select(CampaignMetric)).all() == []
        assert session.exec(select(RawMetaData)).all() == []


class TestMetaClient:
    def test_token_is_required(self):
        with pytest.raises(ValueError):
            MetaClient("")

    @pytest.mark.asyncio
    async def test_pagination_follows_next(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["access_token"] == "token"
            if request.url.params.get("after") == "page2":
                return httpx.Response(200, json={"data": [{"id": 2}]})
            return httpx.Response(
                200,
                json={
                    "data": [{"id": 1}],
                    "paging": {"next": "https://graph.facebook.com/v18.0/x?after=page2"},
                },
            )

        async with MetaClient("token", transport=httpx.MockTransport(handler)) as client:
            data = await client.paginated_get("https://graph.facebook.com/v18.0/x")
        assert data == [{"id": 1}, {"id": 2}]

    @pytest.mark.asyncio
    async def test_connection_error_is_mapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        client = MetaClient("token", transport=httpx.MockTransport(handler))
        with pytest.raises(MetaAPIError):
            await client.get("https://graph.facebook.com/v18.0/me")
        await client.close()


def test_count_leads_prefers_generic_action():
    row = {
        "actions": [
            {"action_type": "lead", "value": "3"},
            {"action_type": "on_facebook_lead", "value": "3"},
        ]
    }
    assert count_leads(row) == 3


def test_count_leads_sums_specific_actions():
    row = {
        "actions": [{"action_type": "on_facebook_lead", "value": "2"}],
        "conversions": [{"action_type": "submit_application", "value": "1"}],
    }
    assert count_leads(row) == 3
