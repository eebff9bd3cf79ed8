"""Shared fixtures: in-memory database, secret store and Meta transport."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

from typing import Callable, Dict, List, Optional

import httpx
import pytest
from sqlmodel import Session

from app.connectors.meta.client import MetaClient
from app.core.secret_store import SecretStore
from app.database import build_engine, create_tables
from app.models.metric_models import MetricRecord


class InMemorySecretStore(SecretStore):
    """Plain dict store for tests; values are never encrypted."""

    def __init__(self, values: Optional[Dict[str, Dict[str, str]]] = None):
        self.values: Dict[str, Dict[str, str]] = values or {}

    def get(self, user_id: str, key: str) -> Optional[str]:
        return self.values.get(user_id, {}).get(key)

    def set(self, user_id: str, key: str, value: str) -> None:
        self.values.setdefault(user_id, {})[key] = value

    def delete(self, user_id: str, key: str) -> None:
        self.values.get(user_id, {}).pop(key, None)

    def keys(self, user_id: str) -> List[str]:
        return list(self.values.get(user_id, {}))


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def secret_store():
    return InMemorySecretStore()


@pytest.fixture
def meta_client_factory():
    """Build a MetaClient factory whose requests are answered by `handler`."""

    def build(handler: Callable[[httpx.Request], httpx.Response]):
        transport = httpx.MockTransport(handler)
        return lambda token: MetaClient(token, transport=transport)

    return build


def make_metric(**overrides) -> MetricRecord:
    fields = {
        "user_id": "user-1",
        "account_name": "Conta A",
        "campaign_name": "Promo A",
        "ad_name": "Anuncio 1",
        "date": "2024-01-01",
        "impressions": 1000,
        "clicks": 20,
        "reach": 800,
        "spend": 100.0,
        "leads": 2,
    }
    fields.update(overrides)
    return MetricRecord(**fields)
