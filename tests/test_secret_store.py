"""Tests for the encrypted per-user settings store."""

import pytest
from cryptography.fernet import Fernet
from sqlmodel import select

from app.config import settings
from app.core.errors import MissingIdentityError, SecretStoreError
from app.core.secret_store import (
    META_ACCESS_TOKEN,
    META_PIXEL_ID,
    DatabaseSecretStore,
    parse_account_ids,
    users_with_secret,
)
from app.models.secret_models import ApiSetting


@pytest.fixture
def key():
    return Fernet.generate_key().decode()


@pytest.fixture
def store(session, key):
    return DatabaseSecretStore(session, key=key)


class TestDatabaseSecretStore:
    def test_round_trip(self, store):
        store.set("user-1", META_ACCESS_TOKEN, "EAAB-token")
        assert store.get("user-1", META_ACCESS_TOKEN) == "EAAB-token"

    def test_value_is_encrypted_at_rest(self, session, store):
        store.set("user-1", META_ACCESS_TOKEN, "EAAB-token")
        row = session.exec(select(ApiSetting)).one()
        assert "EAAB-token" not in row.encrypted_value

    def test_overwrite_keeps_one_row(self, session, store):
        store.set("user-1", META_PIXEL_ID, "1")
        store.set("user-1", META_PIXEL_ID, "2")
        assert store.get("user-1", META_PIXEL_ID) == "2"
        assert len(session.exec(select(ApiSetting)).all()) == 1

    def test_missing_value_is_none(self, store):
        assert store.get("user-1", META_ACCESS_TOKEN) is None

    def test_users_are_isolated(self, store):
        store.set("user-1", META_ACCESS_TOKEN, "a")
        assert store.get("user-2", META_ACCESS_TOKEN) is None

    def test_delete_and_keys(self, store):
        store.set("user-1", META_ACCESS_TOKEN, "a")
        store.set("user-1", META_PIXEL_ID, "b")
        store.delete("user-1", META_ACCESS_TOKEN)
        assert store.keys("user-1") == [META_PIXEL_ID]

    def test_wrong_key_reads_as_unconfigured(self, session, store):
        store.set("user-1", META_ACCESS_TOKEN, "a")
        other = DatabaseSecretStore(session, key=Fernet.generate_key().decode())
        assert other.get("user-1", META_ACCESS_TOKEN) is None

    def test_identity_is_required(self, store):
        with pytest.raises(MissingIdentityError):
            store.get("", META_ACCESS_TOKEN)
        with pytest.raises(MissingIdentityError):
            store.set("  ", META_ACCESS_TOKEN, "a")

    def test_users_with_secret(self, session, store):
        store.set("user-1", META_ACCESS_TOKEN, "a")
        store.set("user-2", META_PIXEL_ID, "b")
        assert users_with_secret(session, META_ACCESS_TOKEN) == ["user-1"]


class TestKeyConfiguration:
    def test_no_key_configured(self, session, monkeypatch):
        monkeypatch.setattr(settings, "secret_encryption_key", None)
        with pytest.raises(SecretStoreError):
            DatabaseSecretStore(session)

    def test_invalid_key(self, session):
        with pytest.raises(SecretStoreError):
            DatabaseSecretStore(session, key="not-a-fernet-key")

    def test_key_from_settings(self, session, monkeypatch, key):
        monkeypatch.setattr(settings, "secret_encryption_key", key)
        DatabaseSecretStore(session).set("user-1", META_PIXEL_ID, "1")
        assert DatabaseSecretStore(session, key=key).get("user-1", META_PIXEL_ID) == "1"


def test_parse_account_ids():
    assert parse_account_ids(" 123, act_456 ,,123 ") == ["123", "act_456"]
    assert parse_account_ids(None) == []
