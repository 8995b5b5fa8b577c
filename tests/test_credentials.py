"""Tests for the Fernet-backed CredentialStore."""

import pytest
from cryptography.fernet import Fernet

from jira_notifier.credentials import CredentialStore


@pytest.fixture()
def store() -> CredentialStore:
    return CredentialStore()


def test_put_and_get(store: CredentialStore):
    store.put("jira-prod", "s3cr3t")
    assert store.get_secret("jira-prod") == "s3cr3t"
    assert "jira-prod" in store


def test_unknown_id_returns_none(store: CredentialStore):
    assert store.get_secret("missing") is None


def test_secret_encrypted_at_rest(store: CredentialStore):
    store.put("jira-prod", "s3cr3t")
    stored = store._secrets["jira-prod"]
    assert stored != "s3cr3t"
    assert "s3cr3t" not in stored


@pytest.mark.parametrize("credentials_id, secret", [("", "x"), ("id", "")])
def test_rejects_empty_values(store: CredentialStore, credentials_id, secret):
    with pytest.raises(ValueError):
        store.put(credentials_id, secret)


def test_delete(store: CredentialStore):
    store.put("a", "1")
    assert store.delete("a") is True
    assert store.delete("a") is False
    assert store.get_secret("a") is None


def test_from_mapping_with_fixed_key():
    key = Fernet.generate_key()
    store = CredentialStore.from_mapping({"b": "2", "a": "1"}, encryption_key=key)
    assert store.ids() == ["a", "b"]
    assert store.get_secret("b") == "2"


def test_undecryptable_secret_returns_none(store: CredentialStore, caplog):
    store.put("a", "1")
    store._fernet = Fernet(Fernet.generate_key())
    with caplog.at_level("WARNING"):
        assert store.get_secret("a") is None
    assert "could not be decrypted" in caplog.text
