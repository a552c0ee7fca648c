from __future__ import annotations

import webbrowser
from types import SimpleNamespace

import pytest
import requests

import google_client
from domain.errors import AuthFailed, AuthFailureReason
from google_client import TokenStore, refresh_if_needed, revoke_token, run_consent_flow


class _FakeFlow:
    instances: list = []

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.kwargs: dict = {}
        _FakeFlow.instances.append(self)

    @classmethod
    def from_client_config(cls, config, scopes):
        return cls(getattr(cls, "next_error", None))

    @classmethod
    def from_client_secrets_file(cls, path, scopes):
        return cls(getattr(cls, "next_error", None))

    def run_local_server(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        return SimpleNamespace(valid=True, token="t")


@pytest.fixture
def fake_flow(monkeypatch: pytest.MonkeyPatch):
    _FakeFlow.instances = []
    _FakeFlow.next_error = None
    monkeypatch.setattr(google_client, "InstalledAppFlow", _FakeFlow)
    return _FakeFlow


def test_consent_flow_without_configuration() -> None:
    with pytest.raises(AuthFailed) as exc_info:
        run_consent_flow()

    assert exc_info.value.reason == AuthFailureReason.CONFIGURATION_INVALID


def test_consent_flow_with_missing_secrets_file(tmp_path) -> None:
    with pytest.raises(AuthFailed) as exc_info:
        run_consent_flow(client_secrets_file=str(tmp_path / "client_secret.json"))

    assert exc_info.value.reason == AuthFailureReason.CONFIGURATION_INVALID


def test_consent_flow_with_malformed_client_config() -> None:
    with pytest.raises(AuthFailed) as exc_info:
        run_consent_flow(client_config={"neither": {}})

    assert exc_info.value.reason == AuthFailureReason.CONFIGURATION_INVALID


def test_consent_flow_gives_local_server_a_grace_period(fake_flow) -> None:
    creds = run_consent_flow(client_config={"installed": {}}, timeout_seconds=30, open_browser=False)

    assert creds.valid
    [flow] = fake_flow.instances
    assert flow.kwargs["timeout_seconds"] == 30 + google_client.LOCAL_SERVER_GRACE_SECONDS
    assert flow.kwargs["open_browser"] is False


def test_consent_flow_without_a_browser_is_blocked(fake_flow) -> None:
    fake_flow.next_error = webbrowser.Error("could not locate runnable browser")

    with pytest.raises(AuthFailed) as exc_info:
        run_consent_flow(client_config={"installed": {}})

    assert exc_info.value.reason == AuthFailureReason.BLOCKED


def test_consent_flow_lets_other_errors_through(fake_flow) -> None:
    fake_flow.next_error = RuntimeError("access_denied")

    with pytest.raises(RuntimeError):
        run_consent_flow(client_secrets_file="client_secret.json")


def test_token_store_round_trip_and_clear(tmp_path) -> None:
    store = TokenStore(tmp_path / "token.json")
    assert store.load() is None

    store.save(SimpleNamespace(to_json=lambda: "{not a token"))
    assert store.load() is None

    store.clear()
    store.clear()
    assert not (tmp_path / "token.json").exists()


def test_refresh_if_needed() -> None:
    valid = SimpleNamespace(valid=True)
    unusable = SimpleNamespace(valid=False, expired=True, refresh_token=None)

    assert refresh_if_needed(None) is None
    assert refresh_if_needed(valid) is valid
    assert refresh_if_needed(unusable) is None


def test_revoke_token_posts_refresh_token(monkeypatch: pytest.MonkeyPatch) -> None:
    posted = []

    def _post(url, params=None, headers=None, timeout=None):
        posted.append((url, params))
        return SimpleNamespace(status_code=200)

    monkeypatch.setattr(google_client.requests, "post", _post)

    assert revoke_token(SimpleNamespace(refresh_token="r", token="a")) is True
    assert posted == [(google_client.REVOKE_URL, {"token": "r"})]


def test_revoke_token_is_best_effort(monkeypatch: pytest.MonkeyPatch) -> None:
    def _unreachable(*args, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(google_client.requests, "post", _unreachable)

    assert revoke_token(SimpleNamespace(refresh_token=None, token="a")) is False
    assert revoke_token(None) is False
    assert revoke_token(SimpleNamespace(refresh_token=None, token=None)) is False
