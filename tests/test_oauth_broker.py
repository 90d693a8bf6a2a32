import base64
import json
from datetime import timedelta
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from creative_strategist.db.models import utcnow
from creative_strategist.db.repositories.oauth_link_sessions import OAuthLinkSessionsRepository
from creative_strategist.db.repositories.users import UsersRepository
from creative_strategist.main import app
from creative_strategist.routers.oauth_broker import get_oauth_broker
from creative_strategist.services import meta_oauth, oauth_broker
from creative_strategist.services.meta_oauth import MetaOAuthClient, MetaOAuthError, MetaTokenResult
from creative_strategist.services.oauth_broker import (
    CallbackOutcome,
    OAuthBroker,
    OAuthBrokerError,
    decode_state,
    encode_state,
    render_callback_page,
    resolve_origin,
)

ORIGIN = "https://dashboard.example"
BASE_URL = "http://testserver/"


class FakeOAuthClient:
    def __init__(self, exchange_error=None):
        self.exchange_error = exchange_error
        self.states = []
        self.exchanges = []

    def build_authorization_url(self, *, redirect_uri, state):
        self.states.append(state)
        return f"https://meta.test/dialog/oauth?state={state}&redirect_uri={redirect_uri}"

    def exchange_code(self, *, code, redirect_uri):
        self.exchanges.append((code, redirect_uri))
        if self.exchange_error:
            raise self.exchange_error
        return MetaTokenResult(access_token="meta-token", meta_user_id="meta-user-1", meta_user_name="Jordan Ads")


def _broker(session, client, clock=utcnow):
    return OAuthBroker(session, oauth_client_factory=lambda: client, clock=clock)


def test_state_round_trip_and_tamper_detection():
    state = encode_state("link-1", "nonce-1", secret="s3cret")
    assert decode_state(state, secret="s3cret") == ("link-1", "nonce-1")

    with pytest.raises(OAuthBrokerError):
        decode_state(state, secret="other-secret")
    with pytest.raises(OAuthBrokerError):
        decode_state("not-base64-json", secret="s3cret")


def _state_with_signature(signature):
    data = json.dumps({"linkSessionId": "link-1", "nonce": "nonce-1"})
    envelope = json.dumps({"data": data, "signature": signature})
    return base64.urlsafe_b64encode(envelope.encode("utf-8")).decode("ascii")


def test_state_with_non_ascii_signature_is_rejected():
    with pytest.raises(OAuthBrokerError, match="Invalid or corrupted state parameter"):
        decode_state(_state_with_signature("\u00e9" * 64), secret="s3cret")


def test_state_requires_secret(monkeypatch):
    monkeypatch.setattr(oauth_broker.settings, "OAUTH_BROKER_SECRET", None)
    with pytest.raises(OAuthBrokerError) as excinfo:
        encode_state("link-1", "nonce-1")
    assert excinfo.value.status_code == 503


def test_resolve_origin_prefers_origin_header():
    assert resolve_origin("https://dashboard.example/", None) == "https://dashboard.example"
    assert resolve_origin(None, "https://dashboard.example/settings?tab=meta") == "https://dashboard.example"
    assert resolve_origin(None, "not a url") is None
    assert resolve_origin(None, None) is None


def test_link_flow_completes_and_stores_token(db_session, auth_context):
    client = FakeOAuthClient()
    broker = _broker(db_session, client)

    started = broker.start(user_id=auth_context.user_id, origin=ORIGIN, request_base_url=BASE_URL)
    assert started["authUrl"].startswith("https://meta.test/dialog/oauth")
    assert isinstance(started["expiresAt"], int)

    outcome = broker.handle_callback(code="abc", state=client.states[0], error=None, request_base_url=BASE_URL)

    assert outcome.success
    assert client.exchanges == [("abc", "http://testserver/api/oauth-broker/meta/callback")]
    assert broker.status(started["linkSessionId"])["completed"] is True

    user = UsersRepository(db_session).get(auth_context.user_id)
    assert user.meta_access_token == "meta-token"
    assert user.meta_account_id == "meta-user-1"
    assert user.meta_account_name == "Jordan Ads"
    assert user.meta_connected_at is not None


def test_expired_link_session_is_removed(db_session, auth_context):
    started_at = utcnow()
    client = FakeOAuthClient()
    started = _broker(db_session, client, clock=lambda: started_at).start(
        user_id=auth_context.user_id, origin=ORIGIN, request_base_url=BASE_URL
    )

    later = _broker(db_session, client, clock=lambda: started_at + timedelta(hours=1))
    with pytest.raises(OAuthBrokerError) as excinfo:
        later.status(started["linkSessionId"])

    assert excinfo.value.status_code == 410
    assert OAuthLinkSessionsRepository(db_session).get(started["linkSessionId"]) is None


def test_callback_rejects_bad_input(db_session, auth_context):
    client = FakeOAuthClient()
    broker = _broker(db_session, client)
    started = broker.start(user_id=auth_context.user_id, origin=ORIGIN, request_base_url=BASE_URL)

    denied = broker.handle_callback(code=None, state=None, error="access_denied", request_base_url=BASE_URL)
    assert denied.error == "OAuth error: access_denied"

    missing = broker.handle_callback(code="abc", state=None, error=None, request_base_url=BASE_URL)
    assert missing.error == "Missing OAuth parameters"

    forged = encode_state(started["linkSessionId"], "wrong-nonce")
    mismatch = broker.handle_callback(code="abc", state=forged, error=None, request_base_url=BASE_URL)
    assert mismatch.error == "Invalid session nonce"

    unknown = encode_state("no-such-session", "nonce")
    assert broker.handle_callback(code="abc", state=unknown, error=None, request_base_url=BASE_URL).error == (
        "Link session not found or expired"
    )
    assert client.exchanges == []


def test_exchange_failure_is_recorded_on_link_session(db_session, auth_context):
    client = FakeOAuthClient(exchange_error=MetaOAuthError("Meta OAuth failed: Invalid verification code"))
    broker = _broker(db_session, client)
    started = broker.start(user_id=auth_context.user_id, origin=ORIGIN, request_base_url=BASE_URL)

    outcome = broker.handle_callback(code="bad", state=client.states[0], error=None, request_base_url=BASE_URL)

    assert not outcome.success
    assert outcome.error == "OAuth callback failed"
    status = broker.status(started["linkSessionId"])
    assert status["completed"] is False
    assert status["error"] == "Meta OAuth failed: Invalid verification code"
    assert UsersRepository(db_session).get(auth_context.user_id).meta_access_token is None


def test_callback_page_escapes_error_text():
    page = render_callback_page(CallbackOutcome(None, "<script>alert(1)</script>"))
    assert "Connection Failed" in page
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in page
    assert "<script>alert(1)</script>" not in page
    assert '"*"' in page


def test_authorization_url_requests_popup():
    client = MetaOAuthClient(app_id="app-1", app_secret="secret", api_version="v21.0", scopes=["ads_read"])
    url = client.build_authorization_url(redirect_uri="https://api.example/callback", state="abc")
    parts = urlsplit(url)
    query = parse_qs(parts.query)
    assert parts.path == "/v21.0/dialog/oauth"
    assert query["client_id"] == ["app-1"]
    assert query["display"] == ["popup"]
    assert query["scope"] == ["ads_read"]
    assert query["state"] == ["abc"]


def test_exchange_code_fetches_profile(monkeypatch):
    def fake_get(url, params=None, timeout=None):
        request = httpx.Request("GET", url)
        if url.endswith("/oauth/access_token"):
            assert params["code"] == "abc"
            return httpx.Response(200, json={"access_token": "long-token"}, request=request)
        assert params["access_token"] == "long-token"
        return httpx.Response(200, json={"id": "meta-9", "name": "Jordan"}, request=request)

    monkeypatch.setattr(meta_oauth.httpx, "get", fake_get)
    client = MetaOAuthClient(app_id="app-1", app_secret="secret")

    token = client.exchange_code(code="abc", redirect_uri="https://api.example/callback")

    assert token.access_token == "long-token"
    assert token.meta_user_id == "meta-9"
    assert token.meta_user_name == "Jordan"


def test_exchange_code_surfaces_graph_error(monkeypatch):
    def fake_get(url, params=None, timeout=None):
        return httpx.Response(
            400,
            json={"error": {"message": "Invalid verification code format."}},
            request=httpx.Request("GET", url),
        )

    monkeypatch.setattr(meta_oauth.httpx, "get", fake_get)
    client = MetaOAuthClient(app_id="app-1", app_secret="secret")

    with pytest.raises(MetaOAuthError, match="Invalid verification code format."):
        client.exchange_code(code="abc", redirect_uri="https://api.example/callback")


def test_start_requires_origin(api_client):
    resp = api_client.get("/api/oauth-broker/meta/start")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Unable to determine request origin"


def test_start_builds_meta_dialog_url(api_client):
    resp = api_client.get("/api/oauth-broker/meta/start", headers={"Origin": ORIGIN})
    assert resp.status_code == 200
    body = resp.json()
    query = parse_qs(urlsplit(body["authUrl"]).query)
    assert query["client_id"] == ["test-app-id"]
    assert query["display"] == ["popup"]
    assert query["redirect_uri"] == ["http://testserver/api/oauth-broker/meta/callback"]

    status_resp = api_client.get(f"/api/oauth-broker/meta/status/{body['linkSessionId']}")
    assert status_resp.status_code == 200
    assert status_resp.json()["completed"] is False


def test_status_unknown_session(api_client):
    resp = api_client.get("/api/oauth-broker/meta/status/does-not-exist")
    assert resp.status_code == 404


def test_callback_without_params_renders_failure(api_client):
    resp = api_client.get("/api/oauth-broker/meta/callback")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert "Missing OAuth parameters" in resp.text


def test_callback_with_non_ascii_signature_renders_failure(api_client):
    resp = api_client.get(
        "/api/oauth-broker/meta/callback", params={"code": "abc", "state": _state_with_signature("\u00e9" * 64)}
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert "Invalid or corrupted state parameter" in resp.text


def test_popup_flow_over_http(api_client, db_session):
    client = FakeOAuthClient()
    app.dependency_overrides[get_oauth_broker] = lambda: _broker(db_session, client)

    started = api_client.get("/api/oauth-broker/meta/start", headers={"Referer": f"{ORIGIN}/settings"}).json()
    page = api_client.get("/api/oauth-broker/meta/callback", params={"code": "abc", "state": client.states[0]})

    assert "Connection Successful" in page.text
    assert json.dumps(ORIGIN) in page.text
    assert api_client.get(f"/api/oauth-broker/meta/status/{started['linkSessionId']}").json()["completed"] is True
    assert api_client.get("/api/auth/meta/status").json()["connected"] is True
