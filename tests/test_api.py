from fastapi.testclient import TestClient

from creative_strategist.auth import dependencies as auth_dependencies
from creative_strategist.db.deps import get_session
from creative_strategist.db.repositories.users import UsersRepository
from creative_strategist.main import app


def test_protected_routes_require_auth():
    app.dependency_overrides.clear()
    with TestClient(app) as client:
        resp = client.get("/api/avatars")
    assert resp.status_code == 401


def test_health_endpoints():
    with TestClient(app) as client:
        health = client.get("/health")
        db_health = client.get("/health/db")

    assert health.status_code == 200
    assert health.json() == {"ok": True}
    assert db_health.status_code == 200
    assert db_health.json() == {"db": "ok"}


def test_auth_creates_user_from_clerk_claims(db_session, monkeypatch):
    app.dependency_overrides.clear()

    def get_session_override():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_session] = get_session_override
    monkeypatch.setattr(
        auth_dependencies,
        "verify_clerk_token",
        lambda _token: {"sub": "user_clerk_new", "email": "new@example.com", "given_name": "Nia"},
    )

    try:
        with TestClient(app) as client:
            resp = client.get("/api/auth/user", headers={"Authorization": "Bearer test-token"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["id"] == "user_clerk_new"
        assert body["email"] == "new@example.com"
        assert body["firstName"] == "Nia"
        assert body["metaConnected"] is False

        assert UsersRepository(db_session).get("user_clerk_new") is not None
    finally:
        app.dependency_overrides.clear()


def test_meta_status_and_disconnect(api_client, db_session, auth_context):
    UsersRepository(db_session).update(
        auth_context.user_id,
        meta_access_token="token-123",
        meta_account_id="meta-user-1",
        meta_account_name="Jordan Ads",
    )

    status_resp = api_client.get("/api/auth/meta/status")
    assert status_resp.status_code == 200
    assert status_resp.json()["connected"] is True
    assert status_resp.json()["accountName"] == "Jordan Ads"

    disconnect = api_client.post("/api/auth/meta/disconnect")
    assert disconnect.status_code == 200
    assert disconnect.json() == {"success": True}

    after = api_client.get("/api/auth/meta/status").json()
    assert after["connected"] is False
    assert after["accountId"] is None
