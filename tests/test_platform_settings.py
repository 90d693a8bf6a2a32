def test_get_creates_defaults(api_client):
    resp = api_client.get("/api/platform-settings")
    assert resp.status_code == 200
    body = resp.json()
    assert body["defaultDateRange"] == "last_30_days"
    assert body["benchmarkRoas"] == 2.0
    assert body["benchmarkCtr"] == 1.0
    assert body["benchmarkCpm"] == 15.0
    assert body["defaultAdAccountId"] is None
    assert body["notificationsEnabled"] is True


def test_patch_updates_selected_fields(api_client):
    resp = api_client.patch(
        "/api/platform-settings",
        json={"defaultAdAccountId": "act_42", "defaultDateRange": "last_7_days", "benchmarkRoas": 3.5},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["defaultAdAccountId"] == "act_42"
    assert body["defaultDateRange"] == "last_7_days"
    assert body["benchmarkRoas"] == 3.5
    assert body["benchmarkCpm"] == 15.0

    cleared = api_client.patch("/api/platform-settings", json={"defaultAdAccountId": None, "llmModel": "claude-3-5-sonnet"})
    assert cleared.json()["defaultAdAccountId"] is None
    assert cleared.json()["llmModel"] == "claude-3-5-sonnet"
    assert cleared.json()["defaultDateRange"] == "last_7_days"


def test_patch_rejects_unknown_date_range(api_client):
    resp = api_client.patch("/api/platform-settings", json={"defaultDateRange": "yesterday"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid defaultDateRange: yesterday"


def test_patch_ignores_null_for_required_fields(api_client):
    resp = api_client.patch("/api/platform-settings", json={"benchmarkRoas": None, "notificationsEnabled": False})
    assert resp.status_code == 200
    assert resp.json()["benchmarkRoas"] == 2.0
    assert resp.json()["notificationsEnabled"] is False


def test_negative_benchmark_fails_validation(api_client):
    resp = api_client.patch("/api/platform-settings", json={"benchmarkCtr": -1})
    assert resp.status_code == 422
