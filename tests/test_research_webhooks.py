import json

import httpx
import pytest

from creative_strategist.db.repositories.knowledge_base import KnowledgeBaseRepository
from creative_strategist.main import app
from creative_strategist.routers import concepts as concepts_router
from creative_strategist.services import research_webhooks
from creative_strategist.services.research_webhooks import (
    ResearchWebhookClient,
    ResearchWebhookConfigError,
    ResearchWebhookError,
    normalize_search_response,
)


class FakeDiscoveryClient:
    def __init__(self):
        self.calls = []

    def discover(self, *, user_id, research_type, knowledge_base):
        self.calls.append({"user_id": user_id, "research_type": research_type, "knowledge_base": knowledge_base})
        return {"success": True, "message": "Queued"}


def test_normalize_workflow_list_unwraps_json_items():
    result = normalize_search_response(
        {
            "status": "success",
            "message": "Found 2",
            "data": [
                {"json": {"title": "Ad", "url": "https://a.example", "filters": {"platform": "TikTok", "is_active": True}}},
                "junk",
            ],
        },
        query="serum",
    )
    assert result.message == "Found 2"
    assert len(result.rows) == 1
    row = result.rows[0]
    assert row["filter"]["platform"] == "tiktok"
    assert row["statistics"]["isActive"] is True
    assert row["url"] == "https://a.example"


def test_normalize_bare_list_defaults_platform_and_url():
    result = normalize_search_response([{"title": "No url"}], query="serum")
    assert result.rows[0]["url"] == "serum"
    assert result.rows[0]["filter"]["platform"] == "website"
    assert result.message == "Search completed!"


def test_normalize_single_lookup():
    result = normalize_search_response(
        {"status": "success", "data": {"title": "Page", "platform": "Instagram"}}, query="https://ig.example/p/1"
    )
    assert result.single_lookup is True
    assert result.rows[0]["filter"]["platform"] == "instagram"
    assert result.rows[0]["url"] == "https://ig.example/p/1"


def test_normalize_flat_concepts_list():
    result = normalize_search_response(
        {"concepts": [{"title": "Flat", "conceptType": "TikTok", "views": 10, "brandName": "GlowLabs"}]},
        query="serum",
    )
    row = result.rows[0]
    assert row["filter"]["platform"] == "tiktok"
    assert row["owner"] == "GlowLabs"
    assert row["statistics"]["views"] == 10


def test_normalize_coerces_malformed_item_fields():
    result = normalize_search_response(
        [{"title": {"text": "nested"}, "statistics": ["not", "a", "dict"], "owner": 12}],
        query="serum",
    )
    row = result.rows[0]
    assert row["title"] == ""
    assert row["owner"] == "12"
    assert row["statistics"] == {"originalCreatedAt": None, "isActive": None}


def test_normalize_passthrough_keeps_reported_fields():
    result = normalize_search_response({"success": False, "message": "Rate limited", "count": 3}, query="q")
    assert result.rows == []
    assert result.success is False
    assert result.message == "Rate limited"
    assert result.reported_count == 3

    empty = normalize_search_response({"status": "success", "data": []}, query="q")
    assert empty.rows == []
    assert empty.success is True
    assert empty.message == "Search request processed."


def test_client_requires_api_key(monkeypatch):
    monkeypatch.setattr(research_webhooks.settings, "N8N_API_KEY", None)
    with pytest.raises(ResearchWebhookConfigError):
        ResearchWebhookClient()
    with pytest.raises(ResearchWebhookConfigError):
        ResearchWebhookClient(api_key="")


def test_search_accepts_non_json_reply(monkeypatch):
    captured = {}

    def fake_get(url, params=None, headers=None, timeout=None):
        captured.update(url=url, params=params, headers=headers)
        return httpx.Response(200, text="Workflow was started", request=httpx.Request("GET", url))

    monkeypatch.setattr(research_webhooks.httpx, "get", fake_get)
    client = ResearchWebhookClient(base_url="https://n8n.test/webhook/", api_key="n8n-key")

    result = client.search(user_id="user-1", query="serum")

    assert result.rows == []
    assert result.message == "Search request sent successfully."
    assert captured["url"] == "https://n8n.test/webhook/search"
    assert captured["params"]["type"] == "general"
    assert captured["params"]["userId"] == "user-1"
    assert captured["headers"] == {"Authorization": "Bearer n8n-key"}


def test_search_connection_error_is_wrapped(monkeypatch):
    def fake_get(url, **_kwargs):
        raise httpx.ConnectError("refused", request=httpx.Request("GET", url))

    monkeypatch.setattr(research_webhooks.httpx, "get", fake_get)
    client = ResearchWebhookClient(api_key="n8n-key")

    with pytest.raises(ResearchWebhookError):
        client.search(user_id="user-1", query="serum")


def test_discover_posts_knowledge_base(monkeypatch):
    captured = {}

    def fake_post(url, content=None, headers=None, timeout=None):
        captured.update(url=url, body=json.loads(content), headers=headers)
        return httpx.Response(200, json={"status": "success", "message": "Research queued"})

    monkeypatch.setattr(research_webhooks.httpx, "post", fake_post)
    client = ResearchWebhookClient(base_url="https://n8n.test/webhook", api_key="n8n-key")

    result = client.discover(user_id="user-1", research_type="creative", knowledge_base={"brandVoice": "Warm"})

    assert result == {"success": True, "message": "Research queued"}
    assert captured["url"] == "https://n8n.test/webhook/recent-research"
    assert captured["body"]["type"] == "creative"
    assert captured["body"]["knowledgeBase"] == {"brandVoice": "Warm"}
    assert captured["headers"]["Content-Type"] == "application/json"


def test_discover_non_json_reply_reports_initiation(monkeypatch):
    monkeypatch.setattr(research_webhooks.httpx, "post", lambda url, **_kwargs: httpx.Response(202, text="Accepted"))
    client = ResearchWebhookClient(api_key="n8n-key")

    result = client.discover(user_id="user-1", research_type="customer", knowledge_base={})
    assert result == {"success": True, "message": "Customer research discovery initiated."}

    with pytest.raises(ValueError):
        client.discover(user_id="user-1", research_type="competitor", knowledge_base={})


def test_discover_endpoint_requires_knowledge_base(api_client):
    app.dependency_overrides[concepts_router.get_research_webhook_client] = FakeDiscoveryClient
    resp = api_client.post("/api/research/discover")
    assert resp.status_code == 400


def test_discover_endpoints_use_stored_or_supplied_knowledge_base(api_client, db_session, auth_context):
    KnowledgeBaseRepository(db_session).create(auth_context.user_id, brand_voice="Warm", completion_percentage=17)
    client = FakeDiscoveryClient()
    app.dependency_overrides[concepts_router.get_research_webhook_client] = lambda: client

    creative = api_client.post("/api/research/discover")
    assert creative.status_code == 200
    assert creative.json() == {"success": True, "message": "Queued"}
    assert client.calls[0]["research_type"] == "creative"
    assert client.calls[0]["knowledge_base"]["brandVoice"] == "Warm"

    customer = api_client.post("/api/customer-research/discover", json={"knowledgeBase": {"brandVoice": "Bold"}})
    assert customer.status_code == 200
    assert client.calls[1]["research_type"] == "customer"
    assert client.calls[1]["knowledge_base"] == {"brandVoice": "Bold"}
