from creative_strategist.main import app
from creative_strategist.routers import concepts as concepts_router
from creative_strategist.services import research_webhooks
from creative_strategist.services.concepts import engagement_rate, engagement_score
from creative_strategist.services.research_webhooks import ResearchWebhookError, normalize_search_response
from creative_strategist.services.scrape_creators import ScrapedConcept


class FakeSearchClient:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.calls = []

    def search(self, *, user_id, query, search_type=None):
        self.calls.append({"user_id": user_id, "query": query, "search_type": search_type})
        if self.error:
            raise self.error
        return normalize_search_response(self.payload, query=query)


class FakeScrapeClient:
    def __init__(self, results):
        self.results = results
        self.calls = []

    def fetch_concepts(self, keywords, niche=None):
        self.calls.append((keywords, niche))
        return self.results


def test_engagement_rate_requires_views():
    assert engagement_rate({"views": 1000, "likes": 50, "replies": 10, "shares": 40}) == 0.1
    assert engagement_rate({"views": 1000, "likes": 50, "comments": 10}) == 0.06
    assert engagement_rate({"views": 0, "likes": 50}) is None
    assert engagement_rate({}) is None


def test_engagement_score_prefers_stored_value():
    assert engagement_score({"engagementScore": 42.5, "likes": 1}) == 42.5
    assert engagement_score({"likes": 20000, "views": 500000, "shares": 3000}) == 10
    assert engagement_score({"likes": 5_000_000, "views": 1}) == 100
    assert engagement_score({"shares": 10}) is None


def test_create_and_update_concept(api_client):
    created = api_client.post(
        "/api/concepts",
        json={
            "title": "Before/after reveal",
            "platform": "TikTok",
            "postUrl": "https://tiktok.example/v/1",
            "brandName": "GlowLabs",
            "hooks": ["Wait for it"],
            "likes": 100,
            "views": 1000,
            "comments": 12,
        },
    )
    assert created.status_code == 201
    concept = created.json()
    assert concept["platform"] == "tiktok"
    assert concept["comments"] == 12
    assert concept["brandName"] == "GlowLabs"
    assert concept["status"] == "pending"
    assert concept["engagementRate"] == 0.112

    updated = api_client.patch(f"/api/concepts/{concept['id']}", json={"views": 2000, "title": "Reveal v2"})
    assert updated.status_code == 200
    body = updated.json()
    assert body["title"] == "Reveal v2"
    assert body["views"] == 2000
    assert body["likes"] == 100
    assert body["comments"] == 12

    assert api_client.get(f"/api/concepts/{concept['id']}").json()["title"] == "Reveal v2"
    assert api_client.get("/api/concepts/unknown").status_code == 404


def test_approve_reject_and_clear_concepts(api_client):
    concept_id = api_client.post("/api/concepts", json={"title": "Hook test"}).json()["id"]

    approved = api_client.patch(f"/api/concepts/{concept_id}/approve")
    assert approved.json()["concept"]["status"] == "approved"
    rejected = api_client.patch(f"/api/concepts/{concept_id}/reject")
    assert rejected.json()["concept"]["status"] == "rejected"
    assert api_client.patch("/api/concepts/unknown/approve").status_code == 404

    cleared = api_client.delete("/api/concepts")
    assert cleared.json() == {"success": True, "deletedCount": 1}
    assert api_client.get("/api/concepts").json() == []


def test_search_requires_query(api_client):
    app.dependency_overrides[concepts_router.get_research_webhook_client] = lambda: FakeSearchClient({})
    resp = api_client.post("/api/concepts/search", json={"query": "   "})
    assert resp.status_code == 400


def test_search_saves_workflow_results(api_client):
    payload = {
        "status": "success",
        "data": [
            {
                "json": {
                    "title": "Serum ad",
                    "url": "https://facebook.example/ads/1",
                    "statistics": {"likes": 10, "views": 100},
                    "filters": {"platform": "Facebook", "format": "video", "is_active": True},
                    "created_at": "2024-05-01",
                }
            },
            {"title": "Reel", "filters": {"platform": "instagram"}},
        ],
    }
    client = FakeSearchClient(payload)
    app.dependency_overrides[concepts_router.get_research_webhook_client] = lambda: client

    resp = api_client.post("/api/concepts/search", json={"query": "vitamin c serum", "type": "ads"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 2
    assert "urlSearchResult" not in body
    assert {c["platform"] for c in body["concepts"]} == {"facebook", "instagram"}
    assert client.calls[0]["search_type"] == "ads"
    assert len(api_client.get("/api/concepts").json()) == 2


def test_search_keeps_items_with_malformed_statistics(api_client):
    payload = {
        "status": "success",
        "data": [{"json": {"title": "good"}}, {"json": {"title": "odd", "statistics": ["not", "a", "dict"]}}],
    }
    app.dependency_overrides[concepts_router.get_research_webhook_client] = lambda: FakeSearchClient(payload)

    resp = api_client.post("/api/concepts/search", json={"query": "serum"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 2
    assert {c["title"] for c in body["concepts"]} == {"good", "odd"}


def test_search_skips_items_that_fail_to_parse(api_client, monkeypatch):
    build_row = research_webhooks._workflow_row

    def flaky_row(data, query, **kwargs):
        if data.get("title") == "broken":
            raise ValueError("unexpected item shape")
        return build_row(data, query, **kwargs)

    monkeypatch.setattr(research_webhooks, "_workflow_row", flaky_row)
    payload = {"status": "success", "data": [{"json": {"title": "good"}}, {"json": {"title": "broken"}}]}
    app.dependency_overrides[concepts_router.get_research_webhook_client] = lambda: FakeSearchClient(payload)

    resp = api_client.post("/api/concepts/search", json={"query": "serum"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 1
    assert body["concepts"][0]["title"] == "good"
    assert body["urlSearchResult"]["title"] == "good"


def test_search_single_url_lookup_returns_url_result(api_client):
    payload = {"status": "success", "data": {"title": "Landing page", "filters": {"platform": "Website"}}}
    app.dependency_overrides[concepts_router.get_research_webhook_client] = lambda: FakeSearchClient(payload)

    resp = api_client.post("/api/concepts/search", json={"query": "https://glowlabs.example"})
    body = resp.json()
    assert body["count"] == 1
    assert body["urlSearchResult"]["postUrl"] == "https://glowlabs.example"
    assert body["urlSearchResult"]["platform"] == "website"


def test_search_passthrough_and_upstream_failure(api_client):
    passthrough = FakeSearchClient({"success": False, "message": "Nothing found", "count": 0})
    app.dependency_overrides[concepts_router.get_research_webhook_client] = lambda: passthrough
    resp = api_client.post("/api/concepts/search", json={"query": "obscure"})
    assert resp.json() == {"success": False, "message": "Nothing found", "count": 0, "concepts": []}

    failing = FakeSearchClient(error=ResearchWebhookError("Failed to connect to search service. Please try again."))
    app.dependency_overrides[concepts_router.get_research_webhook_client] = lambda: failing
    assert api_client.post("/api/concepts/search", json={"query": "serum"}).status_code == 502


def test_search_without_webhook_key_is_unavailable(api_client, monkeypatch):
    monkeypatch.setattr(research_webhooks.settings, "N8N_API_KEY", None)
    resp = api_client.post("/api/concepts/search", json={"query": "serum"})
    assert resp.status_code == 503


def test_scrape_saves_discovered_concepts(api_client):
    scraped = {
        "facebook": [],
        "instagram": [],
        "tiktok": [
            ScrapedConcept(
                platform="tiktok",
                title="Morning routine",
                description="Stop wasting money on serums. Link in bio",
                hook="Stop wasting money on serums",
                visual_style="short-form video",
                cta="Link in bio",
                engagement_score=12.5,
                post_url="https://tiktok.example/v/9",
                raw={"likes": 100, "views": 1000, "author": "glowgirl"},
            )
        ],
    }
    client = FakeScrapeClient(scraped)
    app.dependency_overrides[concepts_router.get_scrape_creators_client] = lambda: client

    resp = api_client.post("/api/concepts/scrape", json={"keywords": ["serum", " "], "niche": "skincare"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 1
    assert body["byPlatform"] == {"facebook": 0, "instagram": 0, "tiktok": 1}
    concept = body["concepts"][0]
    assert concept["status"] == "discovered"
    assert concept["hooks"] == ["Stop wasting money on serums"]
    assert concept["engagementScore"] == 12.5
    assert concept["brandName"] == "glowgirl"
    assert client.calls == [(["serum"], "skincare")]


def test_scrape_requires_keywords(api_client):
    app.dependency_overrides[concepts_router.get_scrape_creators_client] = lambda: FakeScrapeClient({})
    assert api_client.post("/api/concepts/scrape", json={"keywords": []}).status_code == 400
