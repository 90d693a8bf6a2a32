from creative_strategist.db.repositories.knowledge_base import KnowledgeBaseRepository
from creative_strategist.llm.client import LLMResponseError
from creative_strategist.services.insight_extraction import parse_insights

EXTRACTED = {
    "insights": [
        {
            "category": "Pain Point",
            "title": "Serums pill under makeup",
            "rawQuote": "Every serum I try pills under foundation",
            "summary": "Texture matters as much as results.",
        },
        {"category": "desire", "title": "Wants visible glow in a week", "quote": "I want to see a glow fast"},
        {"category": "wishlist", "title": "Unknown category"},
        {"category": "trigger", "title": ""},
    ]
}


def _create_source(api_client, **overrides):
    payload = {"platform": "reddit", "title": "r/SkincareAddiction thread", "url": "https://reddit.example/t/1"}
    payload.update(overrides)
    resp = api_client.post("/api/sources", json=payload)
    assert resp.status_code == 201
    return resp.json()


def test_parse_insights_normalizes_categories():
    rows = parse_insights(EXTRACTED, platform="reddit", source_url="https://reddit.example/t/1")
    assert [row["title"] for row in rows] == ["Serums pill under makeup", "Wants visible glow in a week"]
    assert rows[0]["category"].value == "pain-point"
    assert rows[1]["raw_quote"] == "I want to see a glow fast"
    assert all(row["source_url"] == "https://reddit.example/t/1" for row in rows)
    assert parse_insights({"insights": "nope"}, platform="reddit", source_url=None) == []


def test_parse_insights_flattens_structured_quote_and_summary():
    rows = parse_insights(
        {"insights": [{"category": "desire", "title": "Glass skin", "rawQuote": {"text": "so dewy"}, "summary": 7}]},
        platform="reddit",
        source_url=None,
    )
    assert rows[0]["raw_quote"] == '{"text": "so dewy"}'
    assert rows[0]["summary"] == "7"


def test_create_and_filter_insights(api_client):
    source = _create_source(api_client)
    created = api_client.post(
        "/api/insights",
        json={"category": "pain-point", "title": "Too many steps", "sourceId": source["id"], "sourcePlatform": "reddit"},
    )
    assert created.status_code == 201
    assert created.json()["status"] == "pending"
    assert created.json()["category"] == "pain-point"

    bulk = api_client.post(
        "/api/insights/bulk",
        json={
            "insights": [
                {"category": "desire", "title": "Glass skin"},
                {"category": "objection", "title": "Too pricey", "status": "approved"},
            ]
        },
    )
    assert bulk.status_code == 201
    assert bulk.json()["count"] == 2

    assert len(api_client.get("/api/insights").json()) == 3
    pain_points = api_client.get("/api/insights", params={"category": "pain-point"}).json()
    assert [i["title"] for i in pain_points] == ["Too many steps"]
    approved = api_client.get("/api/insights", params={"status": "approved"}).json()
    assert [i["title"] for i in approved] == ["Too pricey"]
    from_reddit = api_client.get("/api/insights", params={"platform": "reddit"}).json()
    assert [i["title"] for i in from_reddit] == ["Too many steps"]


def test_invalid_insight_filter_is_rejected(api_client):
    resp = api_client.get("/api/insights", params={"category": "wishlist"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid category: wishlist"


def test_insight_with_unknown_source_is_rejected(api_client):
    resp = api_client.post("/api/insights", json={"category": "desire", "title": "Glass skin", "sourceId": "missing"})
    assert resp.status_code == 404
    assert api_client.get("/api/insights").json() == []


def test_approve_and_reject_insight(api_client):
    insight = api_client.post("/api/insights", json={"category": "trigger", "title": "New year reset"}).json()

    approved = api_client.patch(f"/api/insights/{insight['id']}/approve")
    assert approved.json()["insight"]["status"] == "approved"
    rejected = api_client.patch(f"/api/insights/{insight['id']}/reject")
    assert rejected.json()["insight"]["status"] == "rejected"
    assert api_client.patch("/api/insights/missing/approve").status_code == 404


def test_sources_list_filters_by_platform(api_client):
    _create_source(api_client)
    _create_source(api_client, platform="tiktok", title="Comments on @glowgirl")

    assert len(api_client.get("/api/sources").json()) == 2
    tiktok = api_client.get("/api/sources", params={"platform": "tiktok"}).json()
    assert [s["title"] for s in tiktok] == ["Comments on @glowgirl"]
    assert tiktok[0]["insightsDiscovered"] == 0


def test_extract_insights_saves_valid_rows(api_client, db_session, auth_context, fake_llm):
    KnowledgeBaseRepository(db_session).create(auth_context.user_id, brand_voice="Warm and direct")
    source = _create_source(api_client)
    fake_llm.queue(EXTRACTED)

    resp = api_client.post(
        f"/api/sources/{source['id']}/extract-insights",
        json={"content": "Every serum I try pills under foundation..."},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["insightsExtracted"] == 2
    assert {i["sourceId"] for i in body["insights"]} == {source["id"]}
    assert body["source"]["insightsDiscovered"] == 2
    assert body["source"]["lastChecked"] is not None

    prompt = fake_llm.calls[0]["prompt"]
    assert prompt.startswith("## BRAND CONTEXT")
    assert "Brand voice: Warm and direct" in prompt
    assert "Platform: reddit" in prompt
    assert fake_llm.calls[0]["params"].temperature == 0.3

    fake_llm.queue({"insights": [{"category": "trigger", "title": "Wedding season"}]})
    again = api_client.post(f"/api/sources/{source['id']}/extract-insights", json={"content": "More text"})
    assert again.json()["source"]["insightsDiscovered"] == 3


def test_extract_insights_validation_and_failures(api_client, fake_llm):
    source = _create_source(api_client)

    empty = api_client.post(f"/api/sources/{source['id']}/extract-insights", json={"content": "   "})
    assert empty.status_code == 400
    missing = api_client.post("/api/sources/missing/extract-insights", json={"content": "text"})
    assert missing.status_code == 404

    fake_llm.queue(LLMResponseError("LLM returned invalid JSON"))
    failed = api_client.post(f"/api/sources/{source['id']}/extract-insights", json={"content": "text"})
    assert failed.status_code == 502
    assert fake_llm.calls[0]["prompt"].startswith("## SOURCE")
