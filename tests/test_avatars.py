from creative_strategist.db.enums import (
    AvatarPriorityEnum,
    ConceptStatusEnum,
    InsightCategoryEnum,
    RecommendationSourceEnum,
    ReviewStatusEnum,
)
from creative_strategist.db.models import Avatar, Concept, Insight
from creative_strategist.db.repositories.avatars import AvatarsRepository
from creative_strategist.db.repositories.concepts import ConceptsRepository
from creative_strategist.db.repositories.research import InsightsRepository
from creative_strategist.llm.client import LLMClientConfigError, LLMResponseError
from creative_strategist.services.avatar_generation import (
    build_avatar_generation_prompt,
    normalize_confidence,
    parse_avatars,
)
from creative_strategist.services.concept_matching import FALLBACK_RELEVANCE, select_best_concepts

GENERATED_AVATARS = {
    "avatars": [
        {
            "name": "Overwhelmed Olivia",
            "ageRange": "30-40",
            "demographics": "Working parent, suburban",
            "psychographics": "Short on time and wary of hype.",
            "painPoints": ["No time for a 10-step routine"],
            "desires": ["Visible results fast"],
            "objections": ["Tried everything already"],
            "triggers": ["Before/after photos"],
            "hooks": ["Two minutes. Real results."],
            "priority": "high",
            "confidence": 85,
        }
    ]
}


def _seed_insights(session, user_id):
    return InsightsRepository(session).bulk_create(
        user_id,
        [
            {
                "category": InsightCategoryEnum.pain_point,
                "title": "Routine takes too long",
                "raw_quote": "I don't have 30 minutes every night",
                "source_platform": "reddit",
                "status": ReviewStatusEnum.approved,
            },
            {
                "category": InsightCategoryEnum.desire,
                "title": "Wants quick wins",
                "status": ReviewStatusEnum.pending,
            },
            {
                "category": InsightCategoryEnum.objection,
                "title": "Rejected insight",
                "status": ReviewStatusEnum.rejected,
            },
        ],
    )


def test_normalize_confidence_maps_percentages_to_fraction():
    assert normalize_confidence(85) == 0.85
    assert normalize_confidence(0.6) == 0.6
    assert normalize_confidence(150) == 1.0
    assert normalize_confidence(None) == 0.75
    assert normalize_confidence("not a number") == 0.75


def test_parse_avatars_drops_nameless_and_defaults_priority():
    rows = parse_avatars(
        {
            "avatars": [
                {"name": "  Bargain Ben ", "priority": "HIGH", "hooks": ["Save big", None, " "]},
                {"name": "", "priority": "low"},
                {"name": "Curious Cara", "priority": "urgent", "confidence": "90"},
                "not an avatar",
            ]
        }
    )
    assert [row["name"] for row in rows] == ["Bargain Ben", "Curious Cara"]
    assert rows[0]["priority"] == AvatarPriorityEnum.high
    assert rows[0]["hooks"] == ["Save big"]
    assert rows[0]["data_confidence"] == 0.75
    assert rows[1]["priority"] == AvatarPriorityEnum.medium
    assert rows[1]["data_confidence"] == 0.9
    assert all(row["recommendation_source"] == RecommendationSourceEnum.generated for row in rows)
    assert parse_avatars({"avatars": "nope"}) == []


def test_parse_avatars_flattens_structured_persona_fields():
    rows = parse_avatars(
        {"avatars": [{"name": "Ana", "psychographics": {"values": ["x"]}, "ageRange": 25, "demographics": None}]}
    )
    assert rows[0]["psychographics"] == '{"values": ["x"]}'
    assert rows[0]["age_range"] == "25"
    assert rows[0]["demographics"] == ""


def test_generation_prompt_skips_rejected_insights(db_session, auth_context):
    insights = _seed_insights(db_session, auth_context.user_id)
    prompt = build_avatar_generation_prompt(insights, "## BRAND CONTEXT")
    assert prompt.startswith("## BRAND CONTEXT")
    assert "### Pain Points (1 insights)" in prompt
    assert "### Objections (0 insights)" in prompt
    assert "Rejected insight" not in prompt


def test_generation_prompt_caps_each_category_but_reports_full_counts():
    insights = [Insight(category=InsightCategoryEnum.pain_point, title=f"Pain {i:02d}") for i in range(16)]
    insights += [Insight(category=InsightCategoryEnum.objection, title=f"Objection {i:02d}") for i in range(11)]

    prompt = build_avatar_generation_prompt(insights)

    assert "### Pain Points (16 insights)" in prompt
    assert "### Objections (11 insights)" in prompt
    assert prompt.count("- **Pain ") == 15
    assert prompt.count("- **Objection ") == 10
    assert "Pain 14" in prompt
    assert "Pain 15" not in prompt
    assert "Objection 10" not in prompt


def test_generate_avatars_requires_insights(api_client):
    resp = api_client.post("/api/avatars/generate")
    assert resp.status_code == 400


def test_generate_avatars_persists_generated_rows(api_client, db_session, auth_context, fake_llm):
    _seed_insights(db_session, auth_context.user_id)
    fake_llm.queue(GENERATED_AVATARS)

    resp = api_client.post("/api/avatars/generate", json={"model": "gpt-4o-mini"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["avatarsGenerated"] == 1
    avatar = body["avatars"][0]
    assert avatar["name"] == "Overwhelmed Olivia"
    assert avatar["dataConfidence"] == 0.85
    assert avatar["priority"] == "high"
    assert avatar["recommendationSource"] == "generated"
    assert avatar["status"] == "pending"
    assert body["summary"] == {
        "totalGenerated": 1,
        "primarySegments": ["Overwhelmed Olivia"],
        "confidenceAverage": 0.85,
    }
    assert fake_llm.calls[0]["params"].model == "gpt-4o-mini"

    listed = api_client.get("/api/avatars").json()
    assert [a["name"] for a in listed] == ["Overwhelmed Olivia"]


def test_generate_avatars_maps_llm_failures(api_client, db_session, auth_context, fake_llm):
    _seed_insights(db_session, auth_context.user_id)

    fake_llm.queue(LLMResponseError("LLM returned invalid JSON"))
    assert api_client.post("/api/avatars/generate").status_code == 502

    fake_llm.queue(LLMClientConfigError("OPENAI_API_KEY not configured"))
    resp = api_client.post("/api/avatars/generate")
    assert resp.status_code == 503
    assert resp.json()["detail"] == "OPENAI_API_KEY not configured"


def test_manual_avatar_lifecycle(api_client):
    created = api_client.post(
        "/api/avatars",
        json={"name": "Skeptical Sam", "painPoints": ["Burned by fads"], "dataConfidence": 60},
    )
    assert created.status_code == 201
    avatar = created.json()
    assert avatar["recommendationSource"] == "manual"
    assert avatar["dataConfidence"] == 0.6

    updated = api_client.patch(f"/api/avatars/{avatar['id']}", json={"ageRange": "45-54", "hooks": ["Proof first"]})
    assert updated.status_code == 200
    assert updated.json()["ageRange"] == "45-54"
    assert updated.json()["painPoints"] == ["Burned by fads"]

    approved = api_client.patch(f"/api/avatars/{avatar['id']}/approve")
    assert approved.status_code == 200
    assert approved.json()["avatar"]["status"] == "approved"

    rejected = api_client.patch(f"/api/avatars/{avatar['id']}/reject")
    assert rejected.json()["avatar"]["status"] == "rejected"

    assert api_client.get("/api/avatars/missing-id").status_code == 404
    assert api_client.patch("/api/avatars/missing-id/approve").status_code == 404


def test_delete_all_avatars(api_client):
    api_client.post("/api/avatars", json={"name": "One"})
    api_client.post("/api/avatars", json={"name": "Two"})

    resp = api_client.delete("/api/avatars")
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "deletedCount": 2}
    assert api_client.get("/api/avatars").json() == []


def test_match_concepts_links_all_candidates_without_llm(api_client, db_session, auth_context, fake_llm):
    user_id = auth_context.user_id
    avatar = AvatarsRepository(db_session).create(user_id, "Time-Strapped Tina", hooks=["Save Time Daily"])
    concepts = ConceptsRepository(db_session)
    concepts.create(user_id, title="Morning routine hack", hooks=["save time daily"])
    concepts.create(user_id, title="Unboxing video", hooks=["Look inside"])
    concepts.create(user_id, title="Off-brand", status=ConceptStatusEnum.rejected)

    resp = api_client.post(f"/api/avatars/{avatar.id}/match-concepts", json={"topN": 2})
    assert resp.status_code == 200
    matches = resp.json()["matches"]
    assert len(matches) == 2
    assert fake_llm.calls == []
    assert {m["relevanceScore"] for m in matches} == {FALLBACK_RELEVANCE}
    by_title = {m["concept"]["title"]: m for m in matches}
    assert by_title["Morning routine hack"]["matchedHooks"] == ["Save Time Daily"]
    assert by_title["Unboxing video"]["matchedHooks"] == []

    again = api_client.post(f"/api/avatars/{avatar.id}/match-concepts")
    assert again.status_code == 400


def test_select_best_concepts_uses_rankings_and_fills_shortfall(fake_llm):
    avatar = Avatar(id="avatar-1", name="Tina", hooks=["Save time"])
    concepts = [Concept(title=f"Concept {i}", description="") for i in range(4)]
    fake_llm.queue({"rankings": [{"index": 2, "relevanceScore": 87, "reasoning": "Strong fit"}, {"index": 9}]})

    matches = select_best_concepts(avatar, concepts, top_n=2, llm=fake_llm)

    assert [m.concept.title for m in matches] == ["Concept 2", "Concept 0"]
    assert matches[0].relevance_score == 0.87
    assert matches[0].reasoning == "Strong fit"
    assert matches[1].relevance_score == FALLBACK_RELEVANCE
    assert "Return exactly 2 rankings" in fake_llm.calls[0]["prompt"]


def test_select_best_concepts_falls_back_when_llm_fails(fake_llm):
    avatar = Avatar(id="avatar-1", name="Tina")
    concepts = [Concept(title=f"Concept {i}", description="") for i in range(3)]
    fake_llm.queue(LLMResponseError("boom"))

    matches = select_best_concepts(avatar, concepts, top_n=2, llm=fake_llm)

    assert [m.concept.title for m in matches] == ["Concept 0", "Concept 1"]
    assert all(m.relevance_score == FALLBACK_RELEVANCE for m in matches)


def test_generate_avatars_saves_structured_persona_fields(api_client, db_session, auth_context, fake_llm):
    _seed_insights(db_session, auth_context.user_id)
    fake_llm.queue({"avatars": [{"name": "Ana", "psychographics": {"values": ["x"]}, "ageRange": 25}]})

    resp = api_client.post("/api/avatars/generate")
    assert resp.status_code == 200
    avatar = resp.json()["avatars"][0]
    assert avatar["ageRange"] == "25"
    assert avatar["psychographics"] == '{"values": ["x"]}'


def test_patch_can_clear_nullable_avatar_fields(api_client):
    avatar = api_client.post(
        "/api/avatars", json={"name": "Skeptical Sam", "ageRange": "45-54", "psychographics": "Wary of fads"}
    ).json()

    updated = api_client.patch(
        f"/api/avatars/{avatar['id']}", json={"ageRange": None, "psychographics": None, "name": None}
    )
    assert updated.status_code == 200
    body = updated.json()
    assert body["ageRange"] is None
    assert body["psychographics"] is None
    assert body["name"] == "Skeptical Sam"
