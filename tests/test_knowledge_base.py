from creative_strategist.services.knowledge_base import build_prompt_context, compute_completion_percentage

FULL_KNOWLEDGE_BASE = {
    "website_url": "https://glowlabs.example",
    "brand_voice": "Warm and direct",
    "mission_statement": "Skincare that works without the fuss",
    "brand_values": ["Honesty"],
    "product_links": ["https://glowlabs.example/serum"],
    "pricing_info": "$39 per bottle",
    "key_benefits": ["Fades dark spots"],
    "usps": ["Dermatologist formulated"],
    "current_personas": "Busy professionals",
    "demographics": "Women 25-44",
    "main_competitors": ["The Ordinary"],
    "instagram_handle": "@glowlabs",
    "facebook_page": "glowlabs",
    "tiktok_handle": "@glowlabs",
    "content_style": "UGC testimonials",
    "sales_trends": "Up 20% quarter over quarter",
}


def test_completion_percentage_scores_sections_equally():
    assert compute_completion_percentage({}) == 0
    assert compute_completion_percentage(FULL_KNOWLEDGE_BASE) == 100

    brand_only = {
        "website_url": "https://glowlabs.example",
        "brand_voice": "Warm",
        "mission_statement": "Mission",
        "brand_values": ["Honesty"],
    }
    assert compute_completion_percentage(brand_only) == 17


def test_completion_percentage_ignores_blank_values():
    fields = {
        "website_url": "   ",
        "brand_values": ["", "  "],
        "sales_trends": "Flat",
    }
    assert compute_completion_percentage(fields) == 17


def test_prompt_context_uses_defaults_for_missing_fields():
    context = build_prompt_context({"website_url": "https://glowlabs.example", "key_benefits": ["Fades spots"]})
    assert context.startswith("## BRAND CONTEXT")
    assert "Website: https://glowlabs.example" in context
    assert "Key benefits: Fades spots" in context
    assert "Brand voice: Professional and friendly" in context
    assert build_prompt_context(None) == ""


def test_get_knowledge_base_returns_null_before_creation(api_client):
    resp = api_client.get("/api/knowledge-base")
    assert resp.status_code == 200
    assert resp.json() is None


def test_create_knowledge_base_computes_completion(api_client):
    payload = {
        "websiteUrl": "https://glowlabs.example",
        "brandVoice": "Warm and direct",
        "missionStatement": "Skincare that works",
        "brandValues": ["Honesty"],
    }
    resp = api_client.post("/api/knowledge-base", json=payload)
    assert resp.status_code == 201
    body = resp.json()
    assert body["completionPercentage"] == 17
    assert body["brandValues"] == ["Honesty"]
    assert body["productLinks"] == []

    duplicate = api_client.post("/api/knowledge-base", json=payload)
    assert duplicate.status_code == 409


def test_patch_knowledge_base_recomputes_on_merged_fields(api_client):
    api_client.post(
        "/api/knowledge-base",
        json={
            "websiteUrl": "https://glowlabs.example",
            "brandVoice": "Warm",
            "missionStatement": "Mission",
            "brandValues": ["Honesty"],
        },
    )

    resp = api_client.patch("/api/knowledge-base", json={"salesTrends": "Up 20%", "mainCompetitors": None})
    assert resp.status_code == 200
    body = resp.json()
    assert body["salesTrends"] == "Up 20%"
    assert body["mainCompetitors"] == []
    assert body["completionPercentage"] == 33
    assert body["websiteUrl"] == "https://glowlabs.example"


def test_patch_knowledge_base_keeps_explicit_completion(api_client):
    api_client.post("/api/knowledge-base", json={"websiteUrl": "https://glowlabs.example"})
    resp = api_client.patch("/api/knowledge-base", json={"completionPercentage": 90})
    assert resp.status_code == 200
    assert resp.json()["completionPercentage"] == 90


def test_patch_knowledge_base_requires_existing_record(api_client):
    resp = api_client.patch("/api/knowledge-base", json={"brandVoice": "Bold"})
    assert resp.status_code == 404
