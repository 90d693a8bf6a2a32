from creative_strategist.db.repositories.avatars import AvatarsRepository
from creative_strategist.db.repositories.concepts import ConceptsRepository
from creative_strategist.db.repositories.users import UsersRepository


def _seed(db_session, user_id):
    avatar = AvatarsRepository(db_session).create(user_id, "Overwhelmed Olivia")
    concept = ConceptsRepository(db_session).create(user_id, title="Morning routine hack", hooks=["Save time"])
    return avatar, concept


def test_link_lifecycle(api_client, db_session, auth_context):
    avatar, concept = _seed(db_session, auth_context.user_id)

    created = api_client.post(
        "/api/avatar-concepts",
        json={"avatarId": avatar.id, "conceptId": concept.id, "relevanceScore": 0.8, "matchedHooks": ["Save time"]},
    )
    assert created.status_code == 201
    link = created.json()
    assert link["relevanceScore"] == 0.8
    assert link["concept"]["title"] == "Morning routine hack"
    assert link["userApproved"] is None

    listed = api_client.get("/api/avatar-concepts", params={"avatarId": avatar.id}).json()
    assert [item["id"] for item in listed] == [link["id"]]
    assert listed[0]["concept"]["hooks"] == ["Save time"]
    assert api_client.get("/api/avatar-concepts", params={"avatarId": "other"}).json() == []

    updated = api_client.patch(
        f"/api/avatar-concepts/{link['id']}", json={"userApproved": True, "feedback": "Great angle"}
    )
    assert updated.status_code == 200
    assert updated.json()["userApproved"] is True
    assert updated.json()["feedback"] == "Great angle"
    assert updated.json()["relevanceScore"] == 0.8

    deleted = api_client.delete(f"/api/avatar-concepts/{link['id']}")
    assert deleted.json() == {"success": True}
    assert api_client.delete(f"/api/avatar-concepts/{link['id']}").status_code == 404


def test_duplicate_link_conflicts(api_client, db_session, auth_context):
    avatar, concept = _seed(db_session, auth_context.user_id)
    body = {"avatarId": avatar.id, "conceptId": concept.id}

    assert api_client.post("/api/avatar-concepts", json=body).status_code == 201
    duplicate = api_client.post("/api/avatar-concepts", json=body)
    assert duplicate.status_code == 409


def test_link_requires_owned_avatar_and_concept(api_client, db_session, auth_context):
    _, concept = _seed(db_session, auth_context.user_id)
    UsersRepository(db_session).get_or_create("user_other")
    foreign_avatar = AvatarsRepository(db_session).create("user_other", "Someone Else")

    resp = api_client.post("/api/avatar-concepts", json={"avatarId": foreign_avatar.id, "conceptId": concept.id})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Avatar not found"

    avatar = AvatarsRepository(db_session).create(auth_context.user_id, "Mine")
    resp = api_client.post("/api/avatar-concepts", json={"avatarId": avatar.id, "conceptId": "missing"})
    assert resp.json()["detail"] == "Concept not found"


def test_relevance_score_is_bounded(api_client, db_session, auth_context):
    avatar, concept = _seed(db_session, auth_context.user_id)
    resp = api_client.post(
        "/api/avatar-concepts", json={"avatarId": avatar.id, "conceptId": concept.id, "relevanceScore": 87}
    )
    assert resp.status_code == 422
    assert api_client.patch("/api/avatar-concepts/missing", json={"feedback": "x"}).status_code == 404
