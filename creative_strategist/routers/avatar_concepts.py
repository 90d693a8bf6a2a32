from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from creative_strategist.auth.dependencies import AuthContext, get_current_user
from creative_strategist.db.deps import get_session
from creative_strategist.db.repositories.avatars import AvatarConceptsRepository, AvatarsRepository
from creative_strategist.db.repositories.concepts import ConceptsRepository
from creative_strategist.routers.serializers import serialize_avatar_concept
from creative_strategist.schemas.avatars import AvatarConceptCreateRequest, AvatarConceptUpdateRequest

router = APIRouter(prefix="/api/avatar-concepts", tags=["avatar-concepts"])

_LINK_COLUMNS = {
    "relevanceScore": "relevance_score",
    "userApproved": "user_approved",
    "feedback": "feedback",
}


@router.get("")
def list_avatar_concepts(
    avatarId: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    concepts_repo = ConceptsRepository(session)
    results = []
    for link in AvatarConceptsRepository(session).list(auth.user_id, avatar_id=avatarId):
        results.append(serialize_avatar_concept(link, concepts_repo.get(auth.user_id, link.concept_id)))
    return results


@router.post("", status_code=status.HTTP_201_CREATED)
def create_avatar_concept(
    payload: AvatarConceptCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not AvatarsRepository(session).get(auth.user_id, payload.avatarId):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Avatar not found")
    concept = ConceptsRepository(session).get(auth.user_id, payload.conceptId)
    if not concept:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Concept not found")

    repo = AvatarConceptsRepository(session)
    if repo.get_pair(auth.user_id, payload.avatarId, payload.conceptId):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Avatar is already linked to this concept")
    try:
        link = repo.create(
            auth.user_id,
            payload.avatarId,
            payload.conceptId,
            relevance_score=payload.relevanceScore,
            matched_hooks=payload.matchedHooks,
            user_approved=payload.userApproved,
            feedback=payload.feedback,
        )
    except IntegrityError as exc:
        session.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Avatar is already linked to this concept"
        ) from exc
    return serialize_avatar_concept(link, concept)


@router.patch("/{link_id}")
def update_avatar_concept(
    link_id: str,
    payload: AvatarConceptUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    fields: dict[str, Any] = {_LINK_COLUMNS[key]: getattr(payload, key) for key in payload.model_fields_set}
    link = AvatarConceptsRepository(session).update(auth.user_id, link_id, **fields)
    if not link:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Avatar concept link not found")
    return serialize_avatar_concept(link)


@router.delete("/{link_id}")
def delete_avatar_concept(
    link_id: str,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not AvatarConceptsRepository(session).delete(auth.user_id, link_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Avatar concept link not found")
    return {"success": True}
