from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.orm import Session

from creative_strategist.auth.dependencies import AuthContext, get_current_user
from creative_strategist.db.deps import get_session
from creative_strategist.db.enums import ConceptStatusEnum, ReviewStatusEnum
from creative_strategist.db.models import Avatar, Concept
from creative_strategist.db.repositories.avatars import AvatarConceptsRepository, AvatarsRepository
from creative_strategist.db.repositories.concepts import ConceptsRepository
from creative_strategist.db.repositories.knowledge_base import KnowledgeBaseRepository
from creative_strategist.db.repositories.research import InsightsRepository
from creative_strategist.llm.client import LLMClient, LLMClientConfigError
from creative_strategist.routers.deps import get_llm_client, preferred_llm_model, raise_llm_unavailable
from creative_strategist.routers.serializers import serialize_avatar, serialize_avatar_concept
from creative_strategist.schemas.avatars import (
    AvatarCreateRequest,
    AvatarGenerateRequest,
    AvatarUpdateRequest,
    ConceptMatchRequest,
)
from creative_strategist.services.avatar_generation import (
    AvatarGenerationError,
    generate_avatars_from_insights,
    normalize_confidence,
)
from creative_strategist.services.concept_matching import select_best_concepts
from creative_strategist.services.knowledge_base import build_prompt_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/avatars", tags=["avatars"])

_AVATAR_COLUMNS = {
    "name": "name",
    "ageRange": "age_range",
    "demographics": "demographics",
    "psychographics": "psychographics",
    "painPoints": "pain_points",
    "desires": "desires",
    "objections": "objections",
    "triggers": "triggers",
    "hooks": "hooks",
    "sources": "sources",
    "priority": "priority",
    "status": "status",
}
_NULLABLE_FIELDS = {"ageRange", "psychographics"}


def _get_avatar_or_404(repo: AvatarsRepository, user_id: str, avatar_id: str) -> Avatar:
    avatar = repo.get(user_id, avatar_id)
    if not avatar:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Avatar not found")
    return avatar


def _shared_hooks(avatar: Avatar, concept: Concept) -> list[str]:
    concept_hooks = {hook.strip().lower() for hook in concept.hooks or [] if hook}
    return [hook for hook in avatar.hooks or [] if hook and hook.strip().lower() in concept_hooks]


@router.get("")
def list_avatars(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return [serialize_avatar(avatar) for avatar in AvatarsRepository(session).list(auth.user_id)]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_avatar(
    payload: AvatarCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    avatar = AvatarsRepository(session).create(
        auth.user_id,
        name=payload.name,
        age_range=payload.ageRange,
        demographics=payload.demographics,
        psychographics=payload.psychographics,
        pain_points=payload.painPoints,
        desires=payload.desires,
        objections=payload.objections,
        triggers=payload.triggers,
        hooks=payload.hooks,
        sources=payload.sources,
        priority=payload.priority,
        data_confidence=normalize_confidence(payload.dataConfidence),
        recommendation_source=payload.recommendationSource,
        status=payload.status,
    )
    return serialize_avatar(avatar)


@router.delete("")
def delete_all_avatars(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    count = AvatarsRepository(session).delete_all(auth.user_id)
    logger.info("Deleted avatars", extra={"user_id": auth.user_id, "count": count})
    return {"success": True, "deletedCount": count}


@router.post("/generate")
def generate_avatars(
    payload: Optional[AvatarGenerateRequest] = Body(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    llm: LLMClient = Depends(get_llm_client),
):
    insights = InsightsRepository(session).list(
        auth.user_id, statuses=[ReviewStatusEnum.approved, ReviewStatusEnum.pending]
    )
    if not insights:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No insights found. Run customer research before generating avatars.",
        )

    knowledge_base = KnowledgeBaseRepository(session).get(auth.user_id)
    model = (payload.model if payload else None) or preferred_llm_model(session, auth.user_id)
    try:
        result = generate_avatars_from_insights(
            insights,
            brand_context=build_prompt_context(knowledge_base),
            llm=llm,
            model=model,
        )
    except LLMClientConfigError as exc:
        raise_llm_unavailable(exc)
    except AvatarGenerationError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    avatars = AvatarsRepository(session).bulk_create(auth.user_id, result.avatars)
    return {
        "success": True,
        "avatarsGenerated": len(avatars),
        "avatars": [serialize_avatar(avatar) for avatar in avatars],
        "summary": result.summary,
    }


@router.get("/{avatar_id}")
def get_avatar(
    avatar_id: str,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return serialize_avatar(_get_avatar_or_404(AvatarsRepository(session), auth.user_id, avatar_id))


@router.patch("/{avatar_id}")
def update_avatar(
    avatar_id: str,
    payload: AvatarUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = AvatarsRepository(session)
    _get_avatar_or_404(repo, auth.user_id, avatar_id)

    fields: dict[str, Any] = {}
    for key in payload.model_fields_set:
        value = getattr(payload, key)
        if key == "dataConfidence":
            fields["data_confidence"] = normalize_confidence(value)
            continue
        if value is None and key not in _NULLABLE_FIELDS:
            continue
        fields[_AVATAR_COLUMNS[key]] = value
    avatar = repo.update(auth.user_id, avatar_id, **fields)
    return serialize_avatar(avatar)


@router.patch("/{avatar_id}/approve")
def approve_avatar(
    avatar_id: str,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    avatar = AvatarsRepository(session).update(auth.user_id, avatar_id, status=ReviewStatusEnum.approved)
    if not avatar:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Avatar not found")
    return {"success": True, "avatar": serialize_avatar(avatar)}


@router.patch("/{avatar_id}/reject")
def reject_avatar(
    avatar_id: str,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    avatar = AvatarsRepository(session).update(auth.user_id, avatar_id, status=ReviewStatusEnum.rejected)
    if not avatar:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Avatar not found")
    return {"success": True, "avatar": serialize_avatar(avatar)}


@router.post("/{avatar_id}/match-concepts")
def match_concepts(
    avatar_id: str,
    payload: Optional[ConceptMatchRequest] = Body(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    llm: LLMClient = Depends(get_llm_client),
):
    avatar = _get_avatar_or_404(AvatarsRepository(session), auth.user_id, avatar_id)
    links_repo = AvatarConceptsRepository(session)
    linked_ids = {link.concept_id for link in links_repo.list(auth.user_id, avatar_id=avatar_id)}
    candidates = [
        concept
        for concept in ConceptsRepository(session).list(auth.user_id)
        if concept.status != ConceptStatusEnum.rejected and concept.id not in linked_ids
    ]
    if not candidates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No unmatched concepts available")

    top_n = payload.topN if payload else ConceptMatchRequest().topN
    matches = select_best_concepts(
        avatar,
        candidates,
        top_n=top_n,
        llm=llm,
        model=preferred_llm_model(session, auth.user_id),
    )

    results = []
    for match in matches:
        link = links_repo.create(
            auth.user_id,
            avatar_id,
            match.concept.id,
            relevance_score=match.relevance_score,
            matched_hooks=_shared_hooks(avatar, match.concept),
        )
        results.append(serialize_avatar_concept(link, match.concept))
    logger.info("Matched concepts to avatar", extra={"avatar_id": avatar_id, "count": len(results)})
    return {"success": True, "matches": results}
