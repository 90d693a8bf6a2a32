from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from creative_strategist.auth.dependencies import AuthContext, get_current_user
from creative_strategist.db.deps import get_session
from creative_strategist.db.enums import ConceptStatusEnum
from creative_strategist.db.models import Concept
from creative_strategist.db.repositories.concepts import ConceptsRepository
from creative_strategist.routers.serializers import serialize_concept
from creative_strategist.schemas.concepts import (
    ConceptCreateRequest,
    ConceptScrapeRequest,
    ConceptSearchRequest,
    ConceptUpdateRequest,
)
from creative_strategist.services.concepts import concept_columns, concept_update_columns
from creative_strategist.services.research_webhooks import (
    ResearchWebhookClient,
    ResearchWebhookConfigError,
    ResearchWebhookError,
)
from creative_strategist.services.scrape_creators import ScrapeCreatorsClient, ScrapeCreatorsConfigError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/concepts", tags=["concepts"])


def get_research_webhook_client() -> ResearchWebhookClient:
    try:
        return ResearchWebhookClient()
    except ResearchWebhookConfigError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc


def get_scrape_creators_client() -> ScrapeCreatorsClient:
    try:
        return ScrapeCreatorsClient()
    except ScrapeCreatorsConfigError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc


def _get_concept_or_404(repo: ConceptsRepository, user_id: str, concept_id: str) -> Concept:
    concept = repo.get(user_id, concept_id)
    if not concept:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Concept not found")
    return concept


def _persist_rows(session: Session, user_id: str, rows: list[dict[str, Any]]) -> list[Concept]:
    repo = ConceptsRepository(session)
    saved: list[Concept] = []
    for row in rows:
        try:
            saved.append(repo.create(user_id, **row))
        except SQLAlchemyError:
            session.rollback()
            logger.exception("Failed to save concept", extra={"user_id": user_id, "url": row.get("url")})
    return saved


@router.get("")
def list_concepts(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return [serialize_concept(concept) for concept in ConceptsRepository(session).list(auth.user_id)]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_concept(
    payload: ConceptCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    concept = ConceptsRepository(session).create(auth.user_id, **concept_columns(payload))
    return serialize_concept(concept)


@router.delete("")
def delete_all_concepts(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    count = ConceptsRepository(session).delete_all(auth.user_id)
    logger.info("Deleted concepts", extra={"user_id": auth.user_id, "count": count})
    return {"success": True, "deletedCount": count}


@router.post("/search")
def search_concepts(
    payload: ConceptSearchRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    client: ResearchWebhookClient = Depends(get_research_webhook_client),
):
    query = payload.query.strip()
    if not query:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Search query is required")

    try:
        result = client.search(user_id=auth.user_id, query=query, search_type=payload.type)
    except ResearchWebhookError as exc:
        logger.exception("Concept search webhook failed", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    if not result.rows:
        return {
            "success": result.success,
            "message": result.message,
            "count": result.reported_count,
            "concepts": [],
        }

    saved = _persist_rows(session, auth.user_id, result.rows)
    concepts = [serialize_concept(concept) for concept in saved]
    response: dict[str, Any] = {
        "success": True,
        "message": result.message,
        "count": len(concepts),
        "concepts": concepts,
    }
    if len(concepts) == 1:
        response["urlSearchResult"] = concepts[0]
    return response


@router.post("/scrape")
def scrape_concepts(
    payload: ConceptScrapeRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    client: ScrapeCreatorsClient = Depends(get_scrape_creators_client),
):
    keywords = [keyword.strip() for keyword in payload.keywords if keyword.strip()]
    if not keywords:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="At least one keyword is required")

    scraped = client.fetch_concepts(keywords, payload.niche)
    rows = [concept.to_concept_row() for items in scraped.values() for concept in items]
    saved = _persist_rows(session, auth.user_id, rows)
    return {
        "success": True,
        "count": len(saved),
        "byPlatform": {platform: len(items) for platform, items in scraped.items()},
        "concepts": [serialize_concept(concept) for concept in saved],
    }


@router.get("/{concept_id}")
def get_concept(
    concept_id: str,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return serialize_concept(_get_concept_or_404(ConceptsRepository(session), auth.user_id, concept_id))


@router.patch("/{concept_id}")
def update_concept(
    concept_id: str,
    payload: ConceptUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = ConceptsRepository(session)
    concept = _get_concept_or_404(repo, auth.user_id, concept_id)
    concept = repo.update(auth.user_id, concept_id, **concept_update_columns(payload, concept.statistics))
    return serialize_concept(concept)


@router.patch("/{concept_id}/approve")
def approve_concept(
    concept_id: str,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    concept = ConceptsRepository(session).update(auth.user_id, concept_id, status=ConceptStatusEnum.approved)
    if not concept:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Concept not found")
    return {"success": True, "concept": serialize_concept(concept)}


@router.patch("/{concept_id}/reject")
def reject_concept(
    concept_id: str,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    concept = ConceptsRepository(session).update(auth.user_id, concept_id, status=ConceptStatusEnum.rejected)
    if not concept:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Concept not found")
    return {"success": True, "concept": serialize_concept(concept)}
