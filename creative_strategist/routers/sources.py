from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from creative_strategist.auth.dependencies import AuthContext, get_current_user
from creative_strategist.db.deps import get_session
from creative_strategist.db.models import utcnow
from creative_strategist.db.repositories.knowledge_base import KnowledgeBaseRepository
from creative_strategist.db.repositories.research import InsightsRepository, SourcesRepository
from creative_strategist.llm.client import LLMClient, LLMClientConfigError
from creative_strategist.routers.deps import get_llm_client, preferred_llm_model, raise_llm_unavailable
from creative_strategist.routers.serializers import serialize_insight, serialize_source
from creative_strategist.schemas.research import ExtractInsightsRequest, SourceCreateRequest
from creative_strategist.services.insight_extraction import InsightExtractionError, extract_insights
from creative_strategist.services.knowledge_base import build_prompt_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sources", tags=["sources"])


@router.get("")
def list_sources(
    platform: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return [serialize_source(source) for source in SourcesRepository(session).list(auth.user_id, platform=platform)]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_source(
    payload: SourceCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    source = SourcesRepository(session).create(
        auth.user_id,
        payload.platform,
        payload.title,
        source_type=payload.sourceType,
        description=payload.description,
        url=payload.url,
    )
    return serialize_source(source)


@router.post("/{source_id}/extract-insights")
def extract_source_insights(
    source_id: str,
    payload: ExtractInsightsRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    llm: LLMClient = Depends(get_llm_client),
):
    sources = SourcesRepository(session)
    source = sources.get(auth.user_id, source_id)
    if not source:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Source not found")
    content = payload.content.strip()
    if not content:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Source content is required")

    knowledge_base = KnowledgeBaseRepository(session).get(auth.user_id)
    try:
        rows = extract_insights(
            content,
            platform=source.platform,
            source_title=source.title,
            source_url=source.url,
            brand_context=build_prompt_context(knowledge_base),
            llm=llm,
            model=preferred_llm_model(session, auth.user_id),
        )
    except LLMClientConfigError as exc:
        raise_llm_unavailable(exc)
    except InsightExtractionError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    for row in rows:
        row["source_id"] = source.id
    insights = InsightsRepository(session).bulk_create(auth.user_id, rows) if rows else []
    source = sources.update(
        auth.user_id,
        source_id,
        insights_discovered=(source.insights_discovered or 0) + len(insights),
        last_checked=utcnow(),
    )
    logger.info("Extracted insights from source", extra={"source_id": source_id, "count": len(insights)})
    return {
        "success": True,
        "insightsExtracted": len(insights),
        "insights": [serialize_insight(insight) for insight in insights],
        "source": serialize_source(source),
    }
