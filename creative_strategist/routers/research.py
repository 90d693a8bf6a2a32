from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.orm import Session

from creative_strategist.auth.dependencies import AuthContext, get_current_user
from creative_strategist.db.deps import get_session
from creative_strategist.db.repositories.knowledge_base import KnowledgeBaseRepository
from creative_strategist.routers.concepts import get_research_webhook_client
from creative_strategist.routers.serializers import serialize_knowledge_base
from creative_strategist.schemas.research import DiscoverRequest
from creative_strategist.services.research_webhooks import ResearchWebhookClient, ResearchWebhookError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["research"])


def _resolve_knowledge_base(payload: Optional[DiscoverRequest], session: Session, user_id: str) -> dict[str, Any]:
    if payload is not None and payload.knowledgeBase:
        return payload.knowledgeBase
    record = KnowledgeBaseRepository(session).get(user_id)
    if not record:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Knowledge base data is required. Please complete your knowledge base first.",
        )
    return serialize_knowledge_base(record)


def _discover(
    research_type: str,
    payload: Optional[DiscoverRequest],
    auth: AuthContext,
    session: Session,
    client: ResearchWebhookClient,
) -> dict[str, Any]:
    knowledge_base = _resolve_knowledge_base(payload, session, auth.user_id)
    try:
        return client.discover(user_id=auth.user_id, research_type=research_type, knowledge_base=knowledge_base)
    except ResearchWebhookError as exc:
        logger.exception("Discovery webhook failed", extra={"research_type": research_type})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc


@router.post("/research/discover")
def discover_creative_research(
    payload: Optional[DiscoverRequest] = Body(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    client: ResearchWebhookClient = Depends(get_research_webhook_client),
):
    return _discover("creative", payload, auth, session, client)


@router.post("/customer-research/discover")
def discover_customer_research(
    payload: Optional[DiscoverRequest] = Body(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    client: ResearchWebhookClient = Depends(get_research_webhook_client),
):
    return _discover("customer", payload, auth, session, client)
