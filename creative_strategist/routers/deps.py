from __future__ import annotations

import logging
from typing import NoReturn, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from creative_strategist.db.models import KnowledgeBase, User
from creative_strategist.db.repositories.knowledge_base import KnowledgeBaseRepository
from creative_strategist.db.repositories.platform_settings import PlatformSettingsRepository
from creative_strategist.db.repositories.users import UsersRepository
from creative_strategist.llm.client import LLMClient, LLMClientConfigError

logger = logging.getLogger(__name__)


def get_llm_client() -> LLMClient:
    return LLMClient()


def preferred_llm_model(session: Session, user_id: str) -> Optional[str]:
    record = PlatformSettingsRepository(session).get(user_id)
    if record and record.llm_model:
        return record.llm_model
    return None


def raise_llm_unavailable(exc: LLMClientConfigError) -> NoReturn:
    logger.warning("LLM provider not configured", extra={"reason": str(exc)})
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc


def require_knowledge_base(session: Session, user_id: str) -> KnowledgeBase:
    record = KnowledgeBaseRepository(session).get(user_id)
    if not record:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Knowledge base not found. Please complete your knowledge base first.",
        )
    return record


def require_user(session: Session, user_id: str) -> User:
    user = UsersRepository(session).get(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
