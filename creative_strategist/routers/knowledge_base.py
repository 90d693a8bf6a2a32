from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from creative_strategist.auth.dependencies import AuthContext, get_current_user
from creative_strategist.db.deps import get_session
from creative_strategist.db.repositories.knowledge_base import KnowledgeBaseRepository
from creative_strategist.routers.serializers import serialize_knowledge_base
from creative_strategist.schemas.knowledge_base import KnowledgeBaseCreateRequest, KnowledgeBaseUpdateRequest
from creative_strategist.services.knowledge_base import compute_completion_percentage, knowledge_base_fields

router = APIRouter(prefix="/api/knowledge-base", tags=["knowledge-base"])


@router.get("")
def get_knowledge_base(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    record = KnowledgeBaseRepository(session).get(auth.user_id)
    if not record:
        return None
    return serialize_knowledge_base(record)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_knowledge_base(
    payload: KnowledgeBaseCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = KnowledgeBaseRepository(session)
    if repo.get(auth.user_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Knowledge base already exists")

    columns = payload.to_columns()
    if columns.get("completion_percentage") is None:
        columns["completion_percentage"] = compute_completion_percentage(columns)
    record = repo.create(auth.user_id, **columns)
    return serialize_knowledge_base(record)


@router.patch("")
def update_knowledge_base(
    payload: KnowledgeBaseUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    repo = KnowledgeBaseRepository(session)
    record = repo.get(auth.user_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Knowledge base not found")

    columns = payload.to_columns()
    if columns.get("completion_percentage") is None:
        columns["completion_percentage"] = compute_completion_percentage({**knowledge_base_fields(record), **columns})
    record = repo.update(auth.user_id, **columns)
    return serialize_knowledge_base(record)
