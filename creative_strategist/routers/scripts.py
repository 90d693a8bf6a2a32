from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from creative_strategist.auth.dependencies import AuthContext, get_current_user
from creative_strategist.db.deps import get_session
from creative_strategist.db.enums import ScriptStatusEnum
from creative_strategist.db.repositories.scripts import ScriptsRepository
from creative_strategist.llm.client import LLMClient, LLMClientConfigError
from creative_strategist.routers.deps import (
    get_llm_client,
    preferred_llm_model,
    raise_llm_unavailable,
    require_knowledge_base,
)
from creative_strategist.routers.serializers import serialize_script
from creative_strategist.schemas.scripts import ScriptGenerateRequest, ScriptUpdateRequest
from creative_strategist.services.script_generation import ScriptGenerationError, generate_script

router = APIRouter(prefix="/api", tags=["scripts"])


@router.post("/generate-script")
def generate_ad_script(
    payload: ScriptGenerateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    llm: LLMClient = Depends(get_llm_client),
):
    knowledge_base = require_knowledge_base(session, auth.user_id)
    try:
        generated = generate_script(
            payload, knowledge_base, llm=llm, model=preferred_llm_model(session, auth.user_id)
        )
    except LLMClientConfigError as exc:
        raise_llm_unavailable(exc)
    except ScriptGenerationError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    script = ScriptsRepository(session).create(auth.user_id, status=ScriptStatusEnum.draft, **generated)
    return serialize_script(script)


@router.get("/scripts")
def list_scripts(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return [serialize_script(script) for script in ScriptsRepository(session).list(auth.user_id)]


@router.patch("/scripts/{script_id}")
def update_script(
    script_id: str,
    payload: ScriptUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    fields: dict[str, Any] = {
        key: getattr(payload, key) for key in payload.model_fields_set if getattr(payload, key) is not None
    }
    script = ScriptsRepository(session).update(auth.user_id, script_id, **fields)
    if not script:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Script not found")
    return serialize_script(script)
