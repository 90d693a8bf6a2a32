from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from creative_strategist.auth.dependencies import AuthContext, get_current_user
from creative_strategist.db.deps import get_session
from creative_strategist.services.meta_oauth import MetaOAuthConfigError
from creative_strategist.services.oauth_broker import (
    OAuthBroker,
    OAuthBrokerError,
    render_callback_page,
    resolve_origin,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/oauth-broker/meta", tags=["oauth-broker"])


def get_oauth_broker(session: Session = Depends(get_session)) -> OAuthBroker:
    return OAuthBroker(session)


@router.get("/start")
def start_link(
    request: Request,
    origin: Optional[str] = Header(default=None),
    referer: Optional[str] = Header(default=None),
    auth: AuthContext = Depends(get_current_user),
    broker: OAuthBroker = Depends(get_oauth_broker),
):
    resolved_origin = resolve_origin(origin, referer)
    if not resolved_origin:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unable to determine request origin")
    try:
        return broker.start(
            user_id=auth.user_id,
            origin=resolved_origin,
            request_base_url=str(request.base_url),
        )
    except MetaOAuthConfigError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except OAuthBrokerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.get("/callback", response_class=HTMLResponse)
def oauth_callback(
    request: Request,
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    error: Optional[str] = Query(default=None),
    broker: OAuthBroker = Depends(get_oauth_broker),
):
    outcome = broker.handle_callback(
        code=code,
        state=state,
        error=error,
        request_base_url=str(request.base_url),
    )
    if not outcome.success:
        logger.warning("Meta OAuth callback failed", extra={"reason": outcome.error})
    return HTMLResponse(content=render_callback_page(outcome))


@router.get("/status/{link_session_id}")
def link_status(
    link_session_id: str,
    broker: OAuthBroker = Depends(get_oauth_broker),
):
    try:
        return broker.status(link_session_id)
    except OAuthBrokerError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
