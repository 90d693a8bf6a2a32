from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from creative_strategist.auth.dependencies import AuthContext, get_current_user
from creative_strategist.db.deps import get_session
from creative_strategist.db.repositories.users import UsersRepository
from creative_strategist.routers.deps import require_user
from creative_strategist.routers.serializers import serialize_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.get("/user")
def get_user(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return serialize_user(require_user(session, auth.user_id))


@router.get("/meta/status")
def meta_connection_status(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    user = require_user(session, auth.user_id)
    return {
        "connected": bool(user.meta_access_token),
        "accountId": user.meta_account_id,
        "accountName": user.meta_account_name,
        "connectedAt": user.meta_connected_at,
    }


@router.post("/meta/disconnect")
def disconnect_meta(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    require_user(session, auth.user_id)
    UsersRepository(session).update(
        auth.user_id,
        meta_access_token=None,
        meta_account_id=None,
        meta_account_name=None,
        meta_connected_at=None,
    )
    logger.info("Disconnected Meta account", extra={"user_id": auth.user_id})
    return {"success": True}
