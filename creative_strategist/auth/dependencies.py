from dataclasses import dataclass
import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from creative_strategist.auth.clerk import verify_clerk_token
from creative_strategist.db.deps import get_session
from creative_strategist.db.repositories.users import UsersRepository


bearer_scheme = HTTPBearer(auto_error=False)
logger = logging.getLogger("auth.deps")


@dataclass
class AuthContext:
    user_id: str


def _profile_from_claims(claims: dict) -> dict:
    return {
        "email": claims.get("email") or claims.get("email_address"),
        "first_name": claims.get("first_name") or claims.get("given_name"),
        "last_name": claims.get("last_name") or claims.get("family_name"),
        "profile_image_url": claims.get("image_url") or claims.get("picture"),
    }


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> AuthContext:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")

    claims = verify_clerk_token(credentials.credentials)
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token claims")

    users_repo = UsersRepository(session)
    if users_repo.get(user_id) is None:
        logger.info("Creating user from Clerk subject", extra={"sub": user_id})
    users_repo.get_or_create(user_id, **_profile_from_claims(claims))

    logger.debug("AuthContext built", extra={"sub": user_id})
    return AuthContext(user_id=user_id)
