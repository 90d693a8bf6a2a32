from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import httpx
from fastapi import HTTPException, status
from jose import jwt
from jose.exceptions import JWTError

from creative_strategist.config import settings


logger = logging.getLogger("auth.clerk")

_JWKS_TTL_SECONDS = 300


class _JWKSCache:
    def __init__(self, ttl_seconds: int = _JWKS_TTL_SECONDS) -> None:
        self.keys: Optional[list[Dict[str, Any]]] = None
        self.fetched_at: float = 0.0
        self.ttl_seconds = ttl_seconds

    def fresh(self) -> Optional[list[Dict[str, Any]]]:
        if self.keys is not None and (time.time() - self.fetched_at) < self.ttl_seconds:
            return self.keys
        return None

    def store(self, keys: list[Dict[str, Any]]) -> None:
        self.keys = keys
        self.fetched_at = time.time()

    def invalidate(self) -> None:
        self.keys = None
        self.fetched_at = 0.0


_cache = _JWKSCache()


def _load_signing_keys(force: bool = False) -> list[Dict[str, Any]]:
    if not force:
        cached = _cache.fresh()
        if cached is not None:
            return cached
    if not settings.CLERK_JWKS_URL:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication is not configured (CLERK_JWKS_URL missing)",
        )
    try:
        resp = httpx.get(settings.CLERK_JWKS_URL, timeout=10)
        resp.raise_for_status()
        keys = resp.json().get("keys") or []
    except (httpx.HTTPError, ValueError) as exc:
        logger.exception("JWKS fetch failed", extra={"jwks_url": settings.CLERK_JWKS_URL})
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Unable to fetch Clerk JWKS",
        ) from exc
    _cache.store(keys)
    return keys


def _signing_key_for(token: str) -> Dict[str, Any]:
    try:
        kid = jwt.get_unverified_header(token).get("kid")
    except JWTError as exc:
        logger.warning("Invalid token header", exc_info=exc)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc
    if not kid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing kid in token")

    for force in (False, True):
        for key in _load_signing_keys(force=force):
            if key.get("kid") == kid:
                return key
    logger.warning("Signing key not found", extra={"kid": kid})
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Signing key not found")


def verify_clerk_token(token: str) -> Dict[str, Any]:
    """Verify a Clerk session JWT and return its claims. Raises 401 on any failure."""
    signing_key = _signing_key_for(token)
    try:
        claims = jwt.decode(
            token,
            signing_key,
            algorithms=[signing_key.get("alg", "RS256")],
            issuer=settings.CLERK_JWT_ISSUER or None,
            options={"verify_aud": False},
        )
    except JWTError as exc:
        logger.warning("Token verification failed", exc_info=exc)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    # Clerk session tokens carry either no aud, a string, or a list; accept any configured match.
    token_aud = claims.get("aud")
    if token_aud and settings.CLERK_AUDIENCE:
        token_auds = [token_aud] if isinstance(token_aud, str) else list(token_aud)
        if not set(token_auds) & set(settings.CLERK_AUDIENCE):
            logger.warning("Token audience rejected", extra={"aud": token_aud})
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token audience")
    logger.debug(
        "Verified Clerk token",
        extra={"kid": signing_key.get("kid"), "iss": claims.get("iss"), "sub": claims.get("sub")},
    )
    return claims
