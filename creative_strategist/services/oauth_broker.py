"""
Meta account linking through a popup.

The dashboard calls `start` to get an authorization URL plus a link session id, opens the
URL in a popup, and then waits for either a `postMessage` from the callback page or a
completed status poll. State carried through Meta is HMAC-signed so the callback can trust
the link session id and nonce it receives.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import html
import json
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from urllib.parse import urlsplit

from sqlalchemy.orm import Session

from creative_strategist.config import settings
from creative_strategist.db.models import OAuthLinkSession, utcnow
from creative_strategist.db.repositories.oauth_link_sessions import OAuthLinkSessionsRepository
from creative_strategist.db.repositories.users import UsersRepository
from creative_strategist.services.meta_oauth import MetaOAuthClient, MetaOAuthConfigError, MetaOAuthError

logger = logging.getLogger("oauth.broker")

CALLBACK_PATH = "/api/oauth-broker/meta/callback"


class OAuthBrokerError(RuntimeError):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class CallbackOutcome:
    link_session: Optional[OAuthLinkSession]
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return bool(self.link_session is not None and self.link_session.completed and not self.error)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def epoch_millis(value: datetime) -> int:
    return int(_as_utc(value).timestamp() * 1000)


def _require_secret(secret: Optional[str] = None) -> str:
    resolved = secret or settings.OAUTH_BROKER_SECRET
    if not resolved:
        raise OAuthBrokerError("OAUTH_BROKER_SECRET not configured", status_code=503)
    return resolved


def sign_state(data: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), data.encode("utf-8"), hashlib.sha256).hexdigest()


def encode_state(link_session_id: str, nonce: str, *, secret: Optional[str] = None) -> str:
    key = _require_secret(secret)
    data = json.dumps({"linkSessionId": link_session_id, "nonce": nonce}, separators=(",", ":"))
    envelope = json.dumps({"data": data, "signature": sign_state(data, key)}, separators=(",", ":"))
    return base64.urlsafe_b64encode(envelope.encode("utf-8")).decode("ascii")


def decode_state(state: str, *, secret: Optional[str] = None) -> tuple[str, str]:
    """Return `(link_session_id, nonce)` from a signed state, or raise `OAuthBrokerError`."""
    key = _require_secret(secret)
    try:
        padded = state + "=" * (-len(state) % 4)
        envelope = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8"))
        data = envelope["data"]
        signature = envelope["signature"]
        if not isinstance(data, str) or not isinstance(signature, str):
            raise ValueError("state fields must be strings")
        signature_matches = hmac.compare_digest(
            signature.encode("utf-8"), sign_state(data, key).encode("ascii")
        )
    except (ValueError, KeyError, TypeError, UnicodeError) as exc:
        raise OAuthBrokerError("Invalid or corrupted state parameter") from exc

    if not signature_matches:
        raise OAuthBrokerError("Invalid or corrupted state parameter")

    try:
        payload = json.loads(data)
        return str(payload["linkSessionId"]), str(payload["nonce"])
    except (ValueError, KeyError, TypeError) as exc:
        raise OAuthBrokerError("Invalid or corrupted state parameter") from exc


def resolve_origin(origin: Optional[str], referer: Optional[str]) -> Optional[str]:
    if origin:
        return origin.rstrip("/")
    if referer:
        parts = urlsplit(referer)
        if parts.scheme and parts.netloc:
            return f"{parts.scheme}://{parts.netloc}"
    return None


def broker_redirect_uri(request_base_url: str) -> str:
    if settings.OAUTH_BROKER_URL:
        return f"{settings.OAUTH_BROKER_URL.rstrip('/')}/meta/callback"
    return f"{request_base_url.rstrip('/')}{CALLBACK_PATH}"


class OAuthBroker:
    def __init__(
        self,
        session: Session,
        *,
        oauth_client_factory: Callable[[], MetaOAuthClient] = MetaOAuthClient,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.sessions = OAuthLinkSessionsRepository(session)
        self.users = UsersRepository(session)
        self.oauth_client_factory = oauth_client_factory
        self.clock = clock

    def _is_expired(self, link_session: OAuthLinkSession) -> bool:
        return _as_utc(link_session.expires_at) < self.clock()

    def start(self, *, user_id: str, origin: str, request_base_url: str) -> dict:
        secret = _require_secret()
        oauth_client = self.oauth_client_factory()
        now = self.clock()
        purged = self.sessions.purge_expired(now)
        if purged:
            logger.debug("Purged expired link sessions", extra={"count": purged})

        link_session = self.sessions.create(
            id=secrets.token_hex(16),
            user_id=user_id,
            provider="meta",
            origin=origin,
            nonce=secrets.token_hex(16),
            expires_at=now + timedelta(seconds=settings.OAUTH_LINK_SESSION_TTL_SECONDS),
        )
        state = encode_state(link_session.id, link_session.nonce, secret=secret)
        auth_url = oauth_client.build_authorization_url(
            redirect_uri=broker_redirect_uri(request_base_url), state=state
        )
        logger.info("Started Meta link session", extra={"user_id": user_id, "link_session_id": link_session.id})
        return {
            "authUrl": auth_url,
            "linkSessionId": link_session.id,
            "expiresAt": epoch_millis(link_session.expires_at),
        }

    def handle_callback(
        self,
        *,
        code: Optional[str],
        state: Optional[str],
        error: Optional[str],
        request_base_url: str,
    ) -> CallbackOutcome:
        if error:
            return CallbackOutcome(None, f"OAuth error: {error}")
        if not code or not state:
            return CallbackOutcome(None, "Missing OAuth parameters")

        try:
            link_session_id, nonce = decode_state(state)
        except OAuthBrokerError as exc:
            logger.warning("Rejected OAuth callback state", extra={"reason": str(exc)})
            return CallbackOutcome(None, str(exc))

        link_session = self.sessions.get(link_session_id)
        if link_session is None:
            return CallbackOutcome(None, "Link session not found or expired")
        if not hmac.compare_digest(link_session.nonce.encode("utf-8"), nonce.encode("utf-8")):
            return CallbackOutcome(None, "Invalid session nonce")
        if self._is_expired(link_session):
            self.sessions.delete(link_session_id)
            return CallbackOutcome(None, "Link session expired")

        try:
            token = self.oauth_client_factory().exchange_code(
                code=code, redirect_uri=broker_redirect_uri(request_base_url)
            )
        except (MetaOAuthError, MetaOAuthConfigError) as exc:
            logger.exception("Meta token exchange failed", extra={"link_session_id": link_session_id})
            link_session = self.sessions.update(link_session_id, error=str(exc))
            return CallbackOutcome(link_session, "OAuth callback failed")

        self.users.update(
            link_session.user_id,
            meta_access_token=token.access_token,
            meta_account_id=token.meta_user_id,
            meta_account_name=token.meta_user_name,
            meta_connected_at=self.clock(),
        )
        link_session = self.sessions.update(link_session_id, completed=True, error=None)
        logger.info("Completed Meta link session", extra={"link_session_id": link_session_id})
        return CallbackOutcome(link_session)

    def status(self, link_session_id: str) -> dict:
        link_session = self.sessions.get(link_session_id)
        if link_session is None:
            raise OAuthBrokerError("Link session not found", status_code=404)
        if self._is_expired(link_session):
            self.sessions.delete(link_session_id)
            raise OAuthBrokerError("Link session expired", status_code=410)
        return {
            "completed": bool(link_session.completed),
            "error": link_session.error,
            "expiresAt": epoch_millis(link_session.expires_at),
        }


def _script_json(value: object) -> str:
    # Keep the payload from closing the surrounding <script> element.
    return json.dumps(value).replace("<", "\\u003c").replace(">", "\\u003e").replace("&", "\\u0026")


def render_callback_page(outcome: CallbackOutcome) -> str:
    link_session = outcome.link_session
    success = outcome.success
    message = {
        "type": "oauth-complete",
        "success": success,
        "linkSessionId": link_session.id if link_session is not None else None,
        "error": outcome.error or (link_session.error if link_session is not None else None),
    }
    target_origin = link_session.origin if link_session is not None else "*"

    if success:
        title = "Connection Successful"
        body = "Your Meta Ads account has been connected successfully."
    else:
        title = "Connection Failed"
        body = outcome.error or "An unexpected error occurred."

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Meta {html.escape(title)}</title>
  <style>
    body {{ font-family: system-ui, sans-serif; display: flex; align-items: center;
           justify-content: center; min-height: 100vh; margin: 0; }}
    .container {{ text-align: center; padding: 2rem; }}
  </style>
</head>
<body>
  <div class="container">
    <h1>{html.escape(title)}</h1>
    <p>{html.escape(body)}</p>
    <p>Closing window...</p>
  </div>
  <script>
    if (window.opener) {{
      try {{
        window.opener.postMessage({_script_json(message)}, {_script_json(target_origin)});
      }} catch (err) {{
        console.error("Failed to send postMessage", err);
      }}
    }}
    setTimeout(function () {{ window.close(); }}, 2000);
  </script>
</body>
</html>
"""
