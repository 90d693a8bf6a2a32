from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlencode

import httpx

from creative_strategist.config import settings

logger = logging.getLogger("meta.oauth")


class MetaOAuthConfigError(RuntimeError):
    pass


class MetaOAuthError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None, error_payload: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_payload = error_payload


@dataclass
class MetaTokenResult:
    access_token: str
    meta_user_id: str
    meta_user_name: Optional[str] = None
    email: Optional[str] = None


class MetaOAuthClient:
    """Authorization-code flow against the Meta dialog and Graph token endpoints."""

    def __init__(
        self,
        *,
        app_id: Optional[str] = None,
        app_secret: Optional[str] = None,
        api_version: Optional[str] = None,
        graph_base_url: Optional[str] = None,
        dialog_base_url: Optional[str] = None,
        scopes: Optional[list[str]] = None,
    ) -> None:
        self.app_id = app_id if app_id is not None else settings.META_APP_ID
        self.app_secret = app_secret if app_secret is not None else settings.META_APP_SECRET
        if not self.app_id or not self.app_secret:
            raise MetaOAuthConfigError("META_APP_ID and META_APP_SECRET are required for Meta OAuth.")
        self.api_version = api_version or settings.META_GRAPH_API_VERSION
        self.graph_base_url = (graph_base_url or settings.META_GRAPH_API_BASE_URL).rstrip("/")
        self.dialog_base_url = (dialog_base_url or settings.META_OAUTH_DIALOG_URL).rstrip("/")
        self.scopes = scopes if scopes is not None else list(settings.META_OAUTH_SCOPES)
        self.timeout = httpx.Timeout(30.0)

    def build_authorization_url(self, *, redirect_uri: str, state: str) -> str:
        params = {
            "client_id": self.app_id,
            "redirect_uri": redirect_uri,
            "scope": ",".join(self.scopes),
            "response_type": "code",
            "state": state,
            "display": "popup",
        }
        return f"{self.dialog_base_url}/{self.api_version}/dialog/oauth?{urlencode(params)}"

    def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.graph_base_url}/{self.api_version}/{path.lstrip('/')}"
        try:
            response = httpx.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            try:
                error_payload = response.json()
            except ValueError:
                error_payload = {"text": response.text}
            upstream = error_payload.get("error", {}).get("message") if isinstance(error_payload, dict) else None
            raise MetaOAuthError(
                f"Meta OAuth failed: {upstream or f'HTTP {response.status_code}'}",
                status_code=response.status_code,
                error_payload=error_payload,
            ) from exc
        except httpx.RequestError as exc:
            raise MetaOAuthError(f"Meta OAuth failed: {exc}") from exc
        try:
            payload = response.json()
        except ValueError as exc:
            raise MetaOAuthError("Meta OAuth failed: non-JSON response") from exc
        if not isinstance(payload, dict):
            raise MetaOAuthError("Meta OAuth failed: unexpected response shape")
        return payload

    def exchange_code(self, *, code: str, redirect_uri: str) -> MetaTokenResult:
        token_payload = self._get(
            "oauth/access_token",
            {
                "client_id": self.app_id,
                "client_secret": self.app_secret,
                "redirect_uri": redirect_uri,
                "code": code,
            },
        )
        access_token = token_payload.get("access_token")
        if not access_token:
            raise MetaOAuthError("No access token received from Meta", error_payload=token_payload)

        profile = self.get_profile(access_token)
        meta_user_id = profile.get("id")
        if not meta_user_id:
            raise MetaOAuthError("Meta profile lookup returned no id", error_payload=profile)
        logger.info("Meta token exchanged", extra={"meta_user_id": meta_user_id})
        return MetaTokenResult(
            access_token=access_token,
            meta_user_id=str(meta_user_id),
            meta_user_name=profile.get("name"),
            email=profile.get("email"),
        )

    def get_profile(self, access_token: str) -> dict[str, Any]:
        return self._get("me", {"access_token": access_token, "fields": "id,name,email"})

    def validate_token(self, access_token: str) -> bool:
        try:
            self._get("me/adaccounts", {"access_token": access_token, "fields": "id,name", "limit": 1})
        except MetaOAuthError:
            logger.info("Meta token failed validation")
            return False
        return True

    def list_ad_accounts(self, access_token: str) -> list[dict[str, Any]]:
        payload = self._get(
            "me/adaccounts", {"access_token": access_token, "fields": "id,name,currency,timezone_name"}
        )
        data = payload.get("data")
        return data if isinstance(data, list) else []
