from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import httpx

from creative_strategist.config import settings
from creative_strategist.db.enums import ConceptStatusEnum

logger = logging.getLogger("research.webhooks")

RESEARCH_TYPES = ("creative", "customer")


class ResearchWebhookConfigError(RuntimeError):
    pass


class ResearchWebhookError(RuntimeError):
    pass


@dataclass
class SearchResult:
    """Concept rows parsed from a search webhook reply, ready to persist."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    message: str = "Search completed!"
    success: bool = True
    single_lookup: bool = False
    reported_count: int = 0


def _filters(data: dict[str, Any]) -> dict[str, Any]:
    value = data.get("filters")
    return value if isinstance(value, dict) else {}


def _platform(data: dict[str, Any], default: str) -> str:
    filters = _filters(data)
    raw = filters.get("platform") or data.get("platform") or default
    return str(raw).lower()


def _filter_blob(data: dict[str, Any], platform: str, *, flat: bool = False) -> dict[str, Any]:
    filters = _filters(data)
    return {
        "platform": platform,
        "format": filters.get("format") or (data.get("format") if flat else None),
        "industry": filters.get("industry") or (data.get("industry") if flat else None),
        "language": filters.get("language"),
        "isVideo": filters.get("is_video"),
        "isAd": filters.get("is_ad"),
    }


def _text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _statistics(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, dict) else {}


def _workflow_row(data: dict[str, Any], query: str, *, single: bool = False) -> dict[str, Any]:
    """Row for an item emitted by the search workflow (`{json: {...}}` or a bare dict)."""
    platform = _platform(data, "website") if single else str(_filters(data).get("platform") or "website").lower()
    statistics = _statistics(data.get("statistics"))
    if not single:
        statistics["originalCreatedAt"] = data.get("created_at")
        statistics["isActive"] = _filters(data).get("is_active")
    return {
        "title": _text(data.get("title")) or "",
        "description": _text(data.get("description")) or "",
        "thumbnail": _text(data.get("thumbnail")),
        "url": _text(data.get("url")) or query,
        "owner": _text(data.get("owner")),
        "statistics": statistics,
        "filter": _filter_blob(data, platform),
        "status": ConceptStatusEnum.pending,
    }


def _flat_concept_row(concept: dict[str, Any]) -> dict[str, Any]:
    platform = _platform(concept, str(concept.get("conceptType") or "unknown"))
    return {
        "title": _text(concept.get("title")) or "",
        "description": _text(concept.get("description")) or "",
        "thumbnail": _text(concept.get("thumbnailUrl") or concept.get("thumbnail_url") or concept.get("thumbnail")),
        "url": _text(concept.get("postUrl") or concept.get("post_url") or concept.get("url")),
        "owner": _text(concept.get("owner") or concept.get("brandName")),
        "statistics": {
            "views": concept.get("views"),
            "likes": concept.get("likes"),
            "comments": concept.get("comments"),
            "shares": concept.get("shares"),
            "engagementScore": concept.get("engagementScore") or concept.get("engagement_score"),
        },
        "filter": _filter_blob(concept, platform, flat=True),
        "status": ConceptStatusEnum.pending,
    }


def _unwrap(item: Any) -> Optional[dict[str, Any]]:
    if not isinstance(item, dict):
        return None
    inner = item.get("json")
    return inner if isinstance(inner, dict) else item


def _rows_from_items(items: list[Any], build: Callable[[dict[str, Any]], dict[str, Any]]) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for index, item in enumerate(items):
        data = _unwrap(item)
        if data is None:
            logger.warning("Skipping malformed search item", extra={"item_type": type(item).__name__})
            continue
        try:
            rows.append(build(data))
        except Exception:
            logger.exception("Failed to parse search item", extra={"item_index": index})
    return rows


def normalize_search_response(payload: Any, *, query: str) -> SearchResult:
    """
    Map every reply shape the search workflow produces onto concept rows.

    Handles `{"status": "success", "data": [...]}`, a bare list of items, a single
    `{"status": "success", "data": {...}}` URL lookup and `{"concepts": [...]}`. Anything
    else is passed through with its own success/message/count and no rows.
    """
    if isinstance(payload, dict) and payload.get("status") == "success":
        data = payload.get("data")
        if isinstance(data, list) and data:
            return SearchResult(
                rows=_rows_from_items(data, lambda item: _workflow_row(item, query)),
                message=payload.get("message") or "Search completed!",
            )
        if isinstance(data, dict) and data:
            return SearchResult(
                rows=_rows_from_items([data], lambda item: _workflow_row(item, query, single=True)),
                message=payload.get("message") or "Search completed!",
                single_lookup=True,
            )

    if isinstance(payload, list) and payload:
        return SearchResult(rows=_rows_from_items(payload, lambda item: _workflow_row(item, query)))

    if isinstance(payload, dict) and isinstance(payload.get("concepts"), list):
        rows = _rows_from_items(payload["concepts"], _flat_concept_row)
        return SearchResult(rows=rows, message=payload.get("message") or "Search completed!")

    if isinstance(payload, dict):
        count = payload.get("count")
        return SearchResult(
            message=payload.get("message") or "Search request processed.",
            success=payload.get("success") is not False,
            reported_count=count if isinstance(count, int) else 0,
        )
    return SearchResult(message="Search request processed.")


class ResearchWebhookClient:
    """Client for the n8n research workflows (concept search and research discovery)."""

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self.base_url = (base_url or settings.N8N_BASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.N8N_API_KEY
        if not self.api_key:
            raise ResearchWebhookConfigError("N8N_API_KEY not configured")
        self.timeout = httpx.Timeout(timeout_seconds or settings.N8N_TIMEOUT_SECONDS)

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    @staticmethod
    def _timestamp() -> str:
        return datetime.now(timezone.utc).isoformat()

    def search(self, *, user_id: str, query: str, search_type: Optional[str] = None) -> SearchResult:
        params = {
            "userId": user_id,
            "query": query,
            "type": search_type or "general",
            "timestamp": self._timestamp(),
        }
        try:
            response = httpx.get(
                f"{self.base_url}/search", params=params, headers=self._headers(), timeout=self.timeout
            )
        except httpx.RequestError as exc:
            raise ResearchWebhookError("Failed to connect to search service. Please try again.") from exc

        logger.info("Search webhook replied", extra={"status_code": response.status_code, "user_id": user_id})
        try:
            payload = json.loads(response.text)
        except ValueError:
            logger.warning("Search webhook returned a non-JSON body", extra={"status_code": response.status_code})
            return SearchResult(message="Search request sent successfully.")
        return normalize_search_response(payload, query=query)

    def discover(self, *, user_id: str, research_type: str, knowledge_base: dict[str, Any]) -> dict[str, Any]:
        if research_type not in RESEARCH_TYPES:
            raise ValueError(f"Unknown research type: {research_type}")
        body = {
            "type": research_type,
            "userId": user_id,
            "knowledgeBase": knowledge_base,
            "timestamp": self._timestamp(),
        }
        try:
            response = httpx.post(
                f"{self.base_url}/recent-research",
                content=json.dumps(body, default=str),
                headers={**self._headers(), "Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except httpx.RequestError as exc:
            raise ResearchWebhookError("Failed to connect to discovery service. Please try again.") from exc

        logger.info(
            "Discovery webhook replied",
            extra={"status_code": response.status_code, "research_type": research_type, "user_id": user_id},
        )
        try:
            payload = json.loads(response.text)
        except ValueError:
            ok = response.is_success
            label = "Creative" if research_type == "creative" else "Customer"
            return {
                "success": ok,
                "message": f"{label} research discovery initiated."
                if ok
                else "Discovery request sent but response was unexpected.",
            }
        if not isinstance(payload, dict):
            return {"success": False, "message": "Discovery request processed."}
        return {
            "success": payload.get("status") == "success",
            "message": payload.get("message") or "Discovery request processed.",
        }
