from __future__ import annotations

from typing import Any, Optional

from creative_strategist.schemas.concepts import ConceptCreateRequest, ConceptUpdateRequest

_STAT_FIELDS = ("likes", "views", "shares")


def _count(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def replies_count(statistics: dict[str, Any]) -> Optional[float]:
    replies = _count(statistics.get("replies"))
    return replies if replies is not None else _count(statistics.get("comments"))


def engagement_rate(statistics: dict[str, Any]) -> Optional[float]:
    views = _count(statistics.get("views"))
    if not views:
        return None
    likes = _count(statistics.get("likes")) or 0
    shares = _count(statistics.get("shares")) or 0
    replies = replies_count(statistics) or 0
    return (likes + replies + shares) / views


def engagement_score(statistics: dict[str, Any]) -> Optional[float]:
    stored = _count(statistics.get("engagementScore"))
    if stored is not None:
        return stored
    views = _count(statistics.get("views")) or 0
    likes = _count(statistics.get("likes")) or 0
    if not views and not likes:
        return None
    shares = _count(statistics.get("shares")) or 0
    return min(100, round(likes / 10000 + views / 100000 + shares / 1000))


def concept_columns(payload: ConceptCreateRequest) -> dict[str, Any]:
    """Map the research-center card shape onto concept columns."""
    statistics = {
        "likes": payload.likes,
        "views": payload.views,
        "shares": payload.shares,
        "replies": payload.comments,
    }
    if payload.engagementScore is not None:
        statistics["engagementScore"] = payload.engagementScore
    return {
        "title": payload.title,
        "description": payload.description,
        "thumbnail": payload.thumbnailUrl,
        "video_url": payload.videoUrl,
        "url": payload.postUrl,
        "owner": payload.brandName,
        "hooks": payload.hooks,
        "statistics": statistics,
        "filter": {
            "platform": payload.platform.lower() if payload.platform else None,
            "format": payload.format,
            "industry": payload.industry,
            "language": payload.language,
            "isVideo": payload.isVideo,
            "isAd": payload.isAd,
        },
        "status": payload.status,
    }


def concept_update_columns(payload: ConceptUpdateRequest, current_statistics: dict[str, Any]) -> dict[str, Any]:
    fields = payload.model_fields_set
    columns: dict[str, Any] = {}
    for key in ("title", "description", "hooks", "status"):
        if key in fields and getattr(payload, key) is not None:
            columns[key] = getattr(payload, key)

    statistics = dict(current_statistics or {})
    touched = False
    for key in _STAT_FIELDS:
        if key in fields:
            statistics[key] = getattr(payload, key)
            touched = True
    if "comments" in fields:
        statistics["replies"] = payload.comments
        touched = True
    if "engagementScore" in fields:
        statistics["engagementScore"] = payload.engagementScore
        touched = True
    if touched:
        columns["statistics"] = statistics
    return columns
