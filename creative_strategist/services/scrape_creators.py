from __future__ import annotations

import concurrent.futures
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import httpx

from creative_strategist.config import settings
from creative_strategist.db.enums import ConceptStatusEnum

logger = logging.getLogger("scrape.creators")

PLATFORMS = ("facebook", "instagram", "tiktok")
DEFAULT_CTA = "Learn More"
_HOOK_MAX_CHARS = 100
_SENTENCE_BREAK = re.compile(r"[.!?\n]")
_CTA_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"link in bio",
        r"shop now",
        r"learn more",
        r"get yours",
        r"click link",
        r"order now",
        r"buy now",
        r"sign up",
    )
]


class ScrapeCreatorsConfigError(RuntimeError):
    pass


class ScrapeCreatorsError(RuntimeError):
    pass


@dataclass
class ScrapedConcept:
    platform: str
    title: str
    description: str
    hook: str
    visual_style: str
    cta: str
    engagement_score: float
    thumbnail_url: Optional[str] = None
    post_url: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict)

    def to_concept_row(self) -> dict[str, Any]:
        raw = self.raw
        return {
            "title": self.title,
            "description": self.description,
            "thumbnail": self.thumbnail_url,
            "url": self.post_url,
            "owner": raw.get("page_name") or raw.get("username") or raw.get("author"),
            "hooks": [self.hook] if self.hook else [],
            "statistics": {
                "views": _count(raw, "views", "view_count"),
                "likes": _count(raw, "likes", "like_count"),
                "comments": _count(raw, "comments", "comment_count"),
                "shares": _count(raw, "shares", "share_count"),
                "engagementScore": self.engagement_score,
                "cta": self.cta,
            },
            "filter": {
                "platform": self.platform,
                "format": self.visual_style,
                "isVideo": "video" in self.visual_style.lower(),
                "isAd": self.platform == "facebook",
            },
            "status": ConceptStatusEnum.discovered,
        }


def extract_hook(text: Optional[str]) -> str:
    if not text:
        return ""
    first_sentence = _SENTENCE_BREAK.split(text, maxsplit=1)[0]
    return first_sentence[:_HOOK_MAX_CHARS].strip()


def extract_cta(text: Optional[str]) -> str:
    if not text:
        return DEFAULT_CTA
    for pattern in _CTA_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(0)
    return DEFAULT_CTA


def _count(item: dict[str, Any], *keys: str) -> float:
    for key in keys:
        value = item.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value:
            return float(value)
    return 0.0


def engagement_score(item: dict[str, Any]) -> float:
    likes = _count(item, "likes", "like_count")
    comments = _count(item, "comments", "comment_count")
    shares = _count(item, "shares", "share_count")
    views = _count(item, "views", "view_count") or 1.0
    rate = (likes + comments * 2 + shares * 3) / views * 100
    return min(round(rate, 1), 100.0)


def _items(payload: Any, key: str) -> list[dict[str, Any]]:
    if not isinstance(payload, dict):
        return []
    items = payload.get(key)
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def parse_facebook_ads(payload: Any) -> list[ScrapedConcept]:
    concepts = []
    for ad in _items(payload, "ads"):
        body = ad.get("body") or ad.get("description") or ""
        call_to_action = ad.get("call_to_action") if isinstance(ad.get("call_to_action"), dict) else {}
        concepts.append(
            ScrapedConcept(
                platform="facebook",
                title=ad.get("headline") or ad.get("title") or "Facebook Ad Concept",
                description=ad.get("description") or ad.get("body") or "",
                hook=extract_hook(body),
                visual_style=ad.get("creative_type") or "video",
                cta=call_to_action.get("value") or ad.get("cta") or DEFAULT_CTA,
                engagement_score=engagement_score(ad),
                thumbnail_url=ad.get("thumbnail_url") or ad.get("image_url"),
                post_url=ad.get("ad_url") or ad.get("link"),
                raw=ad,
            )
        )
    return concepts


def parse_instagram_posts(payload: Any) -> list[ScrapedConcept]:
    concepts = []
    for post in _items(payload, "posts"):
        caption = post.get("caption") or ""
        concepts.append(
            ScrapedConcept(
                platform="instagram",
                title=caption.split("\n")[0] or "Instagram Post Concept",
                description=caption,
                hook=extract_hook(caption),
                visual_style=post.get("media_type") or "image",
                cta=extract_cta(caption),
                engagement_score=engagement_score(post),
                thumbnail_url=post.get("thumbnail_url") or post.get("media_url"),
                post_url=post.get("permalink"),
                raw=post,
            )
        )
    return concepts


def parse_tiktok_videos(payload: Any) -> list[ScrapedConcept]:
    concepts = []
    for video in _items(payload, "videos"):
        description = video.get("description") or ""
        concepts.append(
            ScrapedConcept(
                platform="tiktok",
                title=description[:50] or "TikTok Video Concept",
                description=description,
                hook=extract_hook(description),
                visual_style="short-form video",
                cta=extract_cta(description),
                engagement_score=engagement_score(video),
                thumbnail_url=video.get("cover_url") or video.get("thumbnail_url"),
                post_url=video.get("share_url") or video.get("video_url"),
                raw=video,
            )
        )
    return concepts


class ScrapeCreatorsClient:
    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.SCRAPE_CREATORS_API_KEY
        if not self.api_key:
            raise ScrapeCreatorsConfigError("SCRAPE_CREATORS_API_KEY not configured")
        self.base_url = (base_url or settings.SCRAPE_CREATORS_BASE_URL).rstrip("/")
        self.timeout = httpx.Timeout(timeout_seconds or settings.SCRAPE_CREATORS_TIMEOUT_SECONDS)

    def _get(self, path: str, params: dict[str, Any]) -> Any:
        try:
            response = httpx.get(
                f"{self.base_url}/{path.lstrip('/')}",
                params=params,
                headers={"x-api-key": self.api_key},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ScrapeCreatorsError(f"ScrapeCreators {path} failed ({exc.response.status_code})") from exc
        except httpx.RequestError as exc:
            raise ScrapeCreatorsError(f"ScrapeCreators {path} request failed: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise ScrapeCreatorsError(f"ScrapeCreators {path} returned non-JSON") from exc

    def fetch_facebook(self, query: str) -> list[ScrapedConcept]:
        payload = self._get(
            "facebook/adLibrary/search/ads", {"query": query, "status": "ACTIVE", "media_type": "VIDEO"}
        )
        return parse_facebook_ads(payload)

    def fetch_instagram(self, query: str) -> list[ScrapedConcept]:
        return parse_instagram_posts(self._get("instagram/reels/search", {"query": query}))

    def fetch_tiktok(self, query: str) -> list[ScrapedConcept]:
        payload = self._get(
            "tiktok/search/top",
            {"query": query, "publish_time": "last-3-months", "sort_by": "most-liked"},
        )
        return parse_tiktok_videos(payload)

    def fetch_concepts(self, keywords: list[str], niche: Optional[str] = None) -> dict[str, list[ScrapedConcept]]:
        """Query every platform in parallel; a platform that fails contributes an empty list."""
        terms = [k.strip() for k in keywords if isinstance(k, str) and k.strip()]
        if niche and niche.strip() and niche.strip() not in terms:
            terms.append(niche.strip())
        query = " ".join(terms)

        fetchers: dict[str, Callable[[str], list[ScrapedConcept]]] = {
            "facebook": self.fetch_facebook,
            "instagram": self.fetch_instagram,
            "tiktok": self.fetch_tiktok,
        }
        results: dict[str, list[ScrapedConcept]] = {platform: [] for platform in PLATFORMS}
        with concurrent.futures.ThreadPoolExecutor(max_workers=len(fetchers)) as pool:
            futures = {pool.submit(fetch, query): platform for platform, fetch in fetchers.items()}
            for future in concurrent.futures.as_completed(futures):
                platform = futures[future]
                try:
                    results[platform] = future.result()
                except Exception:  # noqa: BLE001
                    logger.exception("ScrapeCreators fetch failed", extra={"platform": platform})
                    results[platform] = []
        logger.info(
            "ScrapeCreators fetch complete",
            extra={platform: len(items) for platform, items in results.items()},
        )
        return results
