from __future__ import annotations

import json
import logging
from datetime import date, timedelta
from typing import Any, Optional

import httpx

from creative_strategist.config import settings

logger = logging.getLogger("meta.ads")

# Checked in order; the first type present wins so one conversion is never counted twice.
PURCHASE_ACTION_TYPES = (
    "omni_purchase",
    "purchase",
    "offsite_conversion.fb_pixel_purchase",
    "onsite_conversion.purchase",
)
DATE_RANGE_DAYS = {
    "last_7_days": 7,
    "last_14_days": 14,
    "last_30_days": 30,
    "last_90_days": 90,
}
DEFAULT_DATE_RANGE = "last_30_days"
PERFORMANCE_KEYS = (
    "spend",
    "impressions",
    "clicks",
    "purchases",
    "revenue",
    "roas",
    "cpm",
    "ctr",
    "cpc",
    "hookRate",
    "thumbstopRate",
)

_INSIGHT_FIELDS = "spend,impressions,clicks,actions,action_values,purchase_roas,cpm,ctr,cpc"
_VIDEO_FIELDS = (
    "video_play_actions,video_p25_watched_actions,video_p50_watched_actions,"
    "video_p75_watched_actions,video_p100_watched_actions"
)
_PAGE_LIMIT = "100"


class MetaAdsConfigError(RuntimeError):
    pass


class MetaAdsError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None, error_payload: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_payload = error_payload


def normalize_ad_account_id(ad_account_id: str) -> str:
    if ad_account_id.startswith("act_"):
        return ad_account_id
    return f"act_{ad_account_id}"


def resolve_date_range(date_range: Optional[str], *, today: Optional[date] = None) -> dict[str, str]:
    """Resolve a preset into Graph `time_range`; `until` is yesterday because Meta reports lag a day."""
    today = today or date.today()
    days = DATE_RANGE_DAYS.get(date_range or "", DATE_RANGE_DAYS[DEFAULT_DATE_RANGE])
    since = today - timedelta(days=days)
    until = today - timedelta(days=1)
    return {"since": since.isoformat(), "until": until.isoformat()}


def _to_float(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return 0.0
    return 0.0


def _parse_action_list(value: Any) -> dict[str, float]:
    if not isinstance(value, list):
        return {}
    out: dict[str, float] = {}
    for item in value:
        if not isinstance(item, dict):
            continue
        action_type = item.get("action_type")
        if not isinstance(action_type, str) or not action_type.strip():
            continue
        if item.get("value") is None:
            continue
        out[action_type] = _to_float(item.get("value"))
    return out


def _first_purchase_value(action_map: dict[str, float]) -> float:
    for action_type in PURCHASE_ACTION_TYPES:
        value = action_map.get(action_type)
        if value:
            return value
    return 0.0


def extract_purchases(actions: Any) -> float:
    return _first_purchase_value(_parse_action_list(actions))


def extract_purchase_value(action_values: Any, purchase_roas: Any = None, spend: Any = None) -> float:
    """Revenue from `action_values`, falling back to purchase ROAS x spend when no value is reported."""
    revenue = _first_purchase_value(_parse_action_list(action_values))
    if revenue or purchase_roas is None or spend is None:
        return revenue

    if isinstance(purchase_roas, list):
        roas = _first_purchase_value(_parse_action_list(purchase_roas))
    else:
        roas = _to_float(purchase_roas)
    if roas > 0:
        return _to_float(spend) * roas
    return 0.0


def _first_action_value(value: Any) -> float:
    if isinstance(value, list) and value and isinstance(value[0], dict):
        return _to_float(value[0].get("value"))
    return 0.0


def calculate_metrics(data: dict[str, Any]) -> dict[str, float]:
    spend = _to_float(data.get("spend"))
    revenue = _to_float(data.get("revenue"))
    impressions = _to_float(data.get("impressions"))
    clicks = _to_float(data.get("clicks"))
    hook_views = _first_action_value(data.get("video_p25_watched_actions"))
    video_plays = _first_action_value(data.get("video_play_actions"))
    return {
        "roas": revenue / spend if revenue > 0 and spend > 0 else 0.0,
        "cpm": spend / impressions * 1000 if impressions > 0 and spend > 0 else 0.0,
        "ctr": clicks / impressions * 100 if impressions > 0 and clicks > 0 else 0.0,
        "cpc": spend / clicks if clicks > 0 and spend > 0 else 0.0,
        "hookRate": hook_views / impressions * 100 if impressions > 0 else 0.0,
        "thumbstopRate": video_plays / impressions * 100 if impressions > 0 else 0.0,
    }


def summarize_insights(insights: Optional[dict[str, Any]]) -> dict[str, Any]:
    """Flatten one Graph insights row into spend/volume/purchase numbers plus derived metrics."""
    insights = insights or {}
    performance: dict[str, Any] = {
        "spend": _to_float(insights.get("spend")),
        "impressions": int(_to_float(insights.get("impressions"))),
        "clicks": int(_to_float(insights.get("clicks"))),
        "purchases": extract_purchases(insights.get("actions")),
        "revenue": extract_purchase_value(
            insights.get("action_values"), insights.get("purchase_roas"), insights.get("spend")
        ),
    }
    metric_input = {**insights, **performance}
    performance.update(calculate_metrics(metric_input))
    return performance


class MetaAdsClient:
    def __init__(self, *, access_token: str, api_version: str, base_url: str | None = None) -> None:
        self.access_token = access_token
        self.api_version = api_version
        self.base_url = (base_url or "https://graph.facebook.com").rstrip("/")
        self.timeout = httpx.Timeout(30.0)

    @classmethod
    def for_access_token(cls, access_token: Optional[str]) -> "MetaAdsClient":
        if not access_token:
            raise MetaAdsConfigError("A connected Meta account is required to use Meta Ads integration.")
        return cls(
            access_token=access_token,
            api_version=settings.META_GRAPH_API_VERSION,
            base_url=settings.META_GRAPH_API_BASE_URL,
        )

    def _request(self, method: str, path: str, *, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        url = f"{self.base_url}/{self.api_version}/{path.lstrip('/')}"
        merged_params = {**(params or {}), "access_token": self.access_token}
        logger.debug("Meta Graph request", extra={"path": path, "params": sorted((params or {}).keys())})
        try:
            response = httpx.request(method, url, params=merged_params, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            error_payload: Any = None
            try:
                error_payload = response.json()
            except ValueError:
                error_payload = {"text": response.text}
            upstream = error_payload.get("error", {}).get("message") if isinstance(error_payload, dict) else None
            message = f"Meta Graph API error ({response.status_code})"
            if upstream:
                message = f"{message}: {upstream}"
            raise MetaAdsError(message, status_code=response.status_code, error_payload=error_payload) from exc
        except httpx.RequestError as exc:
            raise MetaAdsError(f"Meta Graph API request failed: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise MetaAdsError("Meta Graph API returned a non-JSON response.") from exc

    def _get_data(self, path: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        payload = self._request("GET", path, params=params)
        data = payload.get("data") if isinstance(payload, dict) else None
        return data if isinstance(data, list) else []

    def _level_insights(
        self,
        *,
        ad_account_id: str,
        level: str,
        id_field: str,
        ids: list[str],
        fields: str,
        time_range: dict[str, str],
    ) -> dict[str, dict[str, Any]]:
        rows = self._get_data(
            f"{normalize_ad_account_id(ad_account_id)}/insights",
            {
                "level": level,
                "fields": f"{id_field},{fields}",
                "action_breakdowns": "action_type",
                "time_range": json.dumps(time_range),
                "filtering": json.dumps([{"field": f"{level}.id", "operator": "IN", "value": ids}]),
                "limit": _PAGE_LIMIT,
            },
        )
        return {str(row.get(id_field)): row for row in rows if row.get(id_field)}

    def get_ad_accounts(self) -> list[dict[str, Any]]:
        return self._get_data("me/adaccounts", {"fields": "id,name,currency,timezone_name,spend,account_status"})

    def get_campaigns(self, ad_account_id: str, date_range: Optional[str] = None) -> list[dict[str, Any]]:
        time_range = resolve_date_range(date_range)
        campaigns = self._get_data(
            f"{normalize_ad_account_id(ad_account_id)}/campaigns",
            {"fields": "id,name,objective,status", "limit": _PAGE_LIMIT},
        )
        if not campaigns:
            return []
        try:
            insights = self._level_insights(
                ad_account_id=ad_account_id,
                level="campaign",
                id_field="campaign_id",
                ids=[c["id"] for c in campaigns],
                fields=_INSIGHT_FIELDS,
                time_range=time_range,
            )
        except MetaAdsError:
            # Campaigns without delivery in the window still render, with zeroed metrics.
            logger.warning("Campaign insights unavailable", extra={"ad_account_id": ad_account_id}, exc_info=True)
            insights = {}
        return [{**campaign, **summarize_insights(insights.get(campaign["id"]))} for campaign in campaigns]

    def get_adsets(
        self,
        ad_account_id: str,
        campaign_id: Optional[str] = None,
        date_range: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        time_range = resolve_date_range(date_range)
        params: dict[str, Any] = {
            "fields": "id,name,status,campaign_id,targeting,daily_budget,bid_strategy",
            "limit": _PAGE_LIMIT,
        }
        if campaign_id:
            params["filtering"] = json.dumps(
                [{"field": "adset.campaign_id", "operator": "IN", "value": [campaign_id]}]
            )
        adsets = self._get_data(f"{normalize_ad_account_id(ad_account_id)}/adsets", params)
        if not adsets:
            return []
        insights = self._level_insights(
            ad_account_id=ad_account_id,
            level="adset",
            id_field="adset_id",
            ids=[a["id"] for a in adsets],
            fields=_INSIGHT_FIELDS,
            time_range=time_range,
        )
        return [{**adset, **summarize_insights(insights.get(adset["id"]))} for adset in adsets]

    def get_ads(
        self,
        ad_account_id: str,
        adset_id: Optional[str] = None,
        date_range: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        time_range = resolve_date_range(date_range)
        params: dict[str, Any] = {
            "fields": "id,name,status,adset_id,creative{id,thumbnail_url,object_type,title,body,image_url}",
            "limit": _PAGE_LIMIT,
        }
        if adset_id:
            params["filtering"] = json.dumps([{"field": "ad.adset_id", "operator": "IN", "value": [adset_id]}])
        ads = self._get_data(f"{normalize_ad_account_id(ad_account_id)}/ads", params)
        if not ads:
            return []
        insights = self._level_insights(
            ad_account_id=ad_account_id,
            level="ad",
            id_field="ad_id",
            ids=[a["id"] for a in ads],
            fields=f"{_INSIGHT_FIELDS},{_VIDEO_FIELDS}",
            time_range=time_range,
        )
        return [{**ad, **summarize_insights(insights.get(ad["id"]))} for ad in ads]

    def get_account_insights(self, ad_account_id: str, date_range: Optional[str] = None) -> dict[str, Any]:
        rows = self._get_data(
            f"{normalize_ad_account_id(ad_account_id)}/insights",
            {
                "level": "account",
                "fields": _INSIGHT_FIELDS,
                "action_breakdowns": "action_type",
                "time_range": json.dumps(resolve_date_range(date_range)),
                "limit": "1",
            },
        )
        return summarize_insights(rows[0] if rows else None)
