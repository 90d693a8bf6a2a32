from __future__ import annotations

import logging
from typing import Any, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from creative_strategist.auth.dependencies import AuthContext, get_current_user
from creative_strategist.db.deps import get_session
from creative_strategist.db.enums import DateRangeEnum
from creative_strategist.db.repositories.meta_ads import MetaAdsRepository
from creative_strategist.db.repositories.platform_settings import PlatformSettingsRepository
from creative_strategist.llm.client import LLMClient, LLMClientConfigError
from creative_strategist.routers.deps import get_llm_client, preferred_llm_model, raise_llm_unavailable, require_user
from creative_strategist.routers.serializers import serialize_meta_ad, serialize_meta_adset, serialize_meta_campaign
from creative_strategist.schemas.meta_ads import AIInsightRequest, Benchmarks, MetaSyncRequest
from creative_strategist.services.ai_insights import (
    PerformanceInsightError,
    generate_insight,
    generate_weekly_observations,
)
from creative_strategist.services.meta_ads import (
    MetaAdsClient,
    MetaAdsConfigError,
    MetaAdsError,
    normalize_ad_account_id,
)
from creative_strategist.services.meta_sync import sync_meta_mirrors

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["meta-ads"])


def get_meta_client(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> MetaAdsClient:
    user = require_user(session, auth.user_id)
    try:
        return MetaAdsClient.for_access_token(user.meta_access_token)
    except MetaAdsConfigError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


def _raise_meta_error(exc: MetaAdsError) -> NoReturn:
    detail: Any = {"message": str(exc)}
    if exc.error_payload is not None:
        detail = {"message": str(exc), "meta": exc.error_payload}
    raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail) from exc


def _resolve_ad_account_id(session: Session, user_id: str, ad_account_id: Optional[str]) -> str:
    resolved = ad_account_id or PlatformSettingsRepository(session).get_or_create(user_id).default_ad_account_id
    if not resolved:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="adAccountId is required (or set a default ad account in platform settings).",
        )
    return resolved


def _mirror_account_filter(ad_account_id: Optional[str]) -> Optional[str]:
    # Mirrors are stored under the act_-prefixed id.
    if not ad_account_id or not ad_account_id.strip():
        return None
    return normalize_ad_account_id(ad_account_id.strip())


def _resolve_date_range(session: Session, user_id: str, date_range: Optional[str]) -> str:
    if not date_range:
        return PlatformSettingsRepository(session).get_or_create(user_id).default_date_range.value
    try:
        return DateRangeEnum(date_range).value
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid dateRange: {date_range}") from exc


@router.get("/ad-accounts")
def list_ad_accounts(client: MetaAdsClient = Depends(get_meta_client)):
    try:
        return client.get_ad_accounts()
    except MetaAdsError as exc:
        _raise_meta_error(exc)


@router.get("/campaigns")
def list_campaigns(
    adAccountId: Optional[str] = Query(default=None),
    dateRange: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    client: MetaAdsClient = Depends(get_meta_client),
):
    ad_account_id = _resolve_ad_account_id(session, auth.user_id, adAccountId)
    date_range = _resolve_date_range(session, auth.user_id, dateRange)
    try:
        return client.get_campaigns(ad_account_id, date_range)
    except MetaAdsError as exc:
        _raise_meta_error(exc)


@router.get("/adsets")
def list_adsets(
    adAccountId: Optional[str] = Query(default=None),
    campaignId: Optional[str] = Query(default=None),
    dateRange: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    client: MetaAdsClient = Depends(get_meta_client),
):
    ad_account_id = _resolve_ad_account_id(session, auth.user_id, adAccountId)
    date_range = _resolve_date_range(session, auth.user_id, dateRange)
    try:
        return client.get_adsets(ad_account_id, campaignId, date_range)
    except MetaAdsError as exc:
        _raise_meta_error(exc)


@router.get("/ads")
def list_ads(
    adAccountId: Optional[str] = Query(default=None),
    adsetId: Optional[str] = Query(default=None),
    dateRange: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    client: MetaAdsClient = Depends(get_meta_client),
):
    ad_account_id = _resolve_ad_account_id(session, auth.user_id, adAccountId)
    date_range = _resolve_date_range(session, auth.user_id, dateRange)
    try:
        return client.get_ads(ad_account_id, adsetId, date_range)
    except MetaAdsError as exc:
        _raise_meta_error(exc)


@router.get("/account-insights")
def get_account_insights(
    adAccountId: Optional[str] = Query(default=None),
    dateRange: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    client: MetaAdsClient = Depends(get_meta_client),
):
    ad_account_id = _resolve_ad_account_id(session, auth.user_id, adAccountId)
    date_range = _resolve_date_range(session, auth.user_id, dateRange)
    try:
        return client.get_account_insights(ad_account_id, date_range)
    except MetaAdsError as exc:
        _raise_meta_error(exc)


@router.post("/meta/sync")
def sync_meta(
    payload: MetaSyncRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    client: MetaAdsClient = Depends(get_meta_client),
):
    ad_account_id = _resolve_ad_account_id(session, auth.user_id, payload.adAccountId)
    date_range = _resolve_date_range(
        session, auth.user_id, payload.dateRange.value if payload.dateRange else None
    )
    try:
        counts = sync_meta_mirrors(
            session,
            user_id=auth.user_id,
            client=client,
            ad_account_id=ad_account_id,
            date_range=date_range,
        )
    except MetaAdsError as exc:
        session.rollback()
        _raise_meta_error(exc)
    return {"success": True, "adAccountId": ad_account_id, "dateRange": date_range, **counts}


@router.get("/meta/mirrors/campaigns")
def list_campaign_mirrors(
    adAccountId: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    records = MetaAdsRepository(session).list_campaigns(
        user_id=auth.user_id, ad_account_id=_mirror_account_filter(adAccountId)
    )
    return [serialize_meta_campaign(record) for record in records]


@router.get("/meta/mirrors/adsets")
def list_adset_mirrors(
    adAccountId: Optional[str] = Query(default=None),
    campaignId: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    records = MetaAdsRepository(session).list_adsets(
        user_id=auth.user_id, ad_account_id=_mirror_account_filter(adAccountId), meta_campaign_id=campaignId
    )
    return [serialize_meta_adset(record) for record in records]


@router.get("/meta/mirrors/ads")
def list_ad_mirrors(
    adAccountId: Optional[str] = Query(default=None),
    adsetId: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    records = MetaAdsRepository(session).list_ads(
        user_id=auth.user_id, ad_account_id=_mirror_account_filter(adAccountId), meta_adset_id=adsetId
    )
    return [serialize_meta_ad(record) for record in records]


@router.post("/ai-insights")
def create_ai_insight(
    payload: AIInsightRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    llm: LLMClient = Depends(get_llm_client),
):
    if payload.benchmarks is None:
        settings_record = PlatformSettingsRepository(session).get_or_create(auth.user_id)
        payload = payload.model_copy(
            update={
                "benchmarks": Benchmarks(
                    industryRoas=settings_record.benchmark_roas,
                    industryCtr=settings_record.benchmark_ctr,
                    industryCpm=settings_record.benchmark_cpm,
                )
            }
        )
    try:
        insight = generate_insight(payload, llm=llm, model=preferred_llm_model(session, auth.user_id))
    except LLMClientConfigError as exc:
        raise_llm_unavailable(exc)
    except PerformanceInsightError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return insight.model_dump()


@router.get("/weekly-observations")
def list_weekly_observations(
    adAccountId: Optional[str] = Query(default=None),
    dateRange: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
    client: MetaAdsClient = Depends(get_meta_client),
    llm: LLMClient = Depends(get_llm_client),
):
    ad_account_id = _resolve_ad_account_id(session, auth.user_id, adAccountId)
    date_range = _resolve_date_range(session, auth.user_id, dateRange)
    try:
        campaigns = client.get_campaigns(ad_account_id, date_range)
    except MetaAdsError:
        logger.exception("Weekly observations: campaign fetch failed", extra={"ad_account_id": ad_account_id})
        return []
    observations = generate_weekly_observations(
        campaigns, llm=llm, model=preferred_llm_model(session, auth.user_id)
    )
    return [observation.model_dump() for observation in observations]
