from __future__ import annotations

from enum import Enum
from typing import Optional, Type, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from creative_strategist.auth.dependencies import AuthContext, get_current_user
from creative_strategist.db.deps import get_session
from creative_strategist.db.enums import InsightCategoryEnum, ReviewStatusEnum
from creative_strategist.db.repositories.research import InsightsRepository, SourcesRepository
from creative_strategist.routers.serializers import serialize_insight
from creative_strategist.schemas.research import InsightBulkCreateRequest, InsightCreateRequest

router = APIRouter(prefix="/api/insights", tags=["insights"])

_EnumT = TypeVar("_EnumT", bound=Enum)


def _parse_filter(enum_cls: Type[_EnumT], value: Optional[str], label: str) -> Optional[_EnumT]:
    if not value:
        return None
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {label}: {value}") from exc


def _insight_row(payload: InsightCreateRequest) -> dict:
    return {
        "category": payload.category,
        "title": payload.title,
        "raw_quote": payload.rawQuote,
        "summary": payload.summary,
        "source_platform": payload.sourcePlatform,
        "source_url": payload.sourceUrl,
        "source_id": payload.sourceId,
        "status": payload.status,
    }


def _check_sources(session: Session, user_id: str, items: list[InsightCreateRequest]) -> None:
    sources = SourcesRepository(session)
    for source_id in {item.sourceId for item in items if item.sourceId}:
        if not sources.get(user_id, source_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Source not found: {source_id}")


@router.get("")
def list_insights(
    category: Optional[str] = Query(default=None),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    platform: Optional[str] = Query(default=None),
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    insights = InsightsRepository(session).list(
        auth.user_id,
        category=_parse_filter(InsightCategoryEnum, category, "category"),
        status=_parse_filter(ReviewStatusEnum, status_filter, "status"),
        platform=platform,
    )
    return [serialize_insight(insight) for insight in insights]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_insight(
    payload: InsightCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    _check_sources(session, auth.user_id, [payload])
    insight = InsightsRepository(session).bulk_create(auth.user_id, [_insight_row(payload)])[0]
    return serialize_insight(insight)


@router.post("/bulk", status_code=status.HTTP_201_CREATED)
def create_insights_bulk(
    payload: InsightBulkCreateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    _check_sources(session, auth.user_id, payload.insights)
    insights = InsightsRepository(session).bulk_create(
        auth.user_id, [_insight_row(item) for item in payload.insights]
    )
    return {"success": True, "count": len(insights), "insights": [serialize_insight(i) for i in insights]}


@router.patch("/{insight_id}/approve")
def approve_insight(
    insight_id: str,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    insight = InsightsRepository(session).update(auth.user_id, insight_id, status=ReviewStatusEnum.approved)
    if not insight:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Insight not found")
    return {"success": True, "insight": serialize_insight(insight)}


@router.patch("/{insight_id}/reject")
def reject_insight(
    insight_id: str,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    insight = InsightsRepository(session).update(auth.user_id, insight_id, status=ReviewStatusEnum.rejected)
    if not insight:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Insight not found")
    return {"success": True, "insight": serialize_insight(insight)}
