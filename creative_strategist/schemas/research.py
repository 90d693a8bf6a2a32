from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from creative_strategist.db.enums import InsightCategoryEnum, ReviewStatusEnum


class DiscoverRequest(BaseModel):
    knowledgeBase: Optional[dict[str, Any]] = None


class InsightCreateRequest(BaseModel):
    category: InsightCategoryEnum
    title: str = Field(..., min_length=1)
    rawQuote: Optional[str] = None
    summary: Optional[str] = None
    sourcePlatform: Optional[str] = None
    sourceUrl: Optional[str] = None
    sourceId: Optional[str] = None
    status: ReviewStatusEnum = ReviewStatusEnum.pending


class InsightBulkCreateRequest(BaseModel):
    insights: list[InsightCreateRequest] = Field(..., min_length=1)


class SourceCreateRequest(BaseModel):
    platform: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    sourceType: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None


class ExtractInsightsRequest(BaseModel):
    content: str = ""
