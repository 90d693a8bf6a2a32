from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from creative_strategist.db.enums import ConceptStatusEnum


class ConceptCreateRequest(BaseModel):
    title: str = ""
    description: str = ""
    thumbnailUrl: Optional[str] = None
    videoUrl: Optional[str] = None
    postUrl: Optional[str] = None
    brandName: Optional[str] = None
    platform: Optional[str] = None
    format: Optional[str] = None
    industry: Optional[str] = None
    language: Optional[str] = None
    isVideo: Optional[bool] = None
    isAd: Optional[bool] = None
    hooks: list[str] = Field(default_factory=list)
    likes: Optional[int] = Field(default=None, ge=0)
    views: Optional[int] = Field(default=None, ge=0)
    shares: Optional[int] = Field(default=None, ge=0)
    comments: Optional[int] = Field(default=None, ge=0)
    engagementScore: Optional[float] = None
    status: ConceptStatusEnum = ConceptStatusEnum.pending


class ConceptUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    hooks: Optional[list[str]] = None
    status: Optional[ConceptStatusEnum] = None
    likes: Optional[int] = Field(default=None, ge=0)
    views: Optional[int] = Field(default=None, ge=0)
    shares: Optional[int] = Field(default=None, ge=0)
    comments: Optional[int] = Field(default=None, ge=0)
    engagementScore: Optional[float] = None


class ConceptSearchRequest(BaseModel):
    query: str = ""
    type: Optional[str] = None


class ConceptScrapeRequest(BaseModel):
    keywords: list[str] = Field(default_factory=list)
    niche: Optional[str] = None
