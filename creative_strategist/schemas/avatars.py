from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from creative_strategist.db.enums import AvatarPriorityEnum, RecommendationSourceEnum, ReviewStatusEnum


class AvatarCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    ageRange: Optional[str] = None
    demographics: str = ""
    psychographics: Optional[str] = None
    painPoints: list[str] = Field(default_factory=list)
    desires: list[str] = Field(default_factory=list)
    objections: list[str] = Field(default_factory=list)
    triggers: list[str] = Field(default_factory=list)
    hooks: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    priority: AvatarPriorityEnum = AvatarPriorityEnum.medium
    dataConfidence: Optional[float] = None
    recommendationSource: RecommendationSourceEnum = RecommendationSourceEnum.manual
    status: ReviewStatusEnum = ReviewStatusEnum.pending


class AvatarUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    ageRange: Optional[str] = None
    demographics: Optional[str] = None
    psychographics: Optional[str] = None
    painPoints: Optional[list[str]] = None
    desires: Optional[list[str]] = None
    objections: Optional[list[str]] = None
    triggers: Optional[list[str]] = None
    hooks: Optional[list[str]] = None
    sources: Optional[list[str]] = None
    priority: Optional[AvatarPriorityEnum] = None
    dataConfidence: Optional[float] = None
    status: Optional[ReviewStatusEnum] = None


class AvatarGenerateRequest(BaseModel):
    model: Optional[str] = None


class ConceptMatchRequest(BaseModel):
    topN: int = Field(default=2, ge=1, le=10)


class AvatarConceptCreateRequest(BaseModel):
    avatarId: str
    conceptId: str
    relevanceScore: Optional[float] = Field(default=None, ge=0, le=1)
    matchedHooks: list[str] = Field(default_factory=list)
    userApproved: Optional[bool] = None
    feedback: Optional[str] = None


class AvatarConceptUpdateRequest(BaseModel):
    relevanceScore: Optional[float] = Field(default=None, ge=0, le=1)
    userApproved: Optional[bool] = None
    feedback: Optional[str] = None
