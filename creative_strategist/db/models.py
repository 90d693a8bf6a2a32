from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

import sqlalchemy as sa
from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from creative_strategist.db.base import Base
from creative_strategist.db.enums import (
    AvatarPriorityEnum,
    ConceptStatusEnum,
    DateRangeEnum,
    InsightCategoryEnum,
    RecommendationSourceEnum,
    ReviewStatusEnum,
    ScriptStatusEnum,
)
from creative_strategist.db.types import JsonBlob, StringArray


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _uuid() -> str:
    return str(uuid4())


class User(Base):
    __tablename__ = "users"

    # Clerk subject claim.
    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    first_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    profile_image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    meta_access_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    meta_account_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    meta_account_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    meta_connected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class KnowledgeBase(Base):
    __tablename__ = "knowledge_base"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    website_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    brand_voice: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    mission_statement: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    brand_values: Mapped[list[str]] = mapped_column(StringArray, nullable=False, default=list)

    product_links: Mapped[list[str]] = mapped_column(StringArray, nullable=False, default=list)
    pricing_info: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    key_benefits: Mapped[list[str]] = mapped_column(StringArray, nullable=False, default=list)
    usps: Mapped[list[str]] = mapped_column(StringArray, nullable=False, default=list)

    current_personas: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    demographics: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    main_competitors: Mapped[list[str]] = mapped_column(StringArray, nullable=False, default=list)

    instagram_handle: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    facebook_page: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tiktok_handle: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content_style: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    sales_trends: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    uploaded_files: Mapped[Any] = mapped_column(JsonBlob, nullable=False, default=dict)
    completion_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class Avatar(Base):
    __tablename__ = "avatars"
    __table_args__ = (sa.Index("idx_avatars_user_status", "user_id", "status"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    age_range: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    demographics: Mapped[str] = mapped_column(Text, nullable=False, default="")
    psychographics: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    pain_points: Mapped[list[str]] = mapped_column(StringArray, nullable=False, default=list)
    desires: Mapped[list[str]] = mapped_column(StringArray, nullable=False, default=list)
    objections: Mapped[list[str]] = mapped_column(StringArray, nullable=False, default=list)
    triggers: Mapped[list[str]] = mapped_column(StringArray, nullable=False, default=list)
    hooks: Mapped[list[str]] = mapped_column(StringArray, nullable=False, default=list)
    sources: Mapped[list[str]] = mapped_column(StringArray, nullable=False, default=list)
    priority: Mapped[AvatarPriorityEnum] = mapped_column(
        Enum(AvatarPriorityEnum, name="avatar_priority"), nullable=False, default=AvatarPriorityEnum.medium
    )
    data_confidence: Mapped[float] = mapped_column(Float, nullable=False, default=0.75)
    recommendation_source: Mapped[RecommendationSourceEnum] = mapped_column(
        Enum(RecommendationSourceEnum, name="recommendation_source"),
        nullable=False,
        default=RecommendationSourceEnum.generated,
    )
    status: Mapped[ReviewStatusEnum] = mapped_column(
        Enum(ReviewStatusEnum, name="review_status"), nullable=False, default=ReviewStatusEnum.pending
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class Concept(Base):
    __tablename__ = "concepts"
    __table_args__ = (sa.Index("idx_concepts_user_status", "user_id", "status"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    thumbnail: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    video_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    owner: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    hooks: Mapped[list[str]] = mapped_column(StringArray, nullable=False, default=list)
    statistics: Mapped[dict[str, Any]] = mapped_column(JsonBlob, nullable=False, default=dict)
    filter: Mapped[dict[str, Any]] = mapped_column(JsonBlob, nullable=False, default=dict)
    status: Mapped[ConceptStatusEnum] = mapped_column(
        Enum(ConceptStatusEnum, name="concept_status"), nullable=False, default=ConceptStatusEnum.pending
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    discovered_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class AvatarConcept(Base):
    __tablename__ = "avatar_concepts"
    __table_args__ = (UniqueConstraint("avatar_id", "concept_id", name="uq_avatar_concepts_pair"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    avatar_id: Mapped[str] = mapped_column(ForeignKey("avatars.id", ondelete="CASCADE"), nullable=False)
    concept_id: Mapped[str] = mapped_column(ForeignKey("concepts.id", ondelete="CASCADE"), nullable=False)
    relevance_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    matched_hooks: Mapped[list[str]] = mapped_column(StringArray, nullable=False, default=list)
    user_approved: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class Source(Base):
    __tablename__ = "sources"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    platform: Mapped[str] = mapped_column(Text, nullable=False)
    source_type: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    insights_discovered: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_checked: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class Insight(Base):
    __tablename__ = "insights"
    __table_args__ = (sa.Index("idx_insights_user_category", "user_id", "category"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    source_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("sources.id", ondelete="SET NULL"), nullable=True
    )
    category: Mapped[InsightCategoryEnum] = mapped_column(
        Enum(InsightCategoryEnum, name="insight_category"), nullable=False
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    raw_quote: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source_platform: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    source_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[ReviewStatusEnum] = mapped_column(
        Enum(ReviewStatusEnum, name="review_status"), nullable=False, default=ReviewStatusEnum.pending
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class Script(Base):
    __tablename__ = "scripts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    script_type: Mapped[str] = mapped_column(Text, nullable=False)
    duration: Mapped[str] = mapped_column(Text, nullable=False)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content: Mapped[dict[str, Any]] = mapped_column(JsonBlob, nullable=False, default=dict)
    source_research: Mapped[dict[str, Any]] = mapped_column(JsonBlob, nullable=False, default=dict)
    status: Mapped[ScriptStatusEnum] = mapped_column(
        Enum(ScriptStatusEnum, name="script_status"), nullable=False, default=ScriptStatusEnum.draft
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class MetaCampaign(Base):
    __tablename__ = "meta_campaigns"
    __table_args__ = (UniqueConstraint("user_id", "meta_campaign_id", name="uq_meta_campaigns_user_meta_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    ad_account_id: Mapped[str] = mapped_column(Text, nullable=False)
    meta_campaign_id: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    objective: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date_range: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    metrics: Mapped[dict[str, Any]] = mapped_column(JsonBlob, nullable=False, default=dict)
    synced_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class MetaAdSet(Base):
    __tablename__ = "meta_adsets"
    __table_args__ = (UniqueConstraint("user_id", "meta_adset_id", name="uq_meta_adsets_user_meta_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    ad_account_id: Mapped[str] = mapped_column(Text, nullable=False)
    meta_adset_id: Mapped[str] = mapped_column(Text, nullable=False)
    meta_campaign_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    targeting: Mapped[dict[str, Any]] = mapped_column(JsonBlob, nullable=False, default=dict)
    date_range: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    metrics: Mapped[dict[str, Any]] = mapped_column(JsonBlob, nullable=False, default=dict)
    synced_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class MetaAd(Base):
    __tablename__ = "meta_ads"
    __table_args__ = (UniqueConstraint("user_id", "meta_ad_id", name="uq_meta_ads_user_meta_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    ad_account_id: Mapped[str] = mapped_column(Text, nullable=False)
    meta_ad_id: Mapped[str] = mapped_column(Text, nullable=False)
    meta_adset_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    creative: Mapped[dict[str, Any]] = mapped_column(JsonBlob, nullable=False, default=dict)
    date_range: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    metrics: Mapped[dict[str, Any]] = mapped_column(JsonBlob, nullable=False, default=dict)
    synced_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class PlatformSettings(Base):
    __tablename__ = "platform_settings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    default_ad_account_id: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    default_date_range: Mapped[DateRangeEnum] = mapped_column(
        Enum(DateRangeEnum, name="date_range"), nullable=False, default=DateRangeEnum.last_30_days
    )
    benchmark_roas: Mapped[float] = mapped_column(Float, nullable=False, default=2.0)
    benchmark_ctr: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    benchmark_cpm: Mapped[float] = mapped_column(Float, nullable=False, default=15.0)
    llm_model: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notifications_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )


class OAuthLinkSession(Base):
    __tablename__ = "oauth_link_sessions"
    __table_args__ = (sa.Index("idx_oauth_link_sessions_expires", "expires_at"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    provider: Mapped[str] = mapped_column(String(32), nullable=False, default="meta")
    origin: Mapped[str] = mapped_column(Text, nullable=False)
    nonce: Mapped[str] = mapped_column(String(64), nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
