from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from creative_strategist.db.models import (
    Avatar,
    AvatarConcept,
    Concept,
    Insight,
    KnowledgeBase,
    MetaAd,
    MetaAdSet,
    MetaCampaign,
    PlatformSettings,
    Script,
    Source,
    User,
)
from creative_strategist.services.concepts import engagement_rate, engagement_score, replies_count


def _enum(value: Optional[Enum]) -> Optional[str]:
    return value.value if isinstance(value, Enum) else value


def serialize_user(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "profileImageUrl": user.profile_image_url,
        "metaConnected": bool(user.meta_access_token),
        "metaAccountId": user.meta_account_id,
        "metaAccountName": user.meta_account_name,
        "metaConnectedAt": user.meta_connected_at,
        "createdAt": user.created_at,
        "updatedAt": user.updated_at,
    }


def serialize_knowledge_base(record: KnowledgeBase) -> dict[str, Any]:
    return {
        "id": record.id,
        "userId": record.user_id,
        "websiteUrl": record.website_url,
        "brandVoice": record.brand_voice,
        "missionStatement": record.mission_statement,
        "brandValues": record.brand_values or [],
        "productLinks": record.product_links or [],
        "pricingInfo": record.pricing_info,
        "keyBenefits": record.key_benefits or [],
        "usps": record.usps or [],
        "currentPersonas": record.current_personas,
        "demographics": record.demographics,
        "mainCompetitors": record.main_competitors or [],
        "instagramHandle": record.instagram_handle,
        "facebookPage": record.facebook_page,
        "tiktokHandle": record.tiktok_handle,
        "contentStyle": record.content_style,
        "salesTrends": record.sales_trends,
        "uploadedFiles": record.uploaded_files,
        "completionPercentage": record.completion_percentage,
        "lastUpdated": record.last_updated,
        "createdAt": record.created_at,
    }


def serialize_avatar(avatar: Avatar) -> dict[str, Any]:
    return {
        "id": avatar.id,
        "userId": avatar.user_id,
        "name": avatar.name,
        "ageRange": avatar.age_range,
        "demographics": avatar.demographics,
        "psychographics": avatar.psychographics,
        "painPoints": avatar.pain_points or [],
        "desires": avatar.desires or [],
        "objections": avatar.objections or [],
        "triggers": avatar.triggers or [],
        "hooks": avatar.hooks or [],
        "sources": avatar.sources or [],
        "priority": _enum(avatar.priority),
        "dataConfidence": avatar.data_confidence,
        "recommendationSource": _enum(avatar.recommendation_source),
        "status": _enum(avatar.status),
        "createdAt": avatar.created_at,
        "updatedAt": avatar.updated_at,
    }


def serialize_concept(concept: Concept) -> dict[str, Any]:
    statistics = concept.statistics or {}
    filters = concept.filter or {}
    return {
        "id": concept.id,
        "title": concept.title,
        "description": concept.description,
        "thumbnailUrl": concept.thumbnail,
        "videoUrl": concept.video_url,
        "postUrl": concept.url,
        "brandName": concept.owner,
        "platform": filters.get("platform"),
        "format": filters.get("format"),
        "industry": filters.get("industry"),
        "language": filters.get("language"),
        "isVideo": filters.get("isVideo"),
        "isAd": filters.get("isAd"),
        "likes": statistics.get("likes"),
        "views": statistics.get("views"),
        "shares": statistics.get("shares"),
        "comments": replies_count(statistics),
        "engagementRate": engagement_rate(statistics),
        "engagementScore": engagement_score(statistics),
        "hooks": concept.hooks or [],
        "status": _enum(concept.status),
        "createdAt": concept.created_at,
        "discoveredAt": concept.discovered_at,
    }


def serialize_avatar_concept(link: AvatarConcept, concept: Optional[Concept] = None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": link.id,
        "avatarId": link.avatar_id,
        "conceptId": link.concept_id,
        "relevanceScore": link.relevance_score,
        "matchedHooks": link.matched_hooks or [],
        "userApproved": link.user_approved,
        "feedback": link.feedback,
        "createdAt": link.created_at,
    }
    if concept is not None:
        payload["concept"] = serialize_concept(concept)
    return payload


def serialize_insight(insight: Insight) -> dict[str, Any]:
    return {
        "id": insight.id,
        "sourceId": insight.source_id,
        "category": _enum(insight.category),
        "title": insight.title,
        "rawQuote": insight.raw_quote,
        "summary": insight.summary,
        "sourcePlatform": insight.source_platform,
        "sourceUrl": insight.source_url,
        "status": _enum(insight.status),
        "createdAt": insight.created_at,
    }


def serialize_source(source: Source) -> dict[str, Any]:
    return {
        "id": source.id,
        "platform": source.platform,
        "sourceType": source.source_type,
        "title": source.title,
        "description": source.description,
        "url": source.url,
        "insightsDiscovered": source.insights_discovered,
        "lastChecked": source.last_checked,
        "createdAt": source.created_at,
    }


def serialize_script(script: Script) -> dict[str, Any]:
    return {
        "id": script.id,
        "title": script.title,
        "type": script.script_type,
        "duration": script.duration,
        "summary": script.summary,
        "content": script.content or {},
        "sourceResearch": script.source_research or {},
        "status": _enum(script.status),
        "createdAt": script.created_at,
        "updatedAt": script.updated_at,
    }


def serialize_platform_settings(record: PlatformSettings) -> dict[str, Any]:
    return {
        "defaultAdAccountId": record.default_ad_account_id,
        "defaultDateRange": _enum(record.default_date_range),
        "benchmarkRoas": record.benchmark_roas,
        "benchmarkCtr": record.benchmark_ctr,
        "benchmarkCpm": record.benchmark_cpm,
        "llmModel": record.llm_model,
        "notificationsEnabled": record.notifications_enabled,
        "updatedAt": record.updated_at,
    }


def serialize_meta_campaign(record: MetaCampaign) -> dict[str, Any]:
    return {
        "id": record.meta_campaign_id,
        "adAccountId": record.ad_account_id,
        "name": record.name,
        "status": record.status,
        "objective": record.objective,
        "dateRange": record.date_range,
        "metrics": record.metrics or {},
        "syncedAt": record.synced_at,
    }


def serialize_meta_adset(record: MetaAdSet) -> dict[str, Any]:
    return {
        "id": record.meta_adset_id,
        "campaignId": record.meta_campaign_id,
        "adAccountId": record.ad_account_id,
        "name": record.name,
        "status": record.status,
        "targeting": record.targeting or {},
        "dateRange": record.date_range,
        "metrics": record.metrics or {},
        "syncedAt": record.synced_at,
    }


def serialize_meta_ad(record: MetaAd) -> dict[str, Any]:
    return {
        "id": record.meta_ad_id,
        "adsetId": record.meta_adset_id,
        "adAccountId": record.ad_account_id,
        "name": record.name,
        "status": record.status,
        "creative": record.creative or {},
        "dateRange": record.date_range,
        "metrics": record.metrics or {},
        "syncedAt": record.synced_at,
    }
