from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

# Request key -> knowledge_base column.
KNOWLEDGE_BASE_COLUMNS: dict[str, str] = {
    "websiteUrl": "website_url",
    "brandVoice": "brand_voice",
    "missionStatement": "mission_statement",
    "brandValues": "brand_values",
    "productLinks": "product_links",
    "pricingInfo": "pricing_info",
    "keyBenefits": "key_benefits",
    "usps": "usps",
    "currentPersonas": "current_personas",
    "demographics": "demographics",
    "mainCompetitors": "main_competitors",
    "instagramHandle": "instagram_handle",
    "facebookPage": "facebook_page",
    "tiktokHandle": "tiktok_handle",
    "contentStyle": "content_style",
    "salesTrends": "sales_trends",
    "uploadedFiles": "uploaded_files",
    "completionPercentage": "completion_percentage",
}
ARRAY_COLUMNS = {"brand_values", "product_links", "key_benefits", "usps", "main_competitors"}


class KnowledgeBaseFields(BaseModel):
    websiteUrl: Optional[str] = None
    brandVoice: Optional[str] = None
    missionStatement: Optional[str] = None
    brandValues: Optional[list[str]] = None
    productLinks: Optional[list[str]] = None
    pricingInfo: Optional[str] = None
    keyBenefits: Optional[list[str]] = None
    usps: Optional[list[str]] = None
    currentPersonas: Optional[str] = None
    demographics: Optional[str] = None
    mainCompetitors: Optional[list[str]] = None
    instagramHandle: Optional[str] = None
    facebookPage: Optional[str] = None
    tiktokHandle: Optional[str] = None
    contentStyle: Optional[str] = None
    salesTrends: Optional[str] = None
    uploadedFiles: Optional[Any] = None
    completionPercentage: Optional[int] = Field(default=None, ge=0, le=100)

    def to_columns(self) -> dict[str, Any]:
        """Columns for the fields the client actually sent; null arrays become empty arrays."""
        columns: dict[str, Any] = {}
        for key in self.model_fields_set:
            column = KNOWLEDGE_BASE_COLUMNS[key]
            value = getattr(self, key)
            if value is None and column in ARRAY_COLUMNS:
                value = []
            if value is None and column == "uploaded_files":
                value = {}
            columns[column] = value
        return columns


class KnowledgeBaseCreateRequest(KnowledgeBaseFields):
    pass


class KnowledgeBaseUpdateRequest(KnowledgeBaseFields):
    pass
