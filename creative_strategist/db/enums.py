from enum import Enum


class ReviewStatusEnum(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class AvatarPriorityEnum(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


class RecommendationSourceEnum(str, Enum):
    generated = "generated"
    manual = "manual"


class ConceptStatusEnum(str, Enum):
    pending = "pending"
    discovered = "discovered"
    approved = "approved"
    rejected = "rejected"
    tested = "tested"
    proven = "proven"


class InsightCategoryEnum(str, Enum):
    pain_point = "pain-point"
    desire = "desire"
    objection = "objection"
    trigger = "trigger"


class ScriptStatusEnum(str, Enum):
    draft = "draft"
    approved = "approved"
    rejected = "rejected"


class ScriptTypeEnum(str, Enum):
    ugc = "ugc"
    testimonial = "testimonial"
    demo = "demo"
    story = "story"


class DateRangeEnum(str, Enum):
    last_7_days = "last_7_days"
    last_14_days = "last_14_days"
    last_30_days = "last_30_days"
    last_90_days = "last_90_days"
