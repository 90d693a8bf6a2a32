from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Sequence

from creative_strategist.db.enums import (
    AvatarPriorityEnum,
    InsightCategoryEnum,
    RecommendationSourceEnum,
    ReviewStatusEnum,
)
from creative_strategist.db.models import Insight
from creative_strategist.llm.client import LLMClient, LLMClientConfigError, LLMGenerationParams, reply_text
from creative_strategist.llm.prompts import load_prompt

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.75

# Prompt budget per category; headers still report the full count.
_CATEGORY_LIMITS: dict[InsightCategoryEnum, int] = {
    InsightCategoryEnum.pain_point: 15,
    InsightCategoryEnum.desire: 15,
    InsightCategoryEnum.objection: 10,
    InsightCategoryEnum.trigger: 10,
}
_CATEGORY_HEADINGS: dict[InsightCategoryEnum, str] = {
    InsightCategoryEnum.pain_point: "Pain Points",
    InsightCategoryEnum.desire: "Desires",
    InsightCategoryEnum.objection: "Objections",
    InsightCategoryEnum.trigger: "Triggers",
}
_LIST_FIELDS = ("painPoints", "desires", "objections", "triggers", "hooks")

_OUTPUT_FORMAT = """{
  "avatars": [
    {
      "name": "Budget-Conscious Sarah",
      "ageRange": "25-34",
      "demographics": "Young professional, urban, $50-70k income, renting",
      "psychographics": "Price-sensitive but values quality. Researches before buying and trusts peer reviews.",
      "painPoints": ["Can't justify premium prices", "Products that wear out quickly"],
      "desires": ["Quality that fits the budget", "Transparent pricing"],
      "objections": ["Skeptical of claims that sound too good"],
      "triggers": ["Limited-time discounts", "Money-back guarantee"],
      "hooks": ["Premium Results Without the Premium Price"],
      "priority": "high",
      "confidence": 85
    }
  ]
}"""


class AvatarGenerationError(RuntimeError):
    pass


@dataclass
class AvatarGenerationResult:
    avatars: list[dict[str, Any]]
    summary: dict[str, Any] = field(default_factory=dict)


def group_insights(insights: Iterable[Insight]) -> dict[InsightCategoryEnum, list[Insight]]:
    grouped: dict[InsightCategoryEnum, list[Insight]] = {category: [] for category in _CATEGORY_LIMITS}
    for insight in insights:
        if insight.status == ReviewStatusEnum.rejected:
            continue
        grouped.setdefault(insight.category, []).append(insight)
    return grouped


def _render_insight(insight: Insight) -> str:
    return "\n".join(
        [
            f"- **{insight.title}**",
            f'  Quote: "{insight.raw_quote or ""}"',
            f"  Summary: {insight.summary or ''}",
            f"  Platform: {insight.source_platform or 'unknown'}",
        ]
    )


def build_avatar_generation_prompt(insights: Sequence[Insight], brand_context: str = "") -> str:
    grouped = group_insights(insights)

    lines: list[str] = []
    if brand_context:
        lines.append(brand_context)
        lines.append("")
    lines.append("# Customer Intelligence Data")
    lines.append(
        "The insights below were collected from customer conversations across Reddit, Amazon reviews, "
        "YouTube comments, forums and articles. Analyze them and create 3-5 distinct customer avatars "
        "that represent different segments of the target market."
    )
    lines.append("")
    lines.append("## Discovered Insights")
    for category, limit in _CATEGORY_LIMITS.items():
        bucket = grouped.get(category, [])
        lines.append("")
        lines.append(f"### {_CATEGORY_HEADINGS[category]} ({len(bucket)} insights)")
        for insight in bucket[:limit]:
            lines.append(_render_insight(insight))

    lines.append("")
    lines.append("## Instructions")
    lines.append("For each avatar provide:")
    lines.append('1. A memorable name (e.g. "Budget-Conscious Sarah") and an age range (e.g. "25-34").')
    lines.append("2. Demographics (role, location, income, education) and 2-3 sentences of psychographics.")
    lines.append("3. 3-5 pain points and 3-5 desires drawn from the insights above.")
    lines.append("4. 2-4 objections and 2-4 buying triggers.")
    lines.append("5. 3-5 marketing hooks written as headlines for this persona.")
    lines.append("6. Priority (high/medium/low) based on segment size, pain intensity and buying intent.")
    lines.append("7. Confidence (0-100) based on how much consistent data supports the persona.")
    lines.append("")
    lines.append("## Output Format")
    lines.append("Return ONLY valid JSON in this exact format:")
    lines.append(_OUTPUT_FORMAT)
    return "\n".join(lines)


def normalize_confidence(value: Any) -> float:
    """Map a 0-100 (or 0-1) confidence onto 0-1; missing or unparseable values get the default."""
    if value is None or isinstance(value, bool):
        return DEFAULT_CONFIDENCE
    try:
        number = float(value)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    if number > 1:
        number = number / 100
    return round(min(1.0, max(0.0, number)), 4)


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def _priority(value: Any) -> AvatarPriorityEnum:
    if isinstance(value, str):
        try:
            return AvatarPriorityEnum(value.strip().lower())
        except ValueError:
            pass
    return AvatarPriorityEnum.medium


def parse_avatars(payload: dict[str, Any]) -> list[dict[str, Any]]:
    """Turn the model's `avatars` array into rows for the avatars table."""
    raw_avatars = payload.get("avatars")
    if not isinstance(raw_avatars, list):
        return []

    rows: list[dict[str, Any]] = []
    for raw in raw_avatars:
        if not isinstance(raw, dict):
            continue
        name = str(raw.get("name") or "").strip()
        if not name:
            logger.warning("Dropping generated avatar without a name")
            continue
        lists = {key: _string_list(raw.get(key)) for key in _LIST_FIELDS}
        rows.append(
            {
                "name": name,
                "age_range": reply_text(raw.get("ageRange")),
                "demographics": reply_text(raw.get("demographics")) or "",
                "psychographics": reply_text(raw.get("psychographics")),
                "pain_points": lists["painPoints"],
                "desires": lists["desires"],
                "objections": lists["objections"],
                "triggers": lists["triggers"],
                "hooks": lists["hooks"],
                "priority": _priority(raw.get("priority")),
                "data_confidence": normalize_confidence(raw.get("confidence")),
                "recommendation_source": RecommendationSourceEnum.generated,
                "status": ReviewStatusEnum.pending,
            }
        )
    return rows


def summarize_avatars(rows: Sequence[dict[str, Any]]) -> dict[str, Any]:
    confidences = [row["data_confidence"] for row in rows]
    return {
        "totalGenerated": len(rows),
        "primarySegments": [row["name"] for row in rows],
        "confidenceAverage": round(sum(confidences) / len(confidences), 4) if confidences else 0,
    }


def generate_avatars_from_insights(
    insights: Sequence[Insight],
    *,
    brand_context: str = "",
    llm: Optional[LLMClient] = None,
    model: Optional[str] = None,
) -> AvatarGenerationResult:
    """
    Synthesize customer avatars from research insights with a single JSON-mode LLM call.

    Configuration errors propagate unchanged so callers can report a missing API key;
    every other failure is wrapped in AvatarGenerationError.
    """
    system_prompt, prompt_sha = load_prompt("avatar_generation_system")
    prompt = build_avatar_generation_prompt(insights, brand_context)
    client = llm or LLMClient()
    try:
        payload = client.generate_json(
            prompt,
            system_prompt=system_prompt,
            params=LLMGenerationParams(model=model, temperature=0.7),
        )
        rows = parse_avatars(payload)
    except LLMClientConfigError:
        raise
    except Exception as exc:
        logger.exception("Avatar generation failed", extra={"insight_count": len(insights)})
        raise AvatarGenerationError(f"Failed to generate avatars: {exc}") from exc

    logger.info(
        "Generated avatars",
        extra={"insight_count": len(insights), "avatar_count": len(rows), "prompt_sha": prompt_sha},
    )
    return AvatarGenerationResult(avatars=rows, summary=summarize_avatars(rows))
