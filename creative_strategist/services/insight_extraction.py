from __future__ import annotations

import logging
from typing import Any, Optional

from creative_strategist.db.enums import InsightCategoryEnum, ReviewStatusEnum
from creative_strategist.llm.client import LLMClient, LLMClientConfigError, LLMGenerationParams, reply_text
from creative_strategist.llm.prompts import load_prompt

logger = logging.getLogger(__name__)

_MAX_CONTENT_CHARS = 20000


class InsightExtractionError(RuntimeError):
    pass


def _coerce_category(value: Any) -> Optional[InsightCategoryEnum]:
    if not isinstance(value, str):
        return None
    normalized = value.strip().lower().replace("_", "-").replace(" ", "-")
    if normalized == "painpoint":
        normalized = "pain-point"
    try:
        return InsightCategoryEnum(normalized)
    except ValueError:
        return None


def build_extraction_prompt(
    content: str,
    *,
    platform: str,
    source_title: str,
    brand_context: str = "",
) -> str:
    lines: list[str] = []
    if brand_context:
        lines.append(brand_context)
        lines.append("")
    lines.append("## SOURCE")
    lines.append(f"Platform: {platform}")
    lines.append(f"Title: {source_title}")
    lines.append("")
    lines.append("## RAW CONTENT")
    lines.append(content[:_MAX_CONTENT_CHARS])
    lines.append("")
    lines.append("## TASK")
    lines.append(
        "Extract every distinct customer insight relevant to the brand above. Skip generic statements "
        "that do not reveal a pain point, desire, objection or trigger."
    )
    lines.append("Return JSON in this exact format:")
    lines.append(
        '{"insights": [{"category": "pain-point|desire|objection|trigger", '
        '"title": "Short label (max 10 words)", "rawQuote": "Exact customer words", '
        '"summary": "One sentence on what this means for marketing"}]}'
    )
    return "\n".join(lines)


def parse_insights(payload: dict[str, Any], *, platform: str, source_url: Optional[str]) -> list[dict[str, Any]]:
    raw_items = payload.get("insights")
    if not isinstance(raw_items, list):
        return []

    rows: list[dict[str, Any]] = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            continue
        category = _coerce_category(raw.get("category"))
        title = str(raw.get("title") or "").strip()
        if category is None or not title:
            logger.debug("Skipping extracted insight", extra={"category": raw.get("category")})
            continue
        rows.append(
            {
                "category": category,
                "title": title,
                "raw_quote": reply_text(raw.get("rawQuote") or raw.get("quote")),
                "summary": reply_text(raw.get("summary")),
                "source_platform": platform,
                "source_url": source_url,
                "status": ReviewStatusEnum.pending,
            }
        )
    return rows


def extract_insights(
    content: str,
    *,
    platform: str,
    source_title: str,
    source_url: Optional[str] = None,
    brand_context: str = "",
    llm: Optional[LLMClient] = None,
    model: Optional[str] = None,
) -> list[dict[str, Any]]:
    """Pull categorized customer insights out of raw source text."""
    system_prompt, _ = load_prompt("insight_extraction_system")
    prompt = build_extraction_prompt(
        content, platform=platform, source_title=source_title, brand_context=brand_context
    )
    client = llm or LLMClient()
    try:
        payload = client.generate_json(
            prompt,
            system_prompt=system_prompt,
            params=LLMGenerationParams(model=model, temperature=0.3),
        )
    except LLMClientConfigError:
        raise
    except Exception as exc:
        logger.exception("Insight extraction failed", extra={"platform": platform})
        raise InsightExtractionError(f"Failed to extract insights: {exc}") from exc
    return parse_insights(payload, platform=platform, source_url=source_url)
