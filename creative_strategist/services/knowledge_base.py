from __future__ import annotations

from typing import Any, Iterable, Optional

from creative_strategist.db.models import KnowledgeBase

# Each section counts equally toward completion; a section's score is the share of its fields filled in.
_COMPLETION_SECTIONS: dict[str, tuple[str, ...]] = {
    "brand": ("website_url", "brand_voice", "mission_statement", "brand_values"),
    "products": ("product_links", "pricing_info", "key_benefits", "usps"),
    "audience": ("current_personas", "demographics"),
    "competitors": ("main_competitors",),
    "social": ("instagram_handle", "facebook_page", "tiktok_handle", "content_style"),
    "performance": ("sales_trends",),
}


def _is_filled(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict)):
        return any(_is_filled(item) for item in (value.values() if isinstance(value, dict) else value))
    return True


def compute_completion_percentage(fields: dict[str, Any]) -> int:
    section_scores = []
    for names in _COMPLETION_SECTIONS.values():
        filled = sum(1 for name in names if _is_filled(fields.get(name)))
        section_scores.append(filled / len(names))
    return int(round(sum(section_scores) / len(section_scores) * 100))


def knowledge_base_fields(record: KnowledgeBase) -> dict[str, Any]:
    return {name: getattr(record, name) for names in _COMPLETION_SECTIONS.values() for name in names}


def _text(value: Optional[str], default: str = "Not specified") -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _joined(values: Optional[Iterable[str]], default: str = "Not specified") -> str:
    cleaned = [str(v).strip() for v in (values or []) if str(v).strip()]
    return ", ".join(cleaned) if cleaned else default


def build_prompt_context(record: Optional[KnowledgeBase | dict[str, Any]]) -> str:
    """Render the brand knowledge base as a prompt block for the research agents."""
    if record is None:
        return ""
    data = record if isinstance(record, dict) else knowledge_base_fields(record)

    lines: list[str] = ["## BRAND CONTEXT"]
    lines.append(f"Website: {_text(data.get('website_url'))}")
    lines.append(f"Brand voice: {_text(data.get('brand_voice'), 'Professional and friendly')}")
    lines.append(f"Mission: {_text(data.get('mission_statement'))}")
    lines.append(f"Brand values: {_joined(data.get('brand_values'))}")
    lines.append(f"Pricing: {_text(data.get('pricing_info'))}")
    lines.append(f"Key benefits: {_joined(data.get('key_benefits'))}")
    lines.append(f"Unique selling points: {_joined(data.get('usps'))}")
    lines.append(f"Current personas: {_text(data.get('current_personas'), 'General audience')}")
    lines.append(f"Demographics: {_text(data.get('demographics'))}")
    lines.append(f"Main competitors: {_joined(data.get('main_competitors'))}")
    lines.append(f"Content style: {_text(data.get('content_style'))}")
    lines.append(f"Sales trends: {_text(data.get('sales_trends'))}")
    return "\n".join(lines)
