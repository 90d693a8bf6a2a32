from __future__ import annotations

import logging
from typing import Any, Optional

from creative_strategist.db.models import KnowledgeBase
from creative_strategist.llm.client import LLMClient, LLMClientConfigError, LLMGenerationParams, reply_text
from creative_strategist.llm.prompts import load_prompt
from creative_strategist.schemas.scripts import ScriptGenerateRequest

logger = logging.getLogger(__name__)

DEFAULT_AWARENESS_STAGE = "problem aware"

DURATION_GUIDANCE: dict[str, str] = {
    "15s": "15 seconds (about 35-40 words, one punchy hook)",
    "30s": "30 seconds (about 75-80 words, quick problem-solution format)",
    "45s": "45 seconds (about 110-120 words, story-based with a clear transformation)",
    "60s": "60 seconds (about 150-160 words, detailed narrative with multiple proof points)",
}

SCRIPT_TYPE_GUIDANCE: dict[str, str] = {
    "ugc": "Authentic user-generated style: a real customer sharing their experience in casual, conversational language.",
    "testimonial": "Transformation story with before/after, specific results and credible personal details.",
    "demo": "Product in action: features and benefits tied to the problems they solve, with visual cues.",
    "story": "Narrative arc with a character, a conflict and a resolution. Emotional and engaging.",
}

AWARENESS_GUIDANCE: dict[str, str] = {
    "unaware": "The viewer doesn't know they have the problem. Open with a hook that reveals it.",
    "problem aware": "The viewer knows the problem but not the solution. Agitate the pain points.",
    "solution aware": "The viewer knows solutions exist but not this product. Highlight what makes it different.",
    "product aware": "The viewer knows the product but needs convincing. Lead with proof, social proof and urgency.",
    "most aware": "The viewer is ready to buy. Push the offer, the guarantee and a deadline.",
}

_OUTPUT_FORMAT = """{
  "title": "Benefit-driven title",
  "summary": "[target audience] + [core problem] + [unique angle]",
  "content": {
    "avatar": "Who the script speaks to",
    "marketingAngle": "The framework and psychological approach used",
    "problem": "The specific pain point",
    "solution": "How the product solves it differently",
    "fullScript": "Complete script with [visual cues] and timing",
    "cta": "Clear call to action"
  },
  "sourceResearch": {
    "avatarName": "Target avatar name",
    "conceptTitle": "Creative framework used",
    "relevanceScore": 90
  }
}"""


class ScriptGenerationError(RuntimeError):
    pass


def _kb_value(value: Optional[str], default: str) -> str:
    return value.strip() if isinstance(value, str) and value.strip() else default


def _kb_list(values: Optional[list[str]], default: str) -> str:
    cleaned = [v for v in (values or []) if isinstance(v, str) and v.strip()]
    return ", ".join(cleaned) if cleaned else default


def build_script_prompt(request: ScriptGenerateRequest, kb: KnowledgeBase) -> str:
    awareness = request.awarenessStage or DEFAULT_AWARENESS_STAGE
    duration = DURATION_GUIDANCE[request.duration]

    lines: list[str] = [f"Generate a {request.scriptType} video script for {duration}.", ""]
    lines.append("BRAND INFORMATION:")
    lines.append(f"- Brand: {_kb_value(kb.website_url, 'Brand')}")
    lines.append(f"- Brand Voice: {_kb_value(kb.brand_voice, 'Professional and engaging')}")
    lines.append(f"- Mission: {_kb_value(kb.mission_statement, 'To provide value to our customers')}")
    lines.append(f"- Key Benefits: {_kb_list(kb.key_benefits, 'High quality, reliable, affordable')}")
    lines.append(f"- Unique Selling Points: {_kb_list(kb.usps, 'Unique value proposition')}")
    lines.append(f"- Brand Values: {_kb_list(kb.brand_values, 'Quality, trust, innovation')}")
    lines.append(f"- Pricing Strategy: {_kb_value(kb.pricing_info, 'Competitive pricing')}")
    lines.append(f"- Target Audience: {_kb_value(kb.current_personas, 'General audience')}")
    lines.append(f"- Demographics: {_kb_value(kb.demographics, 'Various demographics')}")
    lines.append(f"- Social Content Style: {_kb_value(kb.content_style, 'Authentic and engaging')}")
    lines.append("")
    lines.append("SCRIPT REQUIREMENTS:")
    lines.append(f"- Type: {SCRIPT_TYPE_GUIDANCE[request.scriptType]}")
    lines.append(f"- Duration: {duration}")
    lines.append(f"- Target Awareness Stage: {AWARENESS_GUIDANCE[awareness]}")
    if request.targetAvatar:
        lines.append(f"- Specific Avatar: {request.targetAvatar}")
    if request.marketingAngle:
        lines.append(f"- Marketing Angle: {request.marketingAngle}")
    lines.append("")
    lines.append("CREATIVE STANDARDS:")
    lines.append("- The hook interrupts the scroll within 2 seconds.")
    lines.append("- Use specific brand details and concrete proof (numbers, results, social proof).")
    lines.append("- Keep the language conversational and in the brand voice.")
    lines.append("- End with one low-friction next step.")
    lines.append("")
    lines.append("Return a JSON object with this exact structure:")
    lines.append(_OUTPUT_FORMAT)
    return "\n".join(lines)


def _section(result: dict[str, Any], key: str) -> dict[str, Any]:
    value = result.get(key)
    return value if isinstance(value, dict) else {}


def normalize_script(result: dict[str, Any], request: ScriptGenerateRequest) -> dict[str, Any]:
    """Fill defaults so every generated script has the full shape the script board renders."""
    content = _section(result, "content")
    research = _section(result, "sourceResearch")
    return {
        "title": reply_text(result.get("title")) or f"{request.scriptType} Script",
        "duration": request.duration,
        "script_type": request.scriptType,
        "summary": reply_text(result.get("summary")) or "",
        "content": {
            "avatar": content.get("avatar") or "",
            "marketingAngle": content.get("marketingAngle") or "",
            "awarenessStage": request.awarenessStage or DEFAULT_AWARENESS_STAGE,
            "problem": content.get("problem") or "",
            "solution": content.get("solution") or "",
            "fullScript": content.get("fullScript") or "",
            "cta": content.get("cta") or "",
        },
        "source_research": {
            "avatarName": research.get("avatarName") or "Primary Target",
            "conceptTitle": research.get("conceptTitle") or "Brand Messaging",
            "relevanceScore": research.get("relevanceScore") or 85,
        },
    }


def generate_script(
    request: ScriptGenerateRequest,
    kb: KnowledgeBase,
    *,
    llm: Optional[LLMClient] = None,
    model: Optional[str] = None,
) -> dict[str, Any]:
    system_prompt, _ = load_prompt("script_generation_system")
    client = llm or LLMClient()
    try:
        result = client.generate_json(
            build_script_prompt(request, kb),
            system_prompt=system_prompt,
            params=LLMGenerationParams(model=model, temperature=0.8),
        )
    except LLMClientConfigError:
        raise
    except Exception as exc:
        logger.exception("Script generation failed", extra={"script_type": request.scriptType})
        raise ScriptGenerationError(f"Failed to generate script: {exc}") from exc
    return normalize_script(result, request)
