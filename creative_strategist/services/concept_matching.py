from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from creative_strategist.db.models import Avatar, Concept
from creative_strategist.llm.client import LLMClient, LLMGenerationParams

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are a marketing analyst who scores how well social media concepts fit a customer avatar. "
    "Rank objectively on strategic fit and always return the exact number of rankings requested. "
    "Respond with a single valid JSON object."
)
FALLBACK_RELEVANCE = 0.5


@dataclass
class ConceptMatch:
    concept: Concept
    relevance_score: float
    reasoning: str = ""


def _avatar_block(avatar: Avatar) -> list[str]:
    return [
        "CUSTOMER AVATAR:",
        f"Name: {avatar.name}",
        f"Age Range: {avatar.age_range or 'Not specified'}",
        f"Demographics: {avatar.demographics or 'Not specified'}",
        f"Pain Points: {', '.join(avatar.pain_points or []) or 'Not specified'}",
        f"Hooks: {', '.join(avatar.hooks or []) or 'Not specified'}",
    ]


def build_matching_prompt(avatar: Avatar, concepts: Sequence[Concept], top_n: int) -> str:
    lines = _avatar_block(avatar)
    lines.append("")
    lines.append("CONCEPTS:")
    for index, concept in enumerate(concepts):
        filters = concept.filter or {}
        lines.append(f"Concept {index}:")
        lines.append(f"- Platform: {filters.get('platform') or 'unknown'}")
        lines.append(f"- Title: {concept.title}")
        lines.append(f"- Description: {concept.description}")
        lines.append(f"- Hooks: {', '.join(concept.hooks or []) or 'N/A'}")
    lines.append("")
    lines.append("Score each concept's relevance to the avatar:")
    lines.append("- Pain point match (40%)")
    lines.append("- Demographic fit (30%)")
    lines.append("- Hook alignment (20%)")
    lines.append("- Engagement quality (10%)")
    lines.append("")
    lines.append(f"Return exactly {top_n} rankings, most relevant first, in this format:")
    lines.append('{"rankings": [{"index": 0, "relevanceScore": 0.87, "reasoning": "One sentence"}]}')
    return "\n".join(lines)


def _score(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return FALLBACK_RELEVANCE
    if number > 1:
        number = number / 100
    return max(0.0, min(1.0, number))


def select_best_concepts(
    avatar: Avatar,
    concepts: Sequence[Concept],
    *,
    top_n: int = 2,
    llm: Optional[LLMClient] = None,
    model: Optional[str] = None,
) -> list[ConceptMatch]:
    """
    Pick the `top_n` concepts most relevant to an avatar.

    When the model errors or returns fewer rankings than asked, the remaining slots are
    filled with unranked concepts in their original order at a neutral score.
    """
    if len(concepts) <= top_n:
        return [ConceptMatch(concept=c, relevance_score=FALLBACK_RELEVANCE) for c in concepts]

    matches: list[ConceptMatch] = []
    try:
        client = llm or LLMClient()
        result = client.generate_json(
            build_matching_prompt(avatar, concepts, top_n),
            system_prompt=_SYSTEM_PROMPT,
            params=LLMGenerationParams(model=model, temperature=0.2),
        )
        seen: set[int] = set()
        for ranking in result.get("rankings") or []:
            if not isinstance(ranking, dict):
                continue
            index = ranking.get("index")
            if not isinstance(index, int) or index in seen or not 0 <= index < len(concepts):
                continue
            seen.add(index)
            matches.append(
                ConceptMatch(
                    concept=concepts[index],
                    relevance_score=_score(ranking.get("relevanceScore")),
                    reasoning=str(ranking.get("reasoning") or ""),
                )
            )
            if len(matches) == top_n:
                break
    except Exception:
        logger.exception("Concept ranking failed; falling back to first concepts", extra={"avatar_id": avatar.id})
        matches = []

    if len(matches) < top_n:
        chosen = {id(match.concept) for match in matches}
        for concept in concepts:
            if len(matches) == top_n:
                break
            if id(concept) not in chosen:
                matches.append(ConceptMatch(concept=concept, relevance_score=FALLBACK_RELEVANCE))
    return matches
