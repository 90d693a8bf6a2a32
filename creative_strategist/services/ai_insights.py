from __future__ import annotations

import json
import logging
from typing import Any, Optional

from creative_strategist.llm.client import LLMClient, LLMClientConfigError, LLMGenerationParams, reply_text
from creative_strategist.llm.prompts import load_prompt
from creative_strategist.schemas.meta_ads import (
    AIInsightRequest,
    AIInsightResponse,
    DataAnalysis,
    PerformanceMetrics,
    ProjectedImpact,
    WeeklyObservation,
)

logger = logging.getLogger(__name__)

_VALID_ACTIONS = {"scale", "pause", "wait", "optimize", "creative-refresh"}
_VALID_PRIORITIES = {"high", "medium", "low"}

_INSIGHT_OUTPUT_FORMAT = """{
  "recommendation": "Specific, actionable recommendation (2-3 sentences)",
  "reasoning": "The data signals and strategic logic behind the recommendation",
  "action": "scale|pause|wait|optimize|creative-refresh",
  "priority": "high|medium|low",
  "confidence": 85,
  "dataAnalysis": {
    "keyMetrics": ["3-4 most important indicators"],
    "trends": ["2-3 notable trends"],
    "benchmarkComparison": ["2-3 comparisons to benchmarks"]
  },
  "projectedImpact": {
    "expectedRoasChange": 0.25,
    "expectedSpendChange": 1500,
    "timeframe": "7-14 days",
    "reasoning": "Expected outcome and timeline"
  }
}"""


class PerformanceInsightError(RuntimeError):
    pass


def _money(value: float) -> str:
    return f"${value:,.2f}"


def _metric_lines(metrics: PerformanceMetrics) -> list[str]:
    lines = [
        f"- Spend: {_money(metrics.spend)}",
        f"- Revenue: {_money(metrics.revenue)}",
        f"- ROAS: {metrics.roas:.2f}x",
        f"- CPM: {_money(metrics.cpm)}",
        f"- CTR: {metrics.ctr:.2f}%",
        f"- CPC: {_money(metrics.cpc)}",
        f"- Impressions: {metrics.impressions:,}",
        f"- Clicks: {metrics.clicks:,}",
        f"- Purchases: {metrics.purchases:,}",
    ]
    if metrics.hookRate:
        lines.append(f"- Hook Rate: {metrics.hookRate:.2f}%")
    if metrics.thumbstopRate:
        lines.append(f"- Thumbstop Rate: {metrics.thumbstopRate:.2f}%")
    return lines


def build_insight_prompt(request: AIInsightRequest) -> str:
    lines: list[str] = [f"Analyze the performance data for this {request.entityType} and recommend what to do next.", ""]
    lines.append("ENTITY DETAILS:")
    lines.append(f"- Type: {request.entityType.upper()}")
    lines.append(f"- Name: {request.entityName}")
    lines.append("")
    lines.append("CURRENT METRICS:")
    lines.extend(_metric_lines(request.currentMetrics))

    if request.historicalData:
        lines.append("")
        lines.append("HISTORICAL TRENDS (previous periods):")
        for index, period in enumerate(request.historicalData, start=1):
            lines.append(f"Period {index}:")
            lines.append(f"- ROAS: {period.roas:.2f}x")
            lines.append(f"- CPM: {_money(period.cpm)}")
            lines.append(f"- CTR: {period.ctr:.2f}%")
            lines.append(f"- Spend: {_money(period.spend)}")

    if request.benchmarks:
        lines.append("")
        lines.append("INDUSTRY BENCHMARKS:")
        lines.append(f"- Industry Average ROAS: {request.benchmarks.industryRoas:.2f}x")
        lines.append(f"- Industry Average CTR: {request.benchmarks.industryCtr:.2f}%")
        lines.append(f"- Industry Average CPM: {_money(request.benchmarks.industryCpm)}")

    lines.append("")
    lines.append("DECISION SIGNALS:")
    lines.append("- Scale: stable ROAS above 3.5x with room for audience expansion.")
    lines.append("- Pause: ROAS below 1.5x for 3+ days, or CPC up more than 50%.")
    lines.append("- Creative refresh: CTR down more than 25%, or hook rate below 15%.")
    lines.append("- High priority: ROAS down more than 20%, or CPM up more than 30%.")
    lines.append("")
    lines.append("Return a JSON object with this exact structure:")
    lines.append(_INSIGHT_OUTPUT_FORMAT)
    return "\n".join(lines)


def _number(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _choice(value: Any, allowed: set[str], default: str) -> str:
    return value if isinstance(value, str) and value in allowed else default


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def normalize_insight(result: dict[str, Any]) -> AIInsightResponse:
    analysis = result.get("dataAnalysis") if isinstance(result.get("dataAnalysis"), dict) else {}
    impact = result.get("projectedImpact") if isinstance(result.get("projectedImpact"), dict) else {}
    return AIInsightResponse(
        recommendation=reply_text(result.get("recommendation")) or "Monitor performance and optimize as needed",
        reasoning=reply_text(result.get("reasoning")) or "Insufficient data for specific recommendation",
        action=_choice(result.get("action"), _VALID_ACTIONS, "wait"),
        priority=_choice(result.get("priority"), _VALID_PRIORITIES, "medium"),
        confidence=min(100.0, max(0.0, _number(result.get("confidence"), 75.0) or 75.0)),
        dataAnalysis=DataAnalysis(
            keyMetrics=_string_list(analysis.get("keyMetrics")),
            trends=_string_list(analysis.get("trends")),
            benchmarkComparison=_string_list(analysis.get("benchmarkComparison")),
        ),
        projectedImpact=ProjectedImpact(
            expectedRoasChange=_number(impact.get("expectedRoasChange"), 0.0),
            expectedSpendChange=_number(impact.get("expectedSpendChange"), 0.0),
            timeframe=reply_text(impact.get("timeframe")) or "7-14 days",
            reasoning=reply_text(impact.get("reasoning")) or "Impact projection requires more data",
        ),
    )


def generate_insight(
    request: AIInsightRequest,
    *,
    llm: Optional[LLMClient] = None,
    model: Optional[str] = None,
) -> AIInsightResponse:
    system_prompt, _ = load_prompt("performance_insight_system")
    client = llm or LLMClient()
    try:
        result = client.generate_json(
            build_insight_prompt(request),
            system_prompt=system_prompt,
            params=LLMGenerationParams(model=model, temperature=0.4),
        )
    except LLMClientConfigError:
        raise
    except Exception as exc:
        logger.exception(
            "Performance insight generation failed",
            extra={"entity_type": request.entityType, "entity_id": request.entityId},
        )
        raise PerformanceInsightError(f"Failed to generate AI insight: {exc}") from exc
    return normalize_insight(result)


def generate_weekly_observations(
    account_data: list[dict[str, Any]],
    *,
    llm: Optional[LLMClient] = None,
    model: Optional[str] = None,
) -> list[WeeklyObservation]:
    """Ask for 3-5 weekly observations; any failure yields an empty list."""
    prompt_lines = [
        "Analyze this Meta Ads account performance data and generate 3-5 key weekly observations.",
        "",
        "ACCOUNT DATA:",
        json.dumps(account_data, indent=2, default=str),
        "",
        "Focus on significant performance shifts, scaling opportunities and risks, creative patterns, "
        "audience trends and budget allocation.",
        "",
        "Return JSON in this exact format:",
        '{"observations": [{"title": "5-8 word title", "observation": "Detailed observation with data points", '
        '"keyFindings": ["Finding 1", "Finding 2"], "priority": "high|medium|low", '
        '"impact": "Expected business impact", "confidence": 85}]}',
    ]
    try:
        system_prompt, _ = load_prompt("weekly_observations_system")
        client = llm or LLMClient()
        result = client.generate_json(
            "\n".join(prompt_lines),
            system_prompt=system_prompt,
            params=LLMGenerationParams(model=model, temperature=0.5),
        )
    except Exception:
        logger.exception("Weekly observation generation failed", extra={"rows": len(account_data)})
        return []

    raw_observations = result.get("observations")
    if not isinstance(raw_observations, list):
        logger.warning("Weekly observations reply has no observations list")
        return []

    observations: list[WeeklyObservation] = []
    for raw in raw_observations:
        if not isinstance(raw, dict):
            continue
        title = reply_text(raw.get("title"))
        if not title:
            continue
        observations.append(
            WeeklyObservation(
                title=title,
                observation=reply_text(raw.get("observation")) or "",
                keyFindings=_string_list(raw.get("keyFindings")),
                priority=_choice(raw.get("priority"), _VALID_PRIORITIES, "medium"),
                impact=reply_text(raw.get("impact")) or "",
                confidence=min(100.0, max(0.0, _number(raw.get("confidence"), 75.0))),
            )
        )
    return observations
