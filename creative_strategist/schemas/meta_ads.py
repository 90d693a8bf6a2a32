from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from creative_strategist.db.enums import DateRangeEnum

InsightAction = Literal["scale", "pause", "wait", "optimize", "creative-refresh"]
InsightPriority = Literal["high", "medium", "low"]


class PerformanceMetrics(BaseModel):
    spend: float = 0.0
    revenue: float = 0.0
    roas: float = 0.0
    cpm: float = 0.0
    ctr: float = 0.0
    cpc: float = 0.0
    impressions: int = 0
    clicks: int = 0
    purchases: int = 0
    hookRate: Optional[float] = None
    thumbstopRate: Optional[float] = None


class HistoricalPeriod(BaseModel):
    date: Optional[str] = None
    spend: float = 0.0
    roas: float = 0.0
    cpm: float = 0.0
    ctr: float = 0.0


class Benchmarks(BaseModel):
    industryRoas: float
    industryCtr: float
    industryCpm: float


class AIInsightRequest(BaseModel):
    entityType: Literal["campaign", "adset", "ad"]
    entityId: str
    entityName: str
    currentMetrics: PerformanceMetrics
    historicalData: list[HistoricalPeriod] = Field(default_factory=list)
    benchmarks: Optional[Benchmarks] = None


class DataAnalysis(BaseModel):
    keyMetrics: list[str] = Field(default_factory=list)
    trends: list[str] = Field(default_factory=list)
    benchmarkComparison: list[str] = Field(default_factory=list)


class ProjectedImpact(BaseModel):
    expectedRoasChange: float = 0.0
    expectedSpendChange: float = 0.0
    timeframe: str = "7-14 days"
    reasoning: str = ""


class AIInsightResponse(BaseModel):
    recommendation: str
    reasoning: str
    action: InsightAction
    priority: InsightPriority
    confidence: float
    dataAnalysis: DataAnalysis
    projectedImpact: ProjectedImpact


class WeeklyObservation(BaseModel):
    title: str
    observation: str
    keyFindings: list[str] = Field(default_factory=list)
    priority: InsightPriority = "medium"
    impact: str = ""
    confidence: float = 75.0


class MetaSyncRequest(BaseModel):
    adAccountId: Optional[str] = None
    dateRange: Optional[DateRangeEnum] = None
