from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel

from creative_strategist.db.enums import ScriptStatusEnum

ScriptType = Literal["ugc", "testimonial", "demo", "story"]
ScriptDuration = Literal["15s", "30s", "45s", "60s"]
AwarenessStage = Literal["unaware", "problem aware", "solution aware", "product aware", "most aware"]


class ScriptGenerateRequest(BaseModel):
    scriptType: ScriptType
    duration: ScriptDuration
    targetAvatar: Optional[str] = None
    marketingAngle: Optional[str] = None
    awarenessStage: Optional[AwarenessStage] = None


class ScriptUpdateRequest(BaseModel):
    title: Optional[str] = None
    status: Optional[ScriptStatusEnum] = None
    content: Optional[dict[str, Any]] = None
