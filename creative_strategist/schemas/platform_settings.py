from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class PlatformSettingsUpdateRequest(BaseModel):
    defaultAdAccountId: Optional[str] = None
    # Checked against DateRangeEnum in the router.
    defaultDateRange: Optional[str] = None
    benchmarkRoas: Optional[float] = Field(default=None, ge=0)
    benchmarkCtr: Optional[float] = Field(default=None, ge=0)
    benchmarkCpm: Optional[float] = Field(default=None, ge=0)
    llmModel: Optional[str] = None
    notificationsEnabled: Optional[bool] = None
