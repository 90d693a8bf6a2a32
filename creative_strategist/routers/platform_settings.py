from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from creative_strategist.auth.dependencies import AuthContext, get_current_user
from creative_strategist.db.deps import get_session
from creative_strategist.db.enums import DateRangeEnum
from creative_strategist.db.repositories.platform_settings import PlatformSettingsRepository
from creative_strategist.routers.serializers import serialize_platform_settings
from creative_strategist.schemas.platform_settings import PlatformSettingsUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/platform-settings", tags=["platform-settings"])

_SETTINGS_COLUMNS = {
    "defaultAdAccountId": "default_ad_account_id",
    "benchmarkRoas": "benchmark_roas",
    "benchmarkCtr": "benchmark_ctr",
    "benchmarkCpm": "benchmark_cpm",
    "llmModel": "llm_model",
    "notificationsEnabled": "notifications_enabled",
}
_NULLABLE_FIELDS = {"defaultAdAccountId", "llmModel"}


@router.get("")
def get_platform_settings(
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return serialize_platform_settings(PlatformSettingsRepository(session).get_or_create(auth.user_id))


@router.patch("")
def update_platform_settings(
    payload: PlatformSettingsUpdateRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    fields: dict[str, Any] = {}
    for key in payload.model_fields_set:
        value = getattr(payload, key)
        if key == "defaultDateRange":
            if value is None:
                continue
            try:
                fields["default_date_range"] = DateRangeEnum(value)
            except ValueError as exc:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Invalid defaultDateRange: {value}",
                ) from exc
            continue
        if value is None and key not in _NULLABLE_FIELDS:
            continue
        fields[_SETTINGS_COLUMNS[key]] = value

    record = PlatformSettingsRepository(session).update(auth.user_id, **fields)
    logger.info("Updated platform settings", extra={"user_id": auth.user_id, "fields": sorted(fields)})
    return serialize_platform_settings(record)
