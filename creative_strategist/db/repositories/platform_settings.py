from typing import Optional
from sqlalchemy import select
from sqlalchemy.orm import Session

from creative_strategist.db.models import PlatformSettings


class PlatformSettingsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> Optional[PlatformSettings]:
        stmt = select(PlatformSettings).where(PlatformSettings.user_id == user_id)
        return self.session.scalars(stmt).first()

    def get_or_create(self, user_id: str) -> PlatformSettings:
        record = self.get(user_id)
        if record:
            return record
        record = PlatformSettings(user_id=user_id)
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return record

    def update(self, user_id: str, **fields) -> PlatformSettings:
        record = self.get_or_create(user_id)
        for key, value in fields.items():
            setattr(record, key, value)
        self.session.commit()
        self.session.refresh(record)
        return record
