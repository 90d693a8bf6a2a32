from typing import Optional
from sqlalchemy import select
from sqlalchemy.orm import Session

from creative_strategist.db.models import KnowledgeBase, utcnow


class KnowledgeBaseRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> Optional[KnowledgeBase]:
        stmt = select(KnowledgeBase).where(KnowledgeBase.user_id == user_id)
        return self.session.scalars(stmt).first()

    def create(self, user_id: str, **fields) -> KnowledgeBase:
        record = KnowledgeBase(user_id=user_id, **fields)
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return record

    def update(self, user_id: str, **fields) -> Optional[KnowledgeBase]:
        record = self.get(user_id)
        if not record:
            return None
        for key, value in fields.items():
            setattr(record, key, value)
        record.last_updated = utcnow()
        self.session.commit()
        self.session.refresh(record)
        return record
