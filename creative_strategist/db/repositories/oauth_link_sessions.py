from datetime import datetime
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.orm import Session

from creative_strategist.db.models import OAuthLinkSession


class OAuthLinkSessionsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, link_session_id: str) -> Optional[OAuthLinkSession]:
        return self.session.get(OAuthLinkSession, link_session_id)

    def create(self, **fields) -> OAuthLinkSession:
        record = OAuthLinkSession(**fields)
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return record

    def update(self, link_session_id: str, **fields) -> Optional[OAuthLinkSession]:
        record = self.get(link_session_id)
        if not record:
            return None
        for key, value in fields.items():
            setattr(record, key, value)
        self.session.commit()
        self.session.refresh(record)
        return record

    def delete(self, link_session_id: str) -> bool:
        record = self.get(link_session_id)
        if not record:
            return False
        self.session.delete(record)
        self.session.commit()
        return True

    def purge_expired(self, now: datetime) -> int:
        stmt = (
            delete(OAuthLinkSession)
            .where(OAuthLinkSession.expires_at < now)
            .execution_options(synchronize_session="fetch")
        )
        result = self.session.execute(stmt)
        self.session.commit()
        return result.rowcount or 0
