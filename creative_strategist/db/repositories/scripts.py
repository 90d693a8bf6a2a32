from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.orm import Session

from creative_strategist.db.models import Script


class ScriptsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, user_id: str) -> List[Script]:
        stmt = select(Script).where(Script.user_id == user_id).order_by(Script.created_at.desc())
        return list(self.session.scalars(stmt).all())

    def get(self, user_id: str, script_id: str) -> Optional[Script]:
        stmt = select(Script).where(Script.user_id == user_id, Script.id == script_id)
        return self.session.scalars(stmt).first()

    def create(self, user_id: str, **fields) -> Script:
        script = Script(user_id=user_id, **fields)
        self.session.add(script)
        self.session.commit()
        self.session.refresh(script)
        return script

    def update(self, user_id: str, script_id: str, **fields) -> Optional[Script]:
        script = self.get(user_id, script_id)
        if not script:
            return None
        for key, value in fields.items():
            setattr(script, key, value)
        self.session.commit()
        self.session.refresh(script)
        return script
