from typing import Optional
from sqlalchemy.orm import Session

from creative_strategist.db.models import User


class UsersRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_or_create(self, user_id: str, **profile) -> User:
        user = self.get(user_id)
        if user:
            changed = False
            for key, value in profile.items():
                if value and getattr(user, key) != value:
                    setattr(user, key, value)
                    changed = True
            if changed:
                self.session.commit()
                self.session.refresh(user)
            return user
        user = User(id=user_id, **profile)
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def update(self, user_id: str, **fields) -> Optional[User]:
        user = self.get(user_id)
        if not user:
            return None
        for key, value in fields.items():
            setattr(user, key, value)
        self.session.commit()
        self.session.refresh(user)
        return user
