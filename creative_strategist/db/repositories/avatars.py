from typing import Iterable, List, Optional
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from creative_strategist.db.models import Avatar, AvatarConcept


class AvatarsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, user_id: str) -> List[Avatar]:
        stmt = select(Avatar).where(Avatar.user_id == user_id).order_by(Avatar.created_at.desc())
        return list(self.session.scalars(stmt).all())

    def get(self, user_id: str, avatar_id: str) -> Optional[Avatar]:
        stmt = select(Avatar).where(Avatar.user_id == user_id, Avatar.id == avatar_id)
        return self.session.scalars(stmt).first()

    def create(self, user_id: str, name: str, **fields) -> Avatar:
        avatar = Avatar(user_id=user_id, name=name, **fields)
        self.session.add(avatar)
        self.session.commit()
        self.session.refresh(avatar)
        return avatar

    def bulk_create(self, user_id: str, rows: Iterable[dict]) -> List[Avatar]:
        avatars = [Avatar(user_id=user_id, **row) for row in rows]
        self.session.add_all(avatars)
        self.session.commit()
        for avatar in avatars:
            self.session.refresh(avatar)
        return avatars

    def update(self, user_id: str, avatar_id: str, **fields) -> Optional[Avatar]:
        avatar = self.get(user_id, avatar_id)
        if not avatar:
            return None
        for key, value in fields.items():
            setattr(avatar, key, value)
        self.session.commit()
        self.session.refresh(avatar)
        return avatar

    def delete_all(self, user_id: str) -> int:
        ids = list(self.session.scalars(select(Avatar.id).where(Avatar.user_id == user_id)).all())
        if not ids:
            return 0
        self.session.execute(delete(AvatarConcept).where(AvatarConcept.avatar_id.in_(ids)))
        self.session.execute(delete(Avatar).where(Avatar.id.in_(ids)))
        self.session.commit()
        return len(ids)


class AvatarConceptsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, user_id: str, avatar_id: Optional[str] = None) -> List[AvatarConcept]:
        stmt = select(AvatarConcept).where(AvatarConcept.user_id == user_id)
        if avatar_id:
            stmt = stmt.where(AvatarConcept.avatar_id == avatar_id)
        stmt = stmt.order_by(AvatarConcept.created_at.desc())
        return list(self.session.scalars(stmt).all())

    def get(self, user_id: str, link_id: str) -> Optional[AvatarConcept]:
        stmt = select(AvatarConcept).where(AvatarConcept.user_id == user_id, AvatarConcept.id == link_id)
        return self.session.scalars(stmt).first()

    def get_pair(self, user_id: str, avatar_id: str, concept_id: str) -> Optional[AvatarConcept]:
        stmt = select(AvatarConcept).where(
            AvatarConcept.user_id == user_id,
            AvatarConcept.avatar_id == avatar_id,
            AvatarConcept.concept_id == concept_id,
        )
        return self.session.scalars(stmt).first()

    def create(self, user_id: str, avatar_id: str, concept_id: str, **fields) -> AvatarConcept:
        link = AvatarConcept(user_id=user_id, avatar_id=avatar_id, concept_id=concept_id, **fields)
        self.session.add(link)
        self.session.commit()
        self.session.refresh(link)
        return link

    def update(self, user_id: str, link_id: str, **fields) -> Optional[AvatarConcept]:
        link = self.get(user_id, link_id)
        if not link:
            return None
        for key, value in fields.items():
            setattr(link, key, value)
        self.session.commit()
        self.session.refresh(link)
        return link

    def delete(self, user_id: str, link_id: str) -> bool:
        link = self.get(user_id, link_id)
        if not link:
            return False
        self.session.delete(link)
        self.session.commit()
        return True
