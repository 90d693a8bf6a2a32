from typing import Iterable, List, Optional
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from creative_strategist.db.enums import ConceptStatusEnum
from creative_strategist.db.models import AvatarConcept, Concept


class ConceptsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, user_id: str, status: Optional[ConceptStatusEnum] = None) -> List[Concept]:
        stmt = select(Concept).where(Concept.user_id == user_id)
        if status is not None:
            stmt = stmt.where(Concept.status == status)
        stmt = stmt.order_by(Concept.created_at.desc())
        return list(self.session.scalars(stmt).all())

    def get(self, user_id: str, concept_id: str) -> Optional[Concept]:
        stmt = select(Concept).where(Concept.user_id == user_id, Concept.id == concept_id)
        return self.session.scalars(stmt).first()

    def create(self, user_id: str, **fields) -> Concept:
        concept = Concept(user_id=user_id, **fields)
        self.session.add(concept)
        self.session.commit()
        self.session.refresh(concept)
        return concept

    def bulk_create(self, user_id: str, rows: Iterable[dict]) -> List[Concept]:
        concepts = [Concept(user_id=user_id, **row) for row in rows]
        self.session.add_all(concepts)
        self.session.commit()
        for concept in concepts:
            self.session.refresh(concept)
        return concepts

    def update(self, user_id: str, concept_id: str, **fields) -> Optional[Concept]:
        concept = self.get(user_id, concept_id)
        if not concept:
            return None
        for key, value in fields.items():
            setattr(concept, key, value)
        self.session.commit()
        self.session.refresh(concept)
        return concept

    def delete_all(self, user_id: str) -> int:
        ids = list(self.session.scalars(select(Concept.id).where(Concept.user_id == user_id)).all())
        if not ids:
            return 0
        self.session.execute(delete(AvatarConcept).where(AvatarConcept.concept_id.in_(ids)))
        self.session.execute(delete(Concept).where(Concept.id.in_(ids)))
        self.session.commit()
        return len(ids)
