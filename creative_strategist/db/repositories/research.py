from typing import Iterable, List, Optional
from sqlalchemy import select
from sqlalchemy.orm import Session

from creative_strategist.db.enums import InsightCategoryEnum, ReviewStatusEnum
from creative_strategist.db.models import Insight, Source


class InsightsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(
        self,
        user_id: str,
        *,
        category: Optional[InsightCategoryEnum] = None,
        status: Optional[ReviewStatusEnum] = None,
        statuses: Optional[Iterable[ReviewStatusEnum]] = None,
        platform: Optional[str] = None,
    ) -> List[Insight]:
        stmt = select(Insight).where(Insight.user_id == user_id)
        if category is not None:
            stmt = stmt.where(Insight.category == category)
        if status is not None:
            stmt = stmt.where(Insight.status == status)
        if statuses is not None:
            stmt = stmt.where(Insight.status.in_(list(statuses)))
        if platform:
            stmt = stmt.where(Insight.source_platform == platform)
        stmt = stmt.order_by(Insight.created_at.desc())
        return list(self.session.scalars(stmt).all())

    def get(self, user_id: str, insight_id: str) -> Optional[Insight]:
        stmt = select(Insight).where(Insight.user_id == user_id, Insight.id == insight_id)
        return self.session.scalars(stmt).first()

    def bulk_create(self, user_id: str, rows: Iterable[dict]) -> List[Insight]:
        insights = [Insight(user_id=user_id, **row) for row in rows]
        self.session.add_all(insights)
        self.session.commit()
        for insight in insights:
            self.session.refresh(insight)
        return insights

    def update(self, user_id: str, insight_id: str, **fields) -> Optional[Insight]:
        insight = self.get(user_id, insight_id)
        if not insight:
            return None
        for key, value in fields.items():
            setattr(insight, key, value)
        self.session.commit()
        self.session.refresh(insight)
        return insight


class SourcesRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, user_id: str, platform: Optional[str] = None) -> List[Source]:
        stmt = select(Source).where(Source.user_id == user_id)
        if platform:
            stmt = stmt.where(Source.platform == platform)
        stmt = stmt.order_by(Source.created_at.desc())
        return list(self.session.scalars(stmt).all())

    def get(self, user_id: str, source_id: str) -> Optional[Source]:
        stmt = select(Source).where(Source.user_id == user_id, Source.id == source_id)
        return self.session.scalars(stmt).first()

    def create(self, user_id: str, platform: str, title: str, **fields) -> Source:
        source = Source(user_id=user_id, platform=platform, title=title, **fields)
        self.session.add(source)
        self.session.commit()
        self.session.refresh(source)
        return source

    def update(self, user_id: str, source_id: str, **fields) -> Optional[Source]:
        source = self.get(user_id, source_id)
        if not source:
            return None
        for key, value in fields.items():
            setattr(source, key, value)
        self.session.commit()
        self.session.refresh(source)
        return source
