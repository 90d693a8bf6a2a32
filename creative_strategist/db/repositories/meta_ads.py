from typing import Any, List, Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from creative_strategist.db.models import MetaAd, MetaAdSet, MetaCampaign, utcnow

_MirrorT = TypeVar("_MirrorT", MetaCampaign, MetaAdSet, MetaAd)


class MetaAdsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _upsert(self, model: Type[_MirrorT], key_column: str, *, user_id: str, meta_id: str, **fields: Any) -> _MirrorT:
        stmt = select(model).where(model.user_id == user_id, getattr(model, key_column) == meta_id)
        record = self.session.scalars(stmt).first()
        if record is None:
            record = model(user_id=user_id, **{key_column: meta_id})
            self.session.add(record)
        for key, value in fields.items():
            setattr(record, key, value)
        record.synced_at = utcnow()
        return record

    def upsert_campaign(self, *, user_id: str, meta_campaign_id: str, **fields: Any) -> MetaCampaign:
        return self._upsert(MetaCampaign, "meta_campaign_id", user_id=user_id, meta_id=meta_campaign_id, **fields)

    def upsert_adset(self, *, user_id: str, meta_adset_id: str, **fields: Any) -> MetaAdSet:
        return self._upsert(MetaAdSet, "meta_adset_id", user_id=user_id, meta_id=meta_adset_id, **fields)

    def upsert_ad(self, *, user_id: str, meta_ad_id: str, **fields: Any) -> MetaAd:
        return self._upsert(MetaAd, "meta_ad_id", user_id=user_id, meta_id=meta_ad_id, **fields)

    def commit(self) -> None:
        self.session.commit()

    def list_campaigns(self, *, user_id: str, ad_account_id: Optional[str] = None) -> List[MetaCampaign]:
        stmt = select(MetaCampaign).where(MetaCampaign.user_id == user_id)
        if ad_account_id:
            stmt = stmt.where(MetaCampaign.ad_account_id == ad_account_id)
        return list(self.session.scalars(stmt.order_by(MetaCampaign.name)).all())

    def list_adsets(
        self,
        *,
        user_id: str,
        ad_account_id: Optional[str] = None,
        meta_campaign_id: Optional[str] = None,
    ) -> List[MetaAdSet]:
        stmt = select(MetaAdSet).where(MetaAdSet.user_id == user_id)
        if ad_account_id:
            stmt = stmt.where(MetaAdSet.ad_account_id == ad_account_id)
        if meta_campaign_id:
            stmt = stmt.where(MetaAdSet.meta_campaign_id == meta_campaign_id)
        return list(self.session.scalars(stmt.order_by(MetaAdSet.name)).all())

    def list_ads(
        self,
        *,
        user_id: str,
        ad_account_id: Optional[str] = None,
        meta_adset_id: Optional[str] = None,
    ) -> List[MetaAd]:
        stmt = select(MetaAd).where(MetaAd.user_id == user_id)
        if ad_account_id:
            stmt = stmt.where(MetaAd.ad_account_id == ad_account_id)
        if meta_adset_id:
            stmt = stmt.where(MetaAd.meta_adset_id == meta_adset_id)
        return list(self.session.scalars(stmt.order_by(MetaAd.name)).all())
