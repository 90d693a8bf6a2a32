from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from creative_strategist.db.repositories.meta_ads import MetaAdsRepository
from creative_strategist.services.meta_ads import PERFORMANCE_KEYS, MetaAdsClient, normalize_ad_account_id

logger = logging.getLogger("meta.sync")


def _metrics(entity: dict[str, Any]) -> dict[str, Any]:
    return {key: entity.get(key) for key in PERFORMANCE_KEYS}


def sync_meta_mirrors(
    session: Session,
    *,
    user_id: str,
    client: MetaAdsClient,
    ad_account_id: str,
    date_range: str,
) -> dict[str, int]:
    """Pull campaigns, ad sets and ads for one account and upsert them into the mirror tables."""
    account = normalize_ad_account_id(ad_account_id)
    repo = MetaAdsRepository(session)

    campaigns = client.get_campaigns(account, date_range)
    for campaign in campaigns:
        repo.upsert_campaign(
            user_id=user_id,
            meta_campaign_id=str(campaign["id"]),
            ad_account_id=account,
            name=campaign.get("name"),
            status=campaign.get("status"),
            objective=campaign.get("objective"),
            date_range=date_range,
            metrics=_metrics(campaign),
        )

    adsets = client.get_adsets(account, None, date_range)
    for adset in adsets:
        repo.upsert_adset(
            user_id=user_id,
            meta_adset_id=str(adset["id"]),
            ad_account_id=account,
            meta_campaign_id=adset.get("campaign_id"),
            name=adset.get("name"),
            status=adset.get("status"),
            targeting=adset.get("targeting") or {},
            date_range=date_range,
            metrics=_metrics(adset),
        )

    ads = client.get_ads(account, None, date_range)
    for ad in ads:
        repo.upsert_ad(
            user_id=user_id,
            meta_ad_id=str(ad["id"]),
            ad_account_id=account,
            meta_adset_id=ad.get("adset_id"),
            name=ad.get("name"),
            status=ad.get("status"),
            creative=ad.get("creative") or {},
            date_range=date_range,
            metrics=_metrics(ad),
        )

    repo.commit()
    counts = {"campaigns": len(campaigns), "adsets": len(adsets), "ads": len(ads)}
    logger.info("Synced Meta mirrors", extra={"user_id": user_id, "ad_account_id": account, **counts})
    return counts
