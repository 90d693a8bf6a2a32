from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from creative_strategist.db.base import session_scope  # noqa: E402
from creative_strategist.db.enums import DateRangeEnum  # noqa: E402
from creative_strategist.db.repositories.platform_settings import PlatformSettingsRepository  # noqa: E402
from creative_strategist.db.repositories.users import UsersRepository  # noqa: E402
from creative_strategist.services.meta_ads import MetaAdsClient  # noqa: E402
from creative_strategist.services.meta_sync import sync_meta_mirrors  # noqa: E402


def main(user_id: str, ad_account_id: str | None, date_range: str | None) -> None:
    with session_scope() as session:
        user = UsersRepository(session).get(user_id)
        if user is None:
            raise SystemExit(f"User not found: {user_id}")
        client = MetaAdsClient.for_access_token(user.meta_access_token)

        platform_settings = PlatformSettingsRepository(session).get_or_create(user_id)
        ad_account_id = ad_account_id or platform_settings.default_ad_account_id
        if not ad_account_id:
            raise SystemExit("No ad account given and no default ad account set for this user.")
        date_range = date_range or platform_settings.default_date_range.value

        counts = sync_meta_mirrors(
            session,
            user_id=user_id,
            client=client,
            ad_account_id=ad_account_id,
            date_range=date_range,
        )
    print(f"Sync complete for {ad_account_id} ({date_range}): {counts}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Mirror Meta campaigns, ad sets and ads for a user.")
    parser.add_argument("--user-id", type=str, required=True, help="Clerk user id whose Meta token is used.")
    parser.add_argument("--ad-account-id", type=str, default=None, help="Defaults to the user's platform setting.")
    parser.add_argument(
        "--date-range",
        type=str,
        default=None,
        choices=[member.value for member in DateRangeEnum],
        help="Defaults to the user's platform setting.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log Graph API requests.")
    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    main(user_id=args.user_id, ad_account_id=args.ad_account_id, date_range=args.date_range)
