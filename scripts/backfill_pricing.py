#!/usr/bin/env python
"""
Backfill default pricing settings for accounts that have none.

Usage:
    python scripts/backfill_pricing.py ACCOUNT_ID [ACCOUNT_ID ...]
    python scripts/backfill_pricing.py --from-quotes
"""
import argparse
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from lawn_quote.config.settings import configure_logging, get_settings
from lawn_quote.engine.models import DEFAULT_PRICING_TIERS
from lawn_quote.services.quote_store import QuoteStore
from lawn_quote.services.settings_store import SettingsStore


def main():
    parser = argparse.ArgumentParser(description="Create default pricing settings for accounts missing them")
    parser.add_argument('account_ids', nargs='*', help="Account IDs to backfill")
    parser.add_argument('--from-quotes', action='store_true',
                        help="Also backfill every account that appears in the quote store")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings)

    account_ids = list(args.account_ids)
    if args.from_quotes:
        quotes = QuoteStore(settings.quotes_file).list_quotes()
        account_ids.extend(q.account_id for q in quotes)
    account_ids = list(dict.fromkeys(account_ids))

    if not account_ids:
        parser.error("no accounts given")

    print("=" * 60)
    print("PRICING SETTINGS BACKFILL")
    print("=" * 60)
    print()
    print("Default tiers:")
    for tier in DEFAULT_PRICING_TIERS:
        bound = f"up to {tier.up_to_area:,.0f}" if tier.up_to_area is not None else "no limit"
        print(f"  {bound:>16} @ ${tier.rate_per_unit_area:.4f}/sq ft")
    print()

    store = SettingsStore(settings.account_settings_file)
    created = store.backfill_defaults(account_ids)

    print(f"Accounts checked: {len(account_ids)}")
    print(f"Settings created: {len(created)}")
    for account_id in created:
        print(f"  + {account_id}")


if __name__ == "__main__":
    main()
