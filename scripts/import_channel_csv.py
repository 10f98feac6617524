"""
Resolve a channel sales report from the command line.

Usage:
    # Dry run: parse, resolve, print summary
    python scripts/import_channel_csv.py --channel amazon --file data/amazon_2025_06.csv

    # Also learn every similarity match at or above --learn-min-score
    python scripts/import_channel_csv.py --channel rakuten --file rakuten.csv \
        --learn --learn-min-score 0.8

    # Write the resolved quantities into web_sales_summary
    python scripts/import_channel_csv.py --channel yahoo --file yahoo.csv --confirm 2025-06
"""

import argparse
import os
import sys

# Allow imports from the project root when running as a script
_root_dir = os.path.join(os.path.dirname(__file__), "..")
sys.path.insert(0, _root_dir)

from dotenv import load_dotenv
load_dotenv(os.path.join(_root_dir, ".env"))

from models.channel import Channel
from models.matching import MatchType
from models.web_sales import ConfirmItem
from parsers.channel_csv_parser import parse_channel_csv
from services.catalog_service import get_catalog_service
from services.mapping_service import get_mapping_service
from services.match_service import get_match_service
from services.web_sales_service import get_web_sales_service


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Resolve a channel sales report")
    parser.add_argument("--channel", required=True, choices=[c.value for c in Channel])
    parser.add_argument("--file", required=True, help="Path to the channel CSV")
    parser.add_argument("--encoding", default="utf-8-sig")
    parser.add_argument("--learn", action="store_true", help="Learn similarity matches")
    parser.add_argument("--learn-min-score", type=float, default=0.8)
    parser.add_argument("--confirm", metavar="YYYY-MM", help="Store quantities for this month")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    channel = Channel(args.channel)

    print("=" * 50)
    print(f"{channel.config.display_name.upper()} REPORT IMPORT")
    print("=" * 50)

    with open(args.file, "rb") as f:
        parsed = parse_channel_csv(f.read(), channel, encoding=args.encoding)
    print(f"Parsed rows: {len(parsed.rows)} (skipped {parsed.skipped_rows})")

    catalog = get_catalog_service().get_catalog()
    print(f"Catalog entries: {len(catalog)}")

    batch = get_match_service().resolve_batch(channel, parsed.rows, catalog)
    summary = batch.summary

    print(f"Matched titles: {summary.matched_count} ({summary.matched_quantity} units)")
    print(f"Unmatched titles: {summary.unmatched_count} ({summary.unmatched_quantity} units)")
    print(f"Blank titles: {summary.blank_title_info.count} ({summary.blank_title_info.quantity} units)")

    for row in batch.unresolved[:10]:
        print(f"  ? {row.title[:60]}  x{row.quantity}  best={row.match.score:.2f}")

    for group in batch.duplicates:
        print(f"  Duplicate -> {group.product_name or group.product_id}: "
              f"{group.count} titles, {group.total_quantity} units")

    if args.learn:
        store = get_mapping_service(channel)
        learned = 0
        for row in batch.results:
            match = row.match
            if match.match_type in (MatchType.LEARNED, MatchType.NONE):
                continue
            if match.score < args.learn_min_score:
                continue
            store.upsert(row.title, match.product_id)
            learned += 1
        print(f"Learned mappings: {learned}")

    if args.confirm:
        items = [
            ConfirmItem(product_id=row.match.product_id, quantity=row.quantity)
            for row in batch.results
            if row.match.resolved
        ]
        confirmed = get_web_sales_service().confirm(channel, args.confirm, items)
        print(f"Stored {confirmed.updated_records} products for {confirmed.report_month}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
