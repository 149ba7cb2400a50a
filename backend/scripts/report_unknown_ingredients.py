#!/usr/bin/env python3
"""
List ingredients that evaluated unknown, most frequent first, as a backlog for
knowledge-base curation. Run via cron or by hand.
Usage: cd backend && python scripts/report_unknown_ingredients.py [--min-frequency 2] [--limit 50]
"""
import argparse
import logging
import sys
from pathlib import Path

# Ensure backend is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Report unknown ingredients seen in traffic")
    parser.add_argument("--min-frequency", type=int, default=1, help="Min times seen to include")
    parser.add_argument("--limit", type=int, default=50, help="Max keys to list")
    args = parser.parse_args()

    from halal_core.enrichment.unknown_log import get_unknown_log

    log = get_unknown_log()
    keys = log.get_keys_for_enrichment(min_frequency=args.min_frequency)
    entries = log.get_entries()
    if not keys:
        logger.info("No unknown ingredients logged at %s", log.path)
        return 0

    logger.info("%d unknown ingredient keys (min_frequency=%s)", len(keys), args.min_frequency)
    for normalized_key in keys[: args.limit]:
        entry = entries.get(normalized_key) or {}
        raw = entry.get("raw_inputs") or [normalized_key]
        print(f"{entry.get('frequency', 0):>5}  {normalized_key}  last_seen={entry.get('last_seen') or '?'}  (e.g. {raw[0]!r})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
