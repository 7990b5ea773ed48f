#!/usr/bin/env python
"""
Submitter report.

Usage:
    # Every submitter with a record count
    python scripts/list_submitters.py

    # Profiles submitted from one mobile number (exact, then normalized match)
    python scripts/list_submitters.py --mobile "+91 98765 43210"

Environment:
    DATABASE_URL, RECORD_STORE_BACKEND, RECORD_STORE_URL, RECORD_STORE_API_KEY
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.registry.config import load_config
from app.registry.modules.submitters.service import (
    LookupOutcome,
    find_records_by_submitter_mobile,
    list_submitters,
)
from app.registry.store import StoreError
from scripts._db_utils import script_record_store


def print_submitters(store) -> int:
    submitters = list_submitters(store)
    if not submitters:
        print("No submitters found.")
        return 0
    print(f"{len(submitters)} submitter(s):\n")
    for sub in submitters:
        print(f"  {sub.name:<30} {sub.mobile:<20} {sub.record_count:>4} record(s)")
    return 0


def print_lookup(store, mobile: str) -> int:
    result = find_records_by_submitter_mobile(store, mobile)
    if result.outcome is LookupOutcome.INVALID_KEY:
        print(f"Invalid mobile: {mobile!r}")
        return 2
    if result.outcome is LookupOutcome.STORE_ERROR:
        print("Record store error; see log output.")
        return 1
    if not result.found:
        print(f"No records found for {mobile}.")
        return 0
    print(f"Records by {result.submitter_name} ({result.outcome.value} match):\n")
    for p in result.records:
        print(f"  #{p.id:<6} {p.name:<30} {p.relation:<15} {p.dob}  {p.nakshatra} / {p.rashi}")
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="List registry submitters")
    parser.add_argument("--mobile", help="Show profiles submitted from this mobile number")
    args = parser.parse_args(argv)

    with script_record_store(load_config()) as store:
        if store is None:
            print("Database not configured. Please check your settings.")
            return 1
        try:
            if args.mobile is not None:
                return print_lookup(store, args.mobile)
            return print_submitters(store)
        except StoreError as e:
            print(f"ERROR: {e}")
            return 1


if __name__ == "__main__":
    sys.exit(main())
