"""
Wipe review history from the review database.

Two levels:
- full (default): drop and recreate every table, card catalog included
- --keep-cards: delete review states, review events and user settings,
  leave the imported catalog in place

Prints the row counts that are about to go and asks for confirmation
unless --yes is given.

Usage:
    python -m scripts.maintenance.reset_review_db [--keep-cards] [--yes]
"""

from __future__ import annotations

import argparse
from typing import Optional

from recall.sm2.database import ReviewStore


def reset_review_data(store: ReviewStore, keep_cards: bool = False) -> dict[str, int]:
    """
    Reset the store.

    Returns:
        Row counts per table as they were before the reset
    """
    with store.session_scope() as session:
        before = store.table_counts(session)

    if keep_cards:
        with store.session_scope() as session:
            store.clear_review_data(session)
    else:
        store.reset_db()
    return before


def main(argv: Optional[list[str]] = None, store: Optional[ReviewStore] = None) -> int:
    parser = argparse.ArgumentParser(description="Delete review history (and optionally the card catalog)")
    parser.add_argument(
        "--keep-cards",
        action="store_true",
        help="Only delete review states, events and settings"
    )
    parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    args = parser.parse_args(argv)

    if store is None:
        store = ReviewStore.from_env()
    store.init_db()

    with store.session_scope() as session:
        counts = store.table_counts(session)
    doomed = {
        name: count for name, count in counts.items()
        if not (args.keep_cards and name == "cards")
    }

    print(f"{'='*60}")
    print(f"WARNING: {'Clear review data' if args.keep_cards else 'Reset review database'}")
    print(f"{'='*60}")
    for name, count in doomed.items():
        print(f"  {name:<15} {count:>6} rows")

    if not args.yes:
        answer = input("\nType 'yes' to delete these rows: ")
        if answer.strip().lower() != "yes":
            print("Cancelled. No changes made.")
            return 1

    reset_review_data(store, keep_cards=args.keep_cards)
    print(f"✓ Deleted {sum(doomed.values())} rows")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
