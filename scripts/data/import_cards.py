"""
Import card definitions from a JSON file into the card catalog.

This script:
1. Reads a JSON file (a list of cards, or {"cards": [...]})
2. Validates each card against its card type
3. Inserts or replaces valid cards in the catalog
4. Reports cards that failed validation (they are not imported)

Usage:
    python -m scripts.data.import_cards path/to/cards.json [--dry-run]
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Optional

from recall.cards.models import parse_card
from recall.errors import InvalidCardPayload
from recall.sm2.database import ReviewStore


def load_card_payloads(path: Path) -> list:
    """Raw card dicts from a JSON file."""
    if not path.exists():
        raise FileNotFoundError(f"Card file not found: {path}")

    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("cards", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of cards in {path}")
    return data


def import_cards(
    path: Path,
    dry_run: bool = False,
    store: Optional[ReviewStore] = None
) -> dict:
    """
    Import cards from a JSON file.

    Args:
        path: JSON file with card definitions
        dry_run: If True, validate only, don't write to the database
        store: Target store (defaults to DATABASE_URL)

    Returns:
        Dict with imported / invalid counts and the invalid card ids
    """
    payloads = load_card_payloads(path)
    print(f"Loaded {len(payloads)} cards from {path}")

    cards = []
    invalid = []
    for index, payload in enumerate(payloads, start=1):
        try:
            card = parse_card(payload)
        except InvalidCardPayload as e:
            invalid.append(e.card_id)
            print(f"  ✗ [{index}] {e.card_id}: {e.reason}")
            continue
        cards.append(card)

    if not dry_run and cards:
        if store is None:
            store = ReviewStore.from_env()
        store.init_db()
        with store.session_scope() as session:
            for card in cards:
                store.upsert_card(session, card)

    # Summary
    print(f"\n{'='*60}")
    print("Import complete!")
    print(f"{'='*60}")
    print(f"{'Valid (not written)' if dry_run else 'Imported'}: {len(cards)}")
    print(f"Invalid:  {len(invalid)}")

    if dry_run:
        print("\n⚠ DRY RUN MODE - No changes were made to the database")

    return {"imported": 0 if dry_run else len(cards), "valid": len(cards), "invalid": invalid}


def main():
    parser = argparse.ArgumentParser(description="Import card definitions into the catalog")
    parser.add_argument("path", type=Path, help="JSON file with card definitions")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate only, don't write to the database"
    )

    args = parser.parse_args()
    import_cards(args.path, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
