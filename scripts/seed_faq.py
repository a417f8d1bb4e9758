#!/usr/bin/env python3
"""
Seed the FAQ table from a JSON file.

The file holds a list of {"question": ..., "answer": ...} objects. Entries are
inserted through the knowledge base, so the full-text index is updated too.
Use --reset to delete existing entries first.

Run from project root:

    python scripts/seed_faq.py faq.json
    python scripts/seed_faq.py faq.json --reset
"""

import argparse
import json
import sys
from pathlib import Path

# Project root on path so "helpdesk" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from helpdesk.config import settings
from helpdesk.database import SessionLocal, init_db
from helpdesk.services import knowledge_base
from helpdesk.services.faq_index import FAQIndex


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the FAQ knowledge base.")
    parser.add_argument("path", type=Path, help="JSON file with question/answer objects.")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Delete all existing FAQ entries before inserting.",
    )
    args = parser.parse_args()

    items = json.loads(args.path.read_text(encoding="utf-8"))

    init_db()
    db = SessionLocal()
    try:
        index = FAQIndex.open_or_create(settings.index_path, knowledge_base.load_entries(db))
        try:
            if args.reset:
                for entry in knowledge_base.load_entries(db):
                    knowledge_base.delete_entry(db, index, entry.id)
                print("Cleared existing FAQ entries.")

            for item in items:
                faq = knowledge_base.create_entry(db, index, item["question"], item["answer"])
                print(f"  added #{faq.id}: {faq.question}")
        finally:
            index.close()
    finally:
        db.close()

    print(f"Done. Seeded {len(items)} entries.")


if __name__ == "__main__":
    main()
