"""
Seed the `articles` collection with the sample traffic-law articles.

Existing documents are left untouched, so the script can be re-run safely.
Favorite counters are not written: each one is created from the article's
`favoriteCount` baseline the first time somebody likes it.

Usage:
    python scripts/seed_articles.py
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from app.models.catalog import SAMPLE_ARTICLES
from app.services.firebase_service import firebase_service


async def seed_articles():
    print(f"--- Seeding {len(SAMPLE_ARTICLES)} sample articles ---")
    created = await firebase_service.seed_articles(SAMPLE_ARTICLES)
    skipped = len(SAMPLE_ARTICLES) - created
    print(f"Created {created} article(s), {skipped} already present.")


if __name__ == "__main__":
    asyncio.run(seed_articles())
