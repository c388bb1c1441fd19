"""Seed the lessons collection with the demo catalog.

Usage: python seed.py [--force]
"""

import argparse
import logging
import sys
from typing import List

from config import get_settings
from database import LESSONS, Database
from logging_config import setup_logging
from schemas import Lesson

logger = logging.getLogger("seed")

DEMO_LESSONS = [
    Lesson(subject="Math", location="London", price=100, spaces=5, image="math.png"),
    Lesson(subject="English", location="Oxford", price=90, spaces=5, image="english.png"),
    Lesson(subject="Science", location="Cambridge", price=110, spaces=5, image="science.png"),
    Lesson(subject="Music", location="Bristol", price=80, spaces=5, image="music.png"),
    Lesson(subject="Art", location="London", price=70, spaces=5, image="art.png"),
    Lesson(subject="Drama", location="York", price=85, spaces=5, image="drama.png"),
    Lesson(subject="Coding", location="Manchester", price=120, spaces=5, image="coding.png"),
    Lesson(subject="Chess", location="Leeds", price=60, spaces=5, image="chess.png"),
    Lesson(subject="French", location="Brighton", price=95, spaces=5, image="french.png"),
    Lesson(subject="Swimming", location="Liverpool", price=75, spaces=5, image="swimming.png"),
]


def seed_lessons(db: Database, force: bool = False) -> List[str]:
    """Insert DEMO_LESSONS unless the collection already has lessons."""
    count = db.lessons.count_documents({})
    if count and not force:
        logger.info("lessons already holds %d documents; skipping", count)
        return []
    ids = [db.create_document(LESSONS, lesson) for lesson in DEMO_LESSONS]
    logger.info("Inserted %d lessons", len(ids))
    return ids


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Seed demo lessons")
    parser.add_argument("--force", action="store_true", help="seed even if lessons exist")
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings)
    db = Database.from_settings(settings)
    try:
        db.connect()
        seed_lessons(db, force=args.force)
    except Exception:
        logger.exception("Seeding failed")
        return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
