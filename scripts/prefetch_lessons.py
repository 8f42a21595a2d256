#!/usr/bin/env python3
"""
prefetch_lessons.py - Generate and cache lesson content ahead of time.

Fills the local lesson cache so lessons open instantly in the app and
work without network access. Learner progress is not touched.

Key features:
- Same prompt, parser and cache keys as the app
- Skips lessons already cached unless --refresh is given
- Per-lesson failures are logged and the run continues

Usage:
  python scripts/prefetch_lessons.py --all                     # Prefetch every lesson
  python scripts/prefetch_lessons.py --lesson-ids c1l1,c1l2
  python scripts/prefetch_lessons.py --all --refresh           # Regenerate cached lessons
  python scripts/prefetch_lessons.py --all --max-lessons 3     # Quick test
"""

import argparse
import logging
import sys
from pathlib import Path

# Project root for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv

load_dotenv(PROJECT_ROOT / ".env")

from toan6.config import DEFAULT_STORE_DB, GEMINI_MODEL
from toan6.classroom import ProgressTracker, SQLiteKeyValueStore, load_catalog
from toan6.content import GenerationError, parse_lesson_response
from toan6.content.client import DEFAULT_API_SLEEP, GeminiContentClient

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Generate and cache lesson content",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--catalog",
        type=Path,
        help="YAML catalog file (default: built-in Grade 6 catalog)"
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=DEFAULT_STORE_DB,
        help=f"Store database (default: {DEFAULT_STORE_DB})"
    )
    parser.add_argument(
        "--all",
        action="store_true",
        help="Prefetch all lessons"
    )
    parser.add_argument(
        "--lesson-ids",
        type=str,
        help="Comma-separated list of lesson IDs to prefetch"
    )
    parser.add_argument(
        "--max-lessons",
        type=int,
        help="Maximum number of lessons to prefetch (for testing)"
    )
    parser.add_argument(
        "--model",
        type=str,
        default=GEMINI_MODEL,
        help=f"Gemini model to use (default: {GEMINI_MODEL})"
    )
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Regenerate lessons that are already cached"
    )
    parser.add_argument(
        "--api-sleep",
        type=float,
        default=DEFAULT_API_SLEEP,
        help=f"Sleep before retrying a failed call (default: {DEFAULT_API_SLEEP}s)"
    )

    args = parser.parse_args()

    if not args.all and not args.lesson_ids:
        parser.error("Must specify --all or --lesson-ids")

    logger.info("Loading catalog...")
    catalog = load_catalog(args.catalog)
    all_lessons = [(chapter, lesson) for chapter in catalog for lesson in chapter.lessons]
    logger.info(f"  Total lessons in catalog: {len(all_lessons)}")

    if args.lesson_ids:
        lesson_ids = [lid.strip() for lid in args.lesson_ids.split(",")]
        to_fetch = [(c, l) for c, l in all_lessons if l.id in lesson_ids]
        found_ids = {l.id for _, l in to_fetch}
        missing = set(lesson_ids) - found_ids
        if missing:
            logger.warning(f"Some lesson IDs not found: {missing}")
    else:
        to_fetch = all_lessons

    tracker = ProgressTracker(SQLiteKeyValueStore(args.db))
    if not args.refresh:
        to_fetch = [(c, l) for c, l in to_fetch if tracker.get_cached_content(l.id) is None]
        logger.info(f"  Not yet cached: {len(to_fetch)} lessons")

    if args.max_lessons:
        to_fetch = to_fetch[:args.max_lessons]

    if not to_fetch:
        logger.info("No lessons to prefetch. All done!")
        return

    client = GeminiContentClient(model=args.model, sleep_seconds=args.api_sleep)

    fetched = []
    failed = []

    for i, (chapter, lesson) in enumerate(to_fetch, 1):
        logger.info(f"[{i}/{len(to_fetch)}] Generating {lesson.id}...")

        try:
            raw = client.generate_lesson(chapter.title, lesson.title)
            content = parse_lesson_response(raw)
            tracker.cache_content(lesson.id, content)
            fetched.append(lesson.id)
            logger.info(
                f"  ✓ Cached: {lesson.title} "
                f"({len(content.examples)} examples, {len(content.quiz)} quiz questions)"
            )
        except KeyboardInterrupt:
            logger.info("\nInterrupted by user. Cached lessons are kept.")
            break
        except GenerationError as e:
            logger.error(f"  ✗ Error generating {lesson.id}: {e.message}")
            failed.append(lesson.id)

    # Summary
    logger.info("\n" + "=" * 50)
    logger.info("SUMMARY")
    logger.info("=" * 50)
    logger.info(f"Cached: {len(fetched)} lessons")
    logger.info(f"Failed: {len(failed)} lessons")
    if failed:
        logger.info(f"Failed IDs: {', '.join(failed)}")
    logger.info(f"Store: {args.db}")


if __name__ == "__main__":
    main()
