"""
ProgressTracker - Persist user progress and lesson caches in a key-value store.

Stores, as JSON documents:
- User progress (authoritative)
- Derived curriculum outline (cache, also the unlock ratchet)
- Generated lesson content per lesson
- In-progress quiz answers per lesson

Persistence is best effort: read and write failures are logged and the
in-memory state carries on for the session.

The module-level update functions never mutate their input; each returns
a new UserProgress.
"""

import json
import logging
import sqlite3
from datetime import datetime
from typing import Any, Optional

from pydantic import TypeAdapter

from toan6.config import (
    LESSON_CONTENT_KEY_PREFIX,
    LESSON_COMPLETED_PROGRESS,
    LESSON_STARTED_PROGRESS,
    QUIZ_ANSWERS_KEY_PREFIX,
    STORAGE_KEY_CURRICULUM,
    STORAGE_KEY_PROGRESS,
)
from toan6.schemas import (
    ChapterOutline,
    LessonContent,
    UserChapterProgress,
    UserLessonProgress,
    UserProgress,
)

from .navigator import chapter_status, find_chapter
from .store import KeyValueStore


logger = logging.getLogger(__name__)

OUTLINE_ADAPTER = TypeAdapter(list[ChapterOutline])
STORE_ERRORS = (sqlite3.Error, OSError)


# -----------------------------------------------------------------------------
# Progress updates
# -----------------------------------------------------------------------------

def update_lesson_progress(
    user_progress: UserProgress,
    catalog: list[ChapterOutline],
    chapter_id: str,
    lesson_id: str,
    **updates: Any,
) -> UserProgress:
    """
    Apply field updates to one lesson's progress record.

    Creates the chapter and lesson records on first use and recomputes the
    chapter's stored status against the catalog.

    Args:
        user_progress: Current progress document
        catalog: Curriculum catalog (for chapter status)
        chapter_id: Chapter of the lesson
        lesson_id: Lesson to update
        **updates: UserLessonProgress fields to set

    Returns:
        New progress document
    """
    updated = user_progress.model_copy(deep=True)
    chapter_progress = updated.chapters.get(chapter_id)
    if chapter_progress is None:
        chapter_progress = UserChapterProgress(chapter_id=chapter_id)
        updated.chapters[chapter_id] = chapter_progress

    record = chapter_progress.lessons.get(lesson_id) or UserLessonProgress(lesson_id=lesson_id)
    chapter_progress.lessons[lesson_id] = UserLessonProgress.model_validate(
        {**record.model_dump(), **updates}
    )

    catalog_chapter = find_chapter(catalog, chapter_id)
    if catalog_chapter is not None:
        chapter_progress.status = chapter_status(catalog_chapter, chapter_progress)

    return updated


def _current_progress(progress: UserProgress, chapter_id: str, lesson_id: str) -> int:
    record = progress.get_lesson(chapter_id, lesson_id)
    return record.progress if record else 0


def record_lesson_progress(
    progress: UserProgress,
    catalog: list[ChapterOutline],
    chapter_id: str,
    lesson_id: str,
    value: int = LESSON_STARTED_PROGRESS,
) -> UserProgress:
    """Raise a lesson's progress to at least ``value`` and touch last_accessed."""
    current = _current_progress(progress, chapter_id, lesson_id)
    return update_lesson_progress(
        progress, catalog, chapter_id, lesson_id,
        progress=max(current, value),
        last_accessed=datetime.now(),
    )


def record_quiz_result(
    progress: UserProgress,
    catalog: list[ChapterOutline],
    chapter_id: str,
    lesson_id: str,
    score: int,
    passed: bool,
) -> UserProgress:
    """Store a graded quiz. Passing completes the lesson; failing leaves progress as is."""
    current = _current_progress(progress, chapter_id, lesson_id)
    return update_lesson_progress(
        progress, catalog, chapter_id, lesson_id,
        progress=LESSON_COMPLETED_PROGRESS if passed else current,
        quiz_score=score,
        quiz_passed=passed,
        last_accessed=datetime.now(),
    )


def reset_quiz(
    progress: UserProgress,
    catalog: list[ChapterOutline],
    chapter_id: str,
    lesson_id: str,
) -> UserProgress:
    """Clear the quiz result for a retake."""
    return update_lesson_progress(
        progress, catalog, chapter_id, lesson_id,
        quiz_score=None,
        quiz_passed=False,
    )


def add_practice_attempt(
    progress: UserProgress,
    catalog: list[ChapterOutline],
    chapter_id: str,
    lesson_id: str,
    problem_id: str,
) -> UserProgress:
    record = progress.get_lesson(chapter_id, lesson_id)
    attempted = set(record.attempted_practice_problems) if record else set()
    attempted.add(problem_id)
    return update_lesson_progress(
        progress, catalog, chapter_id, lesson_id,
        attempted_practice_problems=attempted,
    )


# -----------------------------------------------------------------------------
# Persistence
# -----------------------------------------------------------------------------

class ProgressTracker:
    """
    Read and write progress documents through a key-value store.

    Two logical documents (progress and outline) live under fixed keys;
    lesson content and quiz answers use per-lesson keys.
    """

    def __init__(self, store: KeyValueStore):
        """
        Initialize progress tracker.

        Args:
            store: Key-value store (SQLite file store in the app)
        """
        self.store = store

    def _read(self, key: str) -> Optional[str]:
        try:
            return self.store.get(key)
        except STORE_ERRORS as e:
            logger.error(f"Could not read {key} from store: {e}")
            return None

    def _write(self, key: str, value: str) -> bool:
        try:
            self.store.set(key, value)
            return True
        except STORE_ERRORS as e:
            logger.error(f"Could not save {key} to store: {e}")
            return False

    def _remove(self, key: str) -> bool:
        try:
            self.store.delete(key)
            return True
        except STORE_ERRORS as e:
            logger.error(f"Could not remove {key} from store: {e}")
            return False

    # -------------------------------------------------------------------------
    # User progress
    # -------------------------------------------------------------------------

    def load_progress(self) -> UserProgress:
        """Load user progress, or an empty document on first run or error."""
        raw = self._read(STORAGE_KEY_PROGRESS)
        if not raw:
            return UserProgress()
        try:
            return UserProgress.model_validate_json(raw)
        except ValueError as e:
            logger.error(f"Stored progress is invalid, starting fresh: {e}")
            return UserProgress()

    def save_progress(self, progress: UserProgress) -> bool:
        return self._write(STORAGE_KEY_PROGRESS, progress.model_dump_json())

    # -------------------------------------------------------------------------
    # Outline cache
    # -------------------------------------------------------------------------

    def load_outline(self) -> Optional[list[ChapterOutline]]:
        """Load the last saved outline, or None if missing or unreadable."""
        raw = self._read(STORAGE_KEY_CURRICULUM)
        if not raw:
            return None
        try:
            return OUTLINE_ADAPTER.validate_json(raw)
        except ValueError as e:
            logger.error(f"Stored outline is invalid, ignoring it: {e}")
            return None

    def save_outline(self, outline: list[ChapterOutline]) -> bool:
        return self._write(STORAGE_KEY_CURRICULUM, OUTLINE_ADAPTER.dump_json(outline).decode("utf-8"))

    # -------------------------------------------------------------------------
    # Lesson content cache
    # -------------------------------------------------------------------------

    def get_cached_content(self, lesson_id: str) -> Optional[LessonContent]:
        raw = self._read(f"{LESSON_CONTENT_KEY_PREFIX}{lesson_id}")
        if not raw:
            return None
        try:
            return LessonContent.model_validate_json(raw)
        except ValueError as e:
            logger.warning(f"Cached content invalid for {lesson_id}: {e}")
            return None

    def cache_content(self, lesson_id: str, content: LessonContent) -> bool:
        return self._write(
            f"{LESSON_CONTENT_KEY_PREFIX}{lesson_id}",
            content.model_dump_json(by_alias=True),
        )

    # -------------------------------------------------------------------------
    # In-progress quiz answers
    # -------------------------------------------------------------------------

    def load_quiz_answers(self, lesson_id: str) -> dict[str, str]:
        raw = self._read(f"{QUIZ_ANSWERS_KEY_PREFIX}{lesson_id}")
        if not raw:
            return {}
        try:
            answers = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Saved quiz answers invalid for {lesson_id}: {e}")
            return {}
        if not isinstance(answers, dict):
            return {}
        return {str(k): str(v) for k, v in answers.items()}

    def save_quiz_answers(self, lesson_id: str, answers: dict[str, str]) -> bool:
        return self._write(
            f"{QUIZ_ANSWERS_KEY_PREFIX}{lesson_id}",
            json.dumps(answers, ensure_ascii=False),
        )

    def clear_quiz_answers(self, lesson_id: str) -> bool:
        return self._remove(f"{QUIZ_ANSWERS_KEY_PREFIX}{lesson_id}")
