"""
Toán 6 Classroom - Catalog, unlock rules, progress and lesson session state.
"""

from .catalog import build_catalog, get_default_catalog, load_catalog
from .store import KeyValueStore, SQLiteKeyValueStore, MemoryKeyValueStore
from .navigator import (
    chapter_status,
    derive_outline,
    unlock_next,
    find_chapter,
    find_lesson,
    first_unlocked_lesson,
    get_lesson_position,
    get_adjacent_lessons,
    get_status_indicator,
    get_progress_summary,
)
from .progress import (
    ProgressTracker,
    update_lesson_progress,
    record_lesson_progress,
    record_quiz_result,
    reset_quiz,
    add_practice_attempt,
)
from .controller import (
    ContentGenerator,
    LessonController,
    LessonSelection,
    QuizReviewItem,
    QuizResult,
    QuickReviewResult,
    grade_quiz,
    grade_quick_review,
    required_score,
    is_passing,
)

__all__ = [
    "build_catalog",
    "get_default_catalog",
    "load_catalog",
    "KeyValueStore",
    "SQLiteKeyValueStore",
    "MemoryKeyValueStore",
    "chapter_status",
    "derive_outline",
    "unlock_next",
    "find_chapter",
    "find_lesson",
    "first_unlocked_lesson",
    "get_lesson_position",
    "get_adjacent_lessons",
    "get_status_indicator",
    "get_progress_summary",
    "ProgressTracker",
    "update_lesson_progress",
    "record_lesson_progress",
    "record_quiz_result",
    "reset_quiz",
    "add_practice_attempt",
    "ContentGenerator",
    "LessonController",
    "LessonSelection",
    "QuizReviewItem",
    "QuizResult",
    "QuickReviewResult",
    "grade_quiz",
    "grade_quick_review",
    "required_score",
    "is_passing",
]
