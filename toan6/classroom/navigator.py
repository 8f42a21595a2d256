"""
Navigator - Lesson lock state, chapter status and outline navigation.

Provides:
- Outline derivation from catalog + user progress (with the unlock ratchet)
- Unlocking the lesson that follows a passed quiz
- Chapter status rules
- Lookup and prev/next navigation over the outline

Everything here is a pure function: inputs are never mutated and a new
outline is returned.
"""

from typing import Optional

from toan6.config import LESSON_COMPLETED_PROGRESS
from toan6.schemas import (
    ChapterOutline,
    ChapterStatus,
    LessonOutline,
    UserChapterProgress,
    UserProgress,
)


# -------------------------------------------------------------------------
# Status
# -------------------------------------------------------------------------

def chapter_status(
    chapter: ChapterOutline,
    chapter_progress: Optional[UserChapterProgress],
) -> ChapterStatus:
    """
    Derive a chapter's status from its stored progress.

    Completed when every lesson's quiz is passed, in progress when any
    lesson has a record or non-zero progress, otherwise not started.
    A chapter without lessons is always not started.
    """
    if not chapter.lessons or chapter_progress is None:
        return ChapterStatus.NOT_STARTED

    records = chapter_progress.lessons
    if all(
        lesson.id in records and records[lesson.id].quiz_passed
        for lesson in chapter.lessons
    ):
        return ChapterStatus.COMPLETED

    if records:
        return ChapterStatus.IN_PROGRESS

    return ChapterStatus.NOT_STARTED


# -------------------------------------------------------------------------
# Outline derivation
# -------------------------------------------------------------------------

def _unlocked_pairs(outline: Optional[list[ChapterOutline]]) -> set[tuple[str, str]]:
    if not outline:
        return set()
    return {
        (chapter.id, lesson.id)
        for chapter in outline
        for lesson in chapter.lessons
        if not lesson.is_locked
    }


def derive_outline(
    catalog: list[ChapterOutline],
    progress: UserProgress,
    previous: Optional[list[ChapterOutline]] = None,
) -> list[ChapterOutline]:
    """
    Project catalog + progress into the displayed outline.

    Args:
        catalog: Chapters in curriculum order
        progress: Authoritative user progress
        previous: Previously persisted outline. Lessons unlocked there stay
            unlocked; entries no longer in the catalog are ignored.

    Returns:
        New list of chapters with status, lesson progress and lock state set.

    Unlock rules, per lesson at index i of its chapter:
    - i == 0: unlocked for the first chapter, or once the previous
      (non-empty) chapter is completed
    - i > 0: unlocked once lesson i-1 of the same chapter has a passed quiz
    - any lesson unlocked in ``previous`` stays unlocked
    """
    already_unlocked = _unlocked_pairs(previous)
    outline = []
    chapter_gate_open = True  # first lesson overall is always unlocked

    for chapter in catalog:
        chapter_progress = progress.get_chapter(chapter.id)
        status = chapter_status(chapter, chapter_progress)

        lessons = []
        for idx, lesson in enumerate(chapter.lessons):
            if idx == 0:
                unlocked = chapter_gate_open
            else:
                unlocked = progress.is_quiz_passed(chapter.id, chapter.lessons[idx - 1].id)

            if (chapter.id, lesson.id) in already_unlocked:
                unlocked = True

            record = progress.get_lesson(chapter.id, lesson.id)
            lessons.append(LessonOutline(
                id=lesson.id,
                title=lesson.title,
                progress=record.progress if record else 0,
                is_locked=not unlocked,
            ))

        outline.append(ChapterOutline(
            id=chapter.id,
            title=chapter.title,
            status=status,
            lessons=lessons,
        ))

        # Empty chapters don't gate the next one
        if chapter.lessons:
            chapter_gate_open = status == ChapterStatus.COMPLETED

    return outline


def unlock_next(
    outline: list[ChapterOutline],
    chapter_id: str,
    lesson_id: str,
) -> list[ChapterOutline]:
    """
    Unlock the lesson after ``lesson_id`` in the same chapter.

    No-op when the lesson is unknown, last in its chapter, or the next
    lesson is already unlocked. Applying it twice equals applying it once.
    """
    updated = [chapter.model_copy(deep=True) for chapter in outline]

    chapter = find_chapter(updated, chapter_id)
    if chapter is None:
        return updated

    idx = chapter.lesson_index(lesson_id)
    if idx == -1 or idx + 1 >= len(chapter.lessons):
        return updated

    next_lesson = chapter.lessons[idx + 1]
    if next_lesson.is_locked:
        next_lesson.is_locked = False

    return updated


# -------------------------------------------------------------------------
# Lookup
# -------------------------------------------------------------------------

def find_chapter(outline: list[ChapterOutline], chapter_id: str) -> Optional[ChapterOutline]:
    for chapter in outline:
        if chapter.id == chapter_id:
            return chapter
    return None


def find_lesson(
    outline: list[ChapterOutline],
    chapter_id: str,
    lesson_id: str,
) -> Optional[tuple[ChapterOutline, LessonOutline]]:
    """Find a (chapter, lesson) pair, or None for a stale selection."""
    chapter = find_chapter(outline, chapter_id)
    if chapter is None:
        return None
    idx = chapter.lesson_index(lesson_id)
    if idx == -1:
        return None
    return chapter, chapter.lessons[idx]


def first_unlocked_lesson(
    outline: list[ChapterOutline],
) -> Optional[tuple[ChapterOutline, LessonOutline]]:
    """The default selection on startup."""
    for chapter in outline:
        for lesson in chapter.lessons:
            if not lesson.is_locked:
                return chapter, lesson
    return None


def _flatten(outline: list[ChapterOutline]) -> list[tuple[str, str]]:
    return [(chapter.id, lesson.id) for chapter in outline for lesson in chapter.lessons]


def get_lesson_position(outline: list[ChapterOutline], chapter_id: str, lesson_id: str) -> tuple[int, int]:
    """
    Get lesson position as (current, total) across the whole outline.

    Returns (0, total) if lesson not found.
    """
    order = _flatten(outline)
    try:
        return (order.index((chapter_id, lesson_id)) + 1, len(order))
    except ValueError:
        return (0, len(order))


def get_adjacent_lessons(
    outline: list[ChapterOutline],
    chapter_id: str,
    lesson_id: str,
) -> tuple[Optional[tuple[str, str]], Optional[tuple[str, str]]]:
    """Previous and next unlocked (chapter_id, lesson_id) pairs in outline order."""
    order = _flatten(outline)
    pos, _ = get_lesson_position(outline, chapter_id, lesson_id)
    if pos == 0:
        return None, None

    unlocked = _unlocked_pairs(outline)
    idx = pos - 1
    prev_pair = order[idx - 1] if idx > 0 else None
    next_pair = order[idx + 1] if idx + 1 < len(order) else None

    return (
        prev_pair if prev_pair in unlocked else None,
        next_pair if next_pair in unlocked else None,
    )


# -------------------------------------------------------------------------
# Display helpers
# -------------------------------------------------------------------------

def get_status_indicator(lesson: LessonOutline, is_current: bool = False) -> str:
    """
    Get status indicator for sidebar display.

    Returns:
        ✓ for completed
        → for current
        ○ for available
        ◌ for locked
    """
    if lesson.is_locked:
        return "◌"
    if lesson.progress >= LESSON_COMPLETED_PROGRESS:
        return "✓"
    if is_current:
        return "→"
    return "○"


def get_progress_summary(outline: list[ChapterOutline]) -> dict:
    """Get completion statistics for display."""
    lessons = [lesson for chapter in outline for lesson in chapter.lessons]
    total = len(lessons)
    completed = sum(1 for lesson in lessons if lesson.progress >= LESSON_COMPLETED_PROGRESS)
    unlocked = sum(1 for lesson in lessons if not lesson.is_locked)

    return {
        "total_lessons": total,
        "completed": completed,
        "unlocked": unlocked,
        "completion_percent": round(completed / total * 100, 1) if total > 0 else 0,
        "chapters": [
            {
                "id": chapter.id,
                "title": chapter.title,
                "status": chapter.status,
                "completed": sum(
                    1 for lesson in chapter.lessons
                    if lesson.progress >= LESSON_COMPLETED_PROGRESS
                ),
                "total": len(chapter.lessons),
            }
            for chapter in outline
        ],
    }
