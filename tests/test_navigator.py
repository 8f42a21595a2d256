"""
Unlock and navigation tests for Toán 6.

Covers outline derivation, the unlock ratchet, chapter status and the
sidebar helpers.
"""

import pytest

from toan6.classroom import (
    build_catalog,
    chapter_status,
    derive_outline,
    find_lesson,
    first_unlocked_lesson,
    get_adjacent_lessons,
    get_default_catalog,
    get_lesson_position,
    get_progress_summary,
    get_status_indicator,
    unlock_next,
)
from toan6.schemas import (
    ChapterStatus,
    LessonOutline,
    UserChapterProgress,
    UserLessonProgress,
    UserProgress,
)


CHAPTER1_LESSONS = ["c1l1", "c1l2", "c1l3", "c1l4", "c1l5", "c1l6", "c1l7"]


def make_progress(passed: dict[str, list[str]], started: dict[str, list[str]] | None = None) -> UserProgress:
    """Progress with passed quizzes (and optionally started lessons) per chapter."""
    chapters = {}
    for chapter_id, lesson_ids in passed.items():
        chapters.setdefault(chapter_id, UserChapterProgress(chapter_id=chapter_id))
        for lesson_id in lesson_ids:
            chapters[chapter_id].lessons[lesson_id] = UserLessonProgress(
                lesson_id=lesson_id, progress=100, quiz_score=8, quiz_passed=True,
            )
    for chapter_id, lesson_ids in (started or {}).items():
        chapters.setdefault(chapter_id, UserChapterProgress(chapter_id=chapter_id))
        for lesson_id in lesson_ids:
            chapters[chapter_id].lessons[lesson_id] = UserLessonProgress(lesson_id=lesson_id, progress=25)
    return UserProgress(chapters=chapters)


def locked_map(outline) -> dict[str, bool]:
    return {lesson.id: lesson.is_locked for chapter in outline for lesson in chapter.lessons}


@pytest.fixture
def catalog():
    return get_default_catalog()


class TestDeriveOutline:
    """Test lock state and status derivation."""

    def test_empty_progress(self, catalog):
        outline = derive_outline(catalog, UserProgress())
        locks = locked_map(outline)

        assert locks["c1l1"] is False
        assert all(locked for lesson_id, locked in locks.items() if lesson_id != "c1l1")
        assert all(chapter.status == ChapterStatus.NOT_STARTED for chapter in outline)
        assert all(lesson.progress == 0 for chapter in outline for lesson in chapter.lessons)

    def test_first_pass_unlocks_second_lesson(self, catalog):
        outline = derive_outline(catalog, make_progress({"chapter1": ["c1l1"]}))
        locks = locked_map(outline)

        assert locks["c1l2"] is False
        assert locks["c1l3"] is True
        assert outline[0].status == ChapterStatus.IN_PROGRESS
        assert outline[0].lessons[0].progress == 100

    def test_completed_chapter_unlocks_next_chapter(self, catalog):
        outline = derive_outline(catalog, make_progress({"chapter1": CHAPTER1_LESSONS}))
        locks = locked_map(outline)

        assert outline[0].status == ChapterStatus.COMPLETED
        assert locks["c2l1"] is False
        assert locks["c2l2"] is True
        assert outline[1].status == ChapterStatus.NOT_STARTED

    def test_incomplete_chapter_keeps_next_chapter_locked(self, catalog):
        outline = derive_outline(catalog, make_progress({"chapter1": CHAPTER1_LESSONS[:-1]}))
        assert locked_map(outline)["c2l1"] is True
        assert locked_map(outline)["c1l7"] is False

    def test_started_lesson_marks_chapter_in_progress(self, catalog):
        outline = derive_outline(catalog, make_progress({}, started={"chapter1": ["c1l1"]}))
        assert outline[0].status == ChapterStatus.IN_PROGRESS
        assert outline[0].lessons[0].progress == 25
        assert locked_map(outline)["c1l2"] is True

    def test_deterministic(self, catalog):
        progress = make_progress({"chapter1": ["c1l1", "c1l2"]})
        assert derive_outline(catalog, progress) == derive_outline(catalog, progress)

    def test_does_not_mutate_catalog(self, catalog):
        derive_outline(catalog, make_progress({"chapter1": ["c1l1"]}))
        assert all(lesson.is_locked for chapter in catalog for lesson in chapter.lessons)

    def test_ratchet_keeps_previous_unlocks(self, catalog):
        previous = derive_outline(catalog, make_progress({"chapter1": ["c1l1", "c1l2"]}))
        assert locked_map(previous)["c1l3"] is False

        # Progress lost the passes, but unlocked lessons stay unlocked
        outline = derive_outline(catalog, UserProgress(), previous=previous)
        locks = locked_map(outline)
        assert locks["c1l2"] is False
        assert locks["c1l3"] is False
        assert locks["c1l4"] is True

    def test_ratchet_ignores_unknown_entries(self, catalog):
        stale = build_catalog([
            {"id": "old", "title": "Old", "lessons": [{"id": "x1", "title": "X"}]},
        ])
        stale[0].lessons[0].is_locked = False

        outline = derive_outline(catalog, UserProgress(), previous=stale)
        assert [chapter.id for chapter in outline] == [chapter.id for chapter in catalog]
        assert "x1" not in locked_map(outline)

    def test_empty_chapter_does_not_gate(self):
        catalog = build_catalog([
            {"id": "a", "title": "A", "lessons": [{"id": "a1", "title": "A1"}]},
            {"id": "b", "title": "B", "lessons": []},
            {"id": "c", "title": "C", "lessons": [{"id": "c1", "title": "C1"}]},
        ])
        outline = derive_outline(catalog, make_progress({"a": ["a1"]}))

        assert outline[1].status == ChapterStatus.NOT_STARTED
        assert locked_map(outline)["c1"] is False


class TestChapterStatus:
    """Test chapter status rules."""

    def test_no_progress(self, catalog):
        assert chapter_status(catalog[0], None) == ChapterStatus.NOT_STARTED

    def test_empty_chapter_never_completed(self):
        chapter = build_catalog([{"id": "e", "title": "E", "lessons": []}])[0]
        progress = UserChapterProgress(chapter_id="e")
        assert chapter_status(chapter, progress) == ChapterStatus.NOT_STARTED

    def test_all_passed(self, catalog):
        progress = make_progress({"chapter2": ["c2l1", "c2l2", "c2l3"]})
        assert chapter_status(catalog[1], progress.get_chapter("chapter2")) == ChapterStatus.COMPLETED

    def test_failed_quiz_is_in_progress(self, catalog):
        progress = UserChapterProgress(
            chapter_id="chapter2",
            lessons={"c2l1": UserLessonProgress(lesson_id="c2l1", quiz_score=5, quiz_passed=False)},
        )
        assert chapter_status(catalog[1], progress) == ChapterStatus.IN_PROGRESS


class TestUnlockNext:
    """Test unlocking after a passed quiz."""

    def test_unlocks_following_lesson(self, catalog):
        outline = derive_outline(catalog, UserProgress())
        updated = unlock_next(outline, "chapter1", "c1l1")

        assert locked_map(updated)["c1l2"] is False
        assert locked_map(updated)["c1l3"] is True

    def test_does_not_mutate_input(self, catalog):
        outline = derive_outline(catalog, UserProgress())
        unlock_next(outline, "chapter1", "c1l1")
        assert locked_map(outline)["c1l2"] is True

    def test_idempotent(self, catalog):
        outline = derive_outline(catalog, UserProgress())
        once = unlock_next(outline, "chapter1", "c1l1")
        twice = unlock_next(once, "chapter1", "c1l1")
        assert once == twice

    def test_last_lesson_is_noop(self, catalog):
        outline = derive_outline(catalog, UserProgress())
        assert unlock_next(outline, "chapter1", "c1l7") == outline

    def test_does_not_cross_chapters(self, catalog):
        outline = derive_outline(catalog, UserProgress())
        updated = unlock_next(outline, "chapter1", "c1l7")
        assert locked_map(updated)["c2l1"] is True

    def test_unknown_ids_are_noop(self, catalog):
        outline = derive_outline(catalog, UserProgress())
        assert unlock_next(outline, "chapter9", "c1l1") == outline
        assert unlock_next(outline, "chapter1", "nope") == outline


class TestNavigation:
    """Test lookup and sidebar helpers."""

    def test_find_lesson(self, catalog):
        found = find_lesson(catalog, "chapter2", "c2l3")
        assert found is not None
        chapter, lesson = found
        assert chapter.id == "chapter2"
        assert lesson.title == "Bài 10: Quy tắc dấu ngoặc"

    def test_find_lesson_stale(self, catalog):
        assert find_lesson(catalog, "chapter1", "c2l1") is None
        assert find_lesson(catalog, "chapter9", "c1l1") is None

    def test_first_unlocked_lesson(self, catalog):
        outline = derive_outline(catalog, UserProgress())
        chapter, lesson = first_unlocked_lesson(outline)
        assert (chapter.id, lesson.id) == ("chapter1", "c1l1")

    def test_first_unlocked_lesson_all_locked(self, catalog):
        assert first_unlocked_lesson(catalog) is None

    def test_lesson_position(self, catalog):
        assert get_lesson_position(catalog, "chapter2", "c2l1") == (8, 15)
        assert get_lesson_position(catalog, "chapter2", "missing") == (0, 15)

    def test_adjacent_lessons_only_unlocked(self, catalog):
        outline = derive_outline(catalog, make_progress({"chapter1": ["c1l1"]}))

        prev_pair, next_pair = get_adjacent_lessons(outline, "chapter1", "c1l1")
        assert prev_pair is None
        assert next_pair == ("chapter1", "c1l2")

        prev_pair, next_pair = get_adjacent_lessons(outline, "chapter1", "c1l2")
        assert prev_pair == ("chapter1", "c1l1")
        assert next_pair is None

    def test_status_indicator(self):
        assert get_status_indicator(LessonOutline(id="a", title="A")) == "◌"
        assert get_status_indicator(LessonOutline(id="a", title="A", is_locked=False, progress=100)) == "✓"
        assert get_status_indicator(LessonOutline(id="a", title="A", is_locked=False), is_current=True) == "→"
        assert get_status_indicator(LessonOutline(id="a", title="A", is_locked=False)) == "○"

    def test_progress_summary(self, catalog):
        outline = derive_outline(catalog, make_progress({"chapter1": ["c1l1", "c1l2"]}))
        stats = get_progress_summary(outline)

        assert stats["total_lessons"] == 15
        assert stats["completed"] == 2
        assert stats["unlocked"] == 3
        assert stats["completion_percent"] == 13.3
        assert stats["chapters"][0]["completed"] == 2
        assert stats["chapters"][0]["total"] == 7
