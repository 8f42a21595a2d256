"""
Progress tracking schemas for Toán 6.

Defines Pydantic models for the persisted progress document:
- Per-lesson progress and quiz results
- Per-chapter progress
- The whole user progress document
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .curriculum import ChapterStatus


class UserLessonProgress(BaseModel):
    lesson_id: str
    progress: int = Field(default=0, ge=0, le=100)
    quiz_score: Optional[int] = None  # None until the quiz is attempted
    quiz_passed: bool = False
    attempted_practice_problems: set[str] = set()
    weak_areas: set[str] = set()  # preserved from stored documents, never written here
    last_accessed: datetime = Field(default_factory=datetime.now)


class UserChapterProgress(BaseModel):
    chapter_id: str
    status: ChapterStatus = ChapterStatus.NOT_STARTED
    lessons: dict[str, UserLessonProgress] = {}


class UserProgress(BaseModel):
    """Single source of truth for a learner's progress, keyed by chapter id."""
    chapters: dict[str, UserChapterProgress] = {}

    def get_chapter(self, chapter_id: str) -> Optional[UserChapterProgress]:
        return self.chapters.get(chapter_id)

    def get_lesson(self, chapter_id: str, lesson_id: str) -> Optional[UserLessonProgress]:
        chapter = self.chapters.get(chapter_id)
        if chapter is None:
            return None
        return chapter.lessons.get(lesson_id)

    def is_quiz_passed(self, chapter_id: str, lesson_id: str) -> bool:
        lesson = self.get_lesson(chapter_id, lesson_id)
        return bool(lesson and lesson.quiz_passed)
