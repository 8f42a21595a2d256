"""
Curriculum schemas for Toán 6.

Defines Pydantic models for the curriculum outline:
- Chapter status with display labels
- Lesson and chapter outline entries (catalog shape + derived fields)
"""

from enum import Enum

from pydantic import BaseModel, Field


class ChapterStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @property
    def label(self) -> str:
        return CHAPTER_STATUS_LABELS[self]


CHAPTER_STATUS_LABELS = {
    ChapterStatus.NOT_STARTED: "Chưa học",
    ChapterStatus.IN_PROGRESS: "Đang học",
    ChapterStatus.COMPLETED: "Đã hoàn thành",
}


class LessonOutline(BaseModel):
    id: str
    title: str
    progress: int = Field(default=0, ge=0, le=100)  # derived display value
    is_locked: bool = True                          # derived from prerequisites


class ChapterOutline(BaseModel):
    """
    A chapter in catalog order.
    Lesson order defines the prerequisite chain within the chapter.
    """
    id: str
    title: str
    status: ChapterStatus = ChapterStatus.NOT_STARTED  # derived, not authoritative
    lessons: list[LessonOutline] = []

    def lesson_index(self, lesson_id: str) -> int:
        """Position of a lesson in this chapter, or -1 if absent."""
        for idx, lesson in enumerate(self.lessons):
            if lesson.id == lesson_id:
                return idx
        return -1
