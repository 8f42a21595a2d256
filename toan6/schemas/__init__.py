"""
Toán 6 Schemas - Pydantic models for the math curriculum viewer.

This module exports all schema classes for:
- Curriculum: chapter/lesson outline and chapter status
- Lesson: generated lesson content, quiz and quick review questions
- Progress: persisted user progress
"""

# Curriculum schemas
from .curriculum import (
    ChapterStatus,
    CHAPTER_STATUS_LABELS,
    LessonOutline,
    ChapterOutline,
)

# Lesson schemas
from .lesson import (
    THEORY_PLACEHOLDER,
    NEXT_STEPS_PLACEHOLDER,
    MISSING_FIELD_PLACEHOLDER,
    MISSING_ANSWER_PLACEHOLDER,
    QuizQuestionType,
    TheoryContent,
    ExampleProblem,
    PracticeProblem,
    MultipleChoiceOption,
    QuizQuestion,
    LessonContent,
    QuickReviewQuestion,
)

# Progress schemas
from .progress import (
    UserLessonProgress,
    UserChapterProgress,
    UserProgress,
)

__all__ = [
    # Curriculum
    'ChapterStatus',
    'CHAPTER_STATUS_LABELS',
    'LessonOutline',
    'ChapterOutline',
    # Lesson
    'THEORY_PLACEHOLDER',
    'NEXT_STEPS_PLACEHOLDER',
    'MISSING_FIELD_PLACEHOLDER',
    'MISSING_ANSWER_PLACEHOLDER',
    'QuizQuestionType',
    'TheoryContent',
    'ExampleProblem',
    'PracticeProblem',
    'MultipleChoiceOption',
    'QuizQuestion',
    'LessonContent',
    'QuickReviewQuestion',
    # Progress
    'UserLessonProgress',
    'UserChapterProgress',
    'UserProgress',
]
