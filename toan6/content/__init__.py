"""Content generation and response parsing for Toán 6."""

from .errors import (
    GenerationError,
    LESSON_ERROR_MESSAGE,
    QUICK_REVIEW_ERROR_MESSAGE,
    FEEDBACK_ERROR_MESSAGE,
    FEEDBACK_EMPTY_MESSAGE,
)
from .parser import (
    parse_lesson_response,
    parse_quick_review,
    try_parse_json_lesson,
    parse_markdown_lesson,
    split_sections,
    parse_examples,
    parse_practice_problems,
    parse_quiz,
)

__all__ = [
    "GenerationError",
    "LESSON_ERROR_MESSAGE",
    "QUICK_REVIEW_ERROR_MESSAGE",
    "FEEDBACK_ERROR_MESSAGE",
    "FEEDBACK_EMPTY_MESSAGE",
    "parse_lesson_response",
    "parse_quick_review",
    "try_parse_json_lesson",
    "parse_markdown_lesson",
    "split_sections",
    "parse_examples",
    "parse_practice_problems",
    "parse_quiz",
]
