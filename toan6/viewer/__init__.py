"""
Toán 6 Viewer - Rendering components for lesson display.

This module provides:
- Lesson tab fragments (examples, practice, next steps)
- Quiz review and score display
"""

from .lesson import (
    get_lesson_css,
    render_illustrations,
    render_example,
    render_practice_problem,
    practice_problem_id,
    render_next_steps,
    render_status_badge,
    STATUS_BADGE_CLASSES,
)

from .quiz import (
    get_quiz_css,
    format_option,
    option_key_from_label,
    render_review_item,
    calculate_quiz_score,
    render_quiz_score,
    render_quick_review_result,
)

__all__ = [
    # Lesson rendering
    "get_lesson_css",
    "render_illustrations",
    "render_example",
    "render_practice_problem",
    "practice_problem_id",
    "render_next_steps",
    "render_status_badge",
    "STATUS_BADGE_CLASSES",
    # Quiz
    "get_quiz_css",
    "format_option",
    "option_key_from_label",
    "render_review_item",
    "calculate_quiz_score",
    "render_quiz_score",
    "render_quick_review_result",
]
