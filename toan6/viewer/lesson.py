"""
Lesson renderer - HTML fragments for the lesson tabs.

Features:
- Theory illustration list
- Worked example cards (problem, solution, common mistakes)
- Practice problem rows
- Next-steps box and chapter status badges

Lesson text is markdown; Streamlit renders it directly. These helpers only
wrap pieces that need styling, and escape everything they embed.
"""

import html

from toan6.schemas import (
    ChapterStatus,
    ExampleProblem,
    PracticeProblem,
    TheoryContent,
)


# Chapter status to CSS class mapping for badges
STATUS_BADGE_CLASSES = {
    ChapterStatus.NOT_STARTED: "badge-not-started",    # Grey
    ChapterStatus.IN_PROGRESS: "badge-in-progress",    # Amber
    ChapterStatus.COMPLETED: "badge-completed",        # Green
}


def get_lesson_css() -> str:
    """Get CSS styles for lesson display."""
    return """
    <style>
    .illustration-box {
        background: #f5f5f5;
        border-radius: 8px;
        padding: 0.8em 1.2em;
        margin: 1em 0;
        font-size: 0.95em;
        color: #455A64;
    }
    .example-card {
        background: #fafafa;
        border-left: 4px solid #1976D2;
        padding: 1em 1.5em;
        margin: 1em 0;
        border-radius: 0 8px 8px 0;
    }
    .example-title {
        font-weight: 600;
        color: #1565C0;
        margin-bottom: 0.5em;
    }
    .example-label {
        font-weight: 600;
        margin-top: 0.6em;
    }
    .example-mistakes {
        background: #ffebee;
        border-radius: 6px;
        padding: 0.6em 1em;
        margin-top: 0.8em;
        color: #b71c1c;
    }
    .practice-item {
        padding: 0.6em 0;
        border-bottom: 1px dashed #ddd;
    }
    .practice-attempted {
        color: #388E3C;
        font-size: 0.85em;
        margin-left: 0.5em;
    }
    .next-steps-box {
        background: #f3e5f5;
        border-left: 4px solid #9C27B0;
        border-radius: 0 8px 8px 0;
        padding: 1em 1.5em;
        margin: 1em 0;
    }
    .status-badge {
        display: inline-block;
        border-radius: 10px;
        padding: 0 8px;
        font-size: 0.8em;
    }
    .badge-not-started {
        background: #eceff1;
        color: #607D8B;
    }
    .badge-in-progress {
        background: #fff3e0;
        color: #F57C00;
    }
    .badge-completed {
        background: #e8f5e9;
        color: #388E3C;
    }
    </style>
    """


def _text_to_html(text: str) -> str:
    return html.escape(text).replace("\n", "<br>")


def render_illustrations(theory: TheoryContent) -> str:
    """Render suggested figure descriptions, if any."""
    if not theory.illustrations:
        return ""

    items = "".join(f"<li>{html.escape(item)}</li>" for item in theory.illustrations)
    return f'<div class="illustration-box"><strong>Hình minh họa:</strong><ul>{items}</ul></div>'


def render_example(example: ExampleProblem, index: int) -> str:
    """Render one worked example as a card."""
    parts = ['<div class="example-card">']
    parts.append(f'<div class="example-title">Dạng {index + 1}: {html.escape(example.title)}</div>')
    parts.append('<div class="example-label">Ví dụ mẫu:</div>')
    parts.append(f'<div>{_text_to_html(example.problem)}</div>')
    parts.append('<div class="example-label">Lời giải chi tiết:</div>')
    parts.append(f'<div>{_text_to_html(example.solution)}</div>')
    parts.append(
        f'<div class="example-mistakes"><strong>Sai lầm thường gặp:</strong> '
        f'{_text_to_html(example.common_mistakes)}</div>'
    )
    parts.append('</div>')
    return "".join(parts)


def render_practice_problem(problem: PracticeProblem, index: int, attempted: bool = False) -> str:
    """Render a practice problem row (the answer is revealed separately)."""
    mark = '<span class="practice-attempted">✓ đã làm</span>' if attempted else ""
    return (
        f'<div class="practice-item"><strong>Bài {index + 1}:</strong> '
        f'{html.escape(problem.problem)}{mark}</div>'
    )


def practice_problem_id(lesson_id: str, index: int) -> str:
    """Stable id for a practice problem within a lesson."""
    return f"{lesson_id}-practice-{index + 1}"


def render_next_steps(next_steps: str) -> str:
    return f'<div class="next-steps-box">{_text_to_html(next_steps)}</div>'


def render_status_badge(status: ChapterStatus) -> str:
    css_class = STATUS_BADGE_CLASSES.get(status, "badge-not-started")
    return f'<span class="status-badge {css_class}">{html.escape(status.label)}</span>'
