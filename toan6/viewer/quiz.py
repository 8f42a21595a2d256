"""
Quiz renderer - Quiz results and quick review display.

Provides:
- Option labels for radio widgets
- Per-question review after submission
- Score box with pass/fail state
"""

import html
from typing import Optional

from toan6.classroom.controller import (
    QuickReviewResult,
    QuizResult,
    QuizReviewItem,
    required_score,
)
from toan6.schemas import MultipleChoiceOption


def get_quiz_css() -> str:
    """Get CSS styles for quiz display."""
    return """
    <style>
    .quiz-review-item {
        border-radius: 8px;
        padding: 0.8em 1em;
        margin: 0.6em 0;
    }
    .quiz-correct {
        background: #e8f5e9;
        border-left: 4px solid #388E3C;
    }
    .quiz-incorrect {
        background: #ffebee;
        border-left: 4px solid #D32F2F;
    }
    .quiz-question {
        font-size: 1.05em;
        color: #333;
        margin-bottom: 0.4em;
        line-height: 1.6;
    }
    .quiz-answer-line {
        font-size: 0.95em;
        color: #555;
    }
    .quiz-score-box {
        border-radius: 8px;
        padding: 1em;
        margin-top: 1.5em;
        text-align: center;
    }
    .quiz-passed {
        background: #e8f5e9;
    }
    .quiz-failed {
        background: #fff3e0;
    }
    .quiz-score-value {
        font-size: 2em;
        font-weight: 700;
        color: #1565C0;
    }
    .quiz-score-label {
        color: #666;
        font-size: 0.9em;
    }
    .weak-areas {
        margin-top: 0.8em;
        color: #e65100;
    }
    </style>
    """


def format_option(option: MultipleChoiceOption) -> str:
    """Label for a radio option, e.g. 'A. 12'."""
    return f"{option.key}. {option.text}"


def option_key_from_label(label: Optional[str]) -> Optional[str]:
    """Recover the option key from a label built by format_option."""
    if not label:
        return None
    return label.split(".", 1)[0]


def render_review_item(item: QuizReviewItem, index: int) -> str:
    """Render one graded question with the learner's and the correct answer."""
    css_class = "quiz-correct" if item.is_correct else "quiz-incorrect"
    verdict = "✓ Đúng" if item.is_correct else "✗ Sai"
    user_answer = item.user_answer or "Không trả lời"

    parts = [f'<div class="quiz-review-item {css_class}">']
    parts.append(
        f'<div class="quiz-question">Câu {index + 1}: {html.escape(item.question.question)}</div>'
    )
    parts.append(
        f'<div class="quiz-answer-line">Bạn chọn: <strong>{html.escape(user_answer)}</strong>'
        f' · Đáp án đúng: <strong>{html.escape(item.question.correct_answer)}</strong>'
        f' · {verdict}</div>'
    )
    parts.append('</div>')
    return "".join(parts)


def calculate_quiz_score(result: QuizResult) -> dict:
    """
    Summarize a quiz result for display.

    Returns:
        Dict with correct, total, percent, required and passed
    """
    total = result.total
    percent = round(result.score / total * 100) if total > 0 else 0
    return {
        "correct": result.score,
        "total": total,
        "percent": percent,
        "required": required_score(total),
        "passed": result.passed,
    }


def render_quiz_score(score_info: dict) -> str:
    """Render quiz score display."""
    css_class = "quiz-passed" if score_info["passed"] else "quiz-failed"
    if score_info["passed"]:
        message = "Chúc mừng! Bạn đã vượt qua bài kiểm tra."
    else:
        message = f"Cần đúng ít nhất {score_info['required']} câu để qua bài. Hãy ôn lại và thử lần nữa!"

    return f"""
    <div class="quiz-score-box {css_class}">
        <div class="quiz-score-value">{score_info['correct']}/{score_info['total']}</div>
        <div class="quiz-score-label">{html.escape(message)}</div>
    </div>
    """


def render_quick_review_result(result: QuickReviewResult) -> str:
    parts = [f'<div class="quiz-score-box {"quiz-passed" if not result.weak_areas else "quiz-failed"}">']
    parts.append(f'<div class="quiz-score-value">{result.score}/{result.total}</div>')
    if result.weak_areas:
        topics = ", ".join(html.escape(topic) for topic in result.weak_areas)
        parts.append(f'<div class="weak-areas">Chủ đề cần ôn thêm: {topics}</div>')
    else:
        parts.append('<div class="quiz-score-label">Tuyệt vời! Bạn đã trả lời đúng tất cả.</div>')
    parts.append('</div>')
    return "".join(parts)
