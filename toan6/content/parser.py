"""
Content response parser - Turn generated text into typed lesson content.

Two paths, tried in order:
1. Strict JSON matching the LessonContent shape (raw or in a ```json block)
2. Markdown sectioning of the five-part lesson layout the prompt asks for:

   ### (1) Lý thuyết cần nhớ
   ### (2) Ví dụ minh họa ...
   ### (3) Bài tập tự luyện
   ### (4) Bài kiểm tra
   ### (5) Gợi ý lộ trình tiếp theo

parse_lesson_response() never raises: anything it cannot read becomes a
documented default, so the viewer always gets a complete LessonContent.
parse_quick_review() is strict and raises ValueError on bad input.
"""

import json
import logging
import re
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from toan6.schemas import (
    MISSING_ANSWER_PLACEHOLDER,
    ExampleProblem,
    LessonContent,
    MultipleChoiceOption,
    PracticeProblem,
    QuickReviewQuestion,
    QuizQuestion,
    TheoryContent,
)


logger = logging.getLogger(__name__)

# Section headings (matched as prefixes of the heading line)
THEORY_HEADING = "(1) Lý thuyết cần nhớ"
EXAMPLES_HEADING = "(2) Ví dụ minh họa"
PRACTICE_HEADING = "(3) Bài tập tự luyện"
QUIZ_HEADING = "(4) Bài kiểm tra"
NEXT_STEPS_HEADING = "(5) Gợi ý lộ trình tiếp theo"

SECTION_PATTERN = re.compile(r"^[ \t]*### ", re.MULTILINE)
CODE_BLOCK_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```")

# Examples
EXAMPLE_DELIMITER = "--- Dạng bài mới ---"
EXAMPLE_LABELS = {
    "tên dạng bài": "title",
    "ví dụ mẫu": "problem",
    "lời giải chi tiết": "solution",
    "sai lầm thường gặp": "common_mistakes",
}
# "- **Label:**" or "**Label**:", with an optional leading bullet
LABEL_PATTERN = re.compile(
    r"(?:^[ \t]*[-+*][ \t]*)?\*\*[ \t]*(?P<label>[^*\n:]+?)[ \t]*(?::[ \t]*\*\*|\*\*[ \t]*:)[ \t]*",
    re.MULTILINE,
)

# Practice problems
PRACTICE_LINE_PREFIX = "- **Bài"
PRACTICE_LABEL_PATTERN = re.compile(r"^- \*\*Bài\s*\d*\s*:?\s*\*\*\s*:?\s*")
PRACTICE_ANSWER_SEPARATOR = re.compile(r"\|\s*Đáp án\s*:")

# Quiz
QUIZ_MARKER_PATTERN = re.compile(r"^[ \t]*- \*\*Câu ", re.MULTILINE)
QUIZ_LABEL_PATTERN = re.compile(r"^\d+\s*:?\s*\*\*\s*:?\s*(.*)")
OPTION_PREFIXES = ("A.", "B.", "C.", "D.")
ANSWER_PATTERN = re.compile(r"^\**\s*Đáp án\s*:\s*\**\s*(.*)")

QUICK_REVIEW_ADAPTER = TypeAdapter(list[QuickReviewQuestion])


# -----------------------------------------------------------------------------
# Strict JSON path
# -----------------------------------------------------------------------------

def _decode_json(text: str) -> Optional[Any]:
    """Decode JSON from raw text or the first decodable ```json block."""
    try:
        return json.loads(text.strip())
    except (ValueError, RecursionError):
        pass

    for match in CODE_BLOCK_PATTERN.findall(text):
        try:
            return json.loads(match.strip())
        except (ValueError, RecursionError):
            continue

    return None


def _assign_question_ids(content: LessonContent) -> LessonContent:
    for index, question in enumerate(content.quiz):
        if not question.id:
            question.id = f"quiz-q-{index + 1}"
    return content


def try_parse_json_lesson(text: str) -> Optional[LessonContent]:
    """
    Strict path: decode text as a LessonContent JSON object.

    Returns:
        LessonContent, or None if the text is not a JSON object of that shape
    """
    data = _decode_json(text)
    if not isinstance(data, dict):
        return None

    try:
        content = LessonContent.model_validate(data)
    except ValidationError as e:
        logger.warning(f"JSON lesson response does not match schema: {e.error_count()} errors")
        return None

    return _assign_question_ids(content)


# -----------------------------------------------------------------------------
# Markdown fallback path
# -----------------------------------------------------------------------------

def split_sections(text: str) -> list[tuple[str, str]]:
    """
    Split markdown into (heading, body) pairs on '### ' headings.

    Text before the first heading is discarded. Bodies are trimmed.
    """
    parts = SECTION_PATTERN.split(text)[1:]
    sections = []
    for part in parts:
        heading, _, body = part.partition("\n")
        sections.append((heading.replace("*", "").strip(), body.strip()))
    return sections


def _scan_labeled_fields(block: str) -> dict[str, str]:
    """Read 'label: value' pairs, each value running until the next known label."""
    matches = [
        m for m in LABEL_PATTERN.finditer(block)
        if m.group("label").strip().casefold() in EXAMPLE_LABELS
    ]

    fields: dict[str, str] = {}
    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(block)
        field = EXAMPLE_LABELS[match.group("label").strip().casefold()]
        value = block[match.end():end].strip()
        if value and field not in fields:
            fields[field] = value
    return fields


def parse_examples(body: str) -> list[ExampleProblem]:
    """Parse example blocks separated by the new-example delimiter."""
    blocks = [block for block in body.split(EXAMPLE_DELIMITER) if block.strip()]
    return [ExampleProblem(**_scan_labeled_fields(block)) for block in blocks]


def parse_practice_problems(body: str) -> list[PracticeProblem]:
    """Parse '- **Bài N:** problem | Đáp án: answer' lines."""
    problems = []
    for line in body.splitlines():
        line = line.strip()
        if not line.startswith(PRACTICE_LINE_PREFIX):
            continue

        parts = PRACTICE_ANSWER_SEPARATOR.split(line, maxsplit=1)
        problem = PRACTICE_LABEL_PATTERN.sub("", parts[0]).strip()
        answer = parts[1].strip() if len(parts) > 1 else ""

        problems.append(PracticeProblem(
            problem=problem,
            answer=answer or MISSING_ANSWER_PLACEHOLDER,
        ))
    return problems


def _parse_question_block(block: str, index: int) -> QuizQuestion:
    lines = [line.strip() for line in block.splitlines() if line.strip()]

    question_text = f"Câu hỏi {index + 1}"
    if lines:
        label_match = QUIZ_LABEL_PATTERN.match(lines[0])
        stripped = label_match.group(1).strip() if label_match else lines[0]
        question_text = stripped or question_text

    options: list[MultipleChoiceOption] = []
    correct_answer = ""
    for line in lines[1:]:
        if line.startswith(OPTION_PREFIXES):
            options.append(MultipleChoiceOption(key=line[0], text=line[2:].strip()))
            continue
        answer_match = ANSWER_PATTERN.match(line)
        if answer_match:
            correct_answer = answer_match.group(1).strip()

    return QuizQuestion(
        id=f"quiz-q-{index + 1}",
        type="multiple_choice" if options else "short_answer",
        question=question_text,
        options=options or None,
        correct_answer=correct_answer,
    )


def parse_quiz(body: str) -> list[QuizQuestion]:
    """Parse '- **Câu N:**' question blocks with lettered options and an answer line."""
    blocks = QUIZ_MARKER_PATTERN.split(body)[1:]
    return [_parse_question_block(block, index) for index, block in enumerate(blocks)]


def parse_markdown_lesson(text: str) -> LessonContent:
    """
    Fallback path: read the five-section markdown layout.

    Sections that are missing or empty keep the LessonContent defaults.
    """
    fields: dict[str, Any] = {}

    for heading, body in split_sections(text):
        if heading.startswith(THEORY_HEADING):
            if body:
                fields["theory"] = TheoryContent(text=body)
        elif heading.startswith(EXAMPLES_HEADING):
            fields["examples"] = parse_examples(body)
        elif heading.startswith(PRACTICE_HEADING):
            fields["practice_problems"] = parse_practice_problems(body)
        elif heading.startswith(QUIZ_HEADING):
            fields["quiz"] = parse_quiz(body)
        elif heading.startswith(NEXT_STEPS_HEADING):
            if body:
                fields["next_steps"] = body
        else:
            logger.debug(f"Ignoring unknown section: {heading[:40]}")

    return LessonContent(**fields)


# -----------------------------------------------------------------------------
# Public entry points
# -----------------------------------------------------------------------------

def parse_lesson_response(raw_text: str) -> LessonContent:
    """
    Convert raw generated text into LessonContent.

    Never raises: malformed input degrades to defaults (placeholder theory
    and next steps, empty lists).
    """
    text = raw_text if isinstance(raw_text, str) else ""

    content = try_parse_json_lesson(text)
    if content is not None:
        return content

    logger.warning("Lesson response is not valid JSON, attempting markdown parsing")
    try:
        return parse_markdown_lesson(text)
    except Exception as e:
        logger.error(f"Markdown parsing failed, using empty lesson: {e}")
        return LessonContent()


def parse_quick_review(raw_text: str) -> list[QuickReviewQuestion]:
    """
    Parse a quick review batch (JSON array of questions).

    Raises:
        ValueError: If the text is not a JSON array of valid questions
    """
    data = _decode_json(raw_text or "")
    if data is None:
        raise ValueError(f"Quick review response is not valid JSON: {(raw_text or '')[:200]}")
    if not isinstance(data, list):
        raise ValueError("Quick review response must be a JSON array")

    return QUICK_REVIEW_ADAPTER.validate_python(data)
