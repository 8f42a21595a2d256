"""
LessonController - Session state for the lesson viewer.

Owns the in-memory progress and outline for one learner and coordinates:
- Lesson selection (with an epoch token so stale fetches are dropped)
- Fetch-or-cache of generated lesson content
- Quiz answers, grading, unlocking and feedback
- Tab and practice progress
- The 5-minute quick review

The Streamlit app keeps one controller per session; tests drive it with a
MemoryKeyValueStore and a fake content generator.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

from toan6.config import QUIZ_LENGTH, QUIZ_PASS_SCORE, TAB_PROGRESS
from toan6.content import (
    FEEDBACK_EMPTY_MESSAGE,
    FEEDBACK_ERROR_MESSAGE,
    QUICK_REVIEW_ERROR_MESSAGE,
    GenerationError,
    parse_lesson_response,
    parse_quick_review,
)
from toan6.schemas import (
    ChapterOutline,
    LessonContent,
    QuickReviewQuestion,
    QuizQuestion,
    UserProgress,
)

from .navigator import derive_outline, find_lesson, unlock_next
from .progress import (
    ProgressTracker,
    add_practice_attempt,
    record_lesson_progress,
    record_quiz_result,
    reset_quiz,
)


logger = logging.getLogger(__name__)

NO_ANSWER = "Không trả lời"


class ContentGenerator(Protocol):
    def generate_lesson(self, chapter_title: str, lesson_title: str) -> str: ...

    def generate_quick_review(self) -> str: ...

    def generate_quiz_feedback(self, items: list[dict[str, str]], score: int) -> str: ...


@dataclass
class LessonSelection:
    chapter_id: str
    lesson_id: str
    chapter_title: str
    lesson_title: str
    epoch: int


@dataclass
class QuizReviewItem:
    question: QuizQuestion
    user_answer: Optional[str]
    is_correct: bool

    def to_prompt_item(self) -> dict[str, str]:
        """Fields for one entry of the feedback prompt."""
        options = self.question.options or []
        return {
            "question": self.question.question,
            "options": ", ".join(f"{o.key}. {o.text}" for o in options) or "Tự luận",
            "user_answer": self.user_answer or NO_ANSWER,
            "correct_answer": self.question.correct_answer,
            "verdict": "Đúng" if self.is_correct else "Sai",
        }


@dataclass
class QuizResult:
    score: int
    total: int
    passed: bool
    items: list[QuizReviewItem] = field(default_factory=list)
    feedback: str = ""


@dataclass
class QuickReviewResult:
    score: int
    total: int
    weak_areas: list[str] = field(default_factory=list)  # topics of missed questions


# -----------------------------------------------------------------------------
# Grading
# -----------------------------------------------------------------------------

def required_score(total: int) -> int:
    """
    Correct answers needed to pass a quiz of ``total`` questions.

    QUIZ_PASS_SCORE out of QUIZ_LENGTH, scaled up (rounded up) for
    quizzes of other lengths.
    """
    return (QUIZ_PASS_SCORE * total + QUIZ_LENGTH - 1) // QUIZ_LENGTH


def is_passing(score: int, total: int) -> bool:
    return total > 0 and score >= required_score(total)


def grade_quiz(questions: list[QuizQuestion], answers: dict[str, str]) -> list[QuizReviewItem]:
    """Grade answers by exact, case-sensitive match against each correct answer."""
    items = []
    for question in questions:
        answer = answers.get(question.id)
        items.append(QuizReviewItem(
            question=question,
            user_answer=answer,
            is_correct=answer is not None and answer == question.correct_answer,
        ))
    return items


def grade_quick_review(
    questions: list[QuickReviewQuestion],
    answers: dict[str, str],
) -> QuickReviewResult:
    score = 0
    weak_areas: list[str] = []
    for question in questions:
        if answers.get(question.id) == question.correct_answer:
            score += 1
        elif question.topic not in weak_areas:
            weak_areas.append(question.topic)
    return QuickReviewResult(score=score, total=len(questions), weak_areas=weak_areas)


# -----------------------------------------------------------------------------
# Controller
# -----------------------------------------------------------------------------

class LessonController:
    """
    Lesson and quiz state for one learner.

    Attributes:
        progress: Authoritative progress document
        outline: Derived outline (what the sidebar shows)
        selection: Currently selected lesson, if any
        content: Content displayed for the selection, once loaded
        answers: Quiz answers for the displayed content
        quiz_result: Result of the last submission for the selection
    """

    def __init__(
        self,
        catalog: list[ChapterOutline],
        tracker: ProgressTracker,
        client: Optional[ContentGenerator] = None,
    ):
        self.catalog = catalog
        self.tracker = tracker
        self.client = client

        self.progress = UserProgress()
        self.outline = derive_outline(catalog, self.progress)
        self.selection: Optional[LessonSelection] = None
        self.content: Optional[LessonContent] = None
        self.answers: dict[str, str] = {}
        self.quiz_result: Optional[QuizResult] = None
        self._epoch = 0

    @property
    def epoch(self) -> int:
        return self._epoch

    def _require_client(self) -> ContentGenerator:
        if self.client is None:
            raise ValueError("No content generator configured")
        return self.client

    def _require_selection(self) -> LessonSelection:
        if self.selection is None:
            raise ValueError("No lesson is selected")
        return self.selection

    def _apply_progress(self, progress: UserProgress, outline: Optional[list[ChapterOutline]] = None):
        """Store new progress, re-derive the outline and persist both."""
        self.progress = progress
        self.tracker.save_progress(progress)
        self.outline = derive_outline(self.catalog, progress, previous=outline or self.outline)
        self.tracker.save_outline(self.outline)

    # -------------------------------------------------------------------------
    # Startup and selection
    # -------------------------------------------------------------------------

    def load(self) -> list[ChapterOutline]:
        """Load stored progress and merge it with the cached outline."""
        self.progress = self.tracker.load_progress()
        previous = self.tracker.load_outline()
        self.outline = derive_outline(self.catalog, self.progress, previous=previous)
        self.tracker.save_outline(self.outline)
        logger.info(f"Loaded progress for {len(self.progress.chapters)} chapters")
        return self.outline

    def select_lesson(self, chapter_id: str, lesson_id: str) -> Optional[LessonSelection]:
        """
        Make a lesson current.

        Returns:
            The new selection, or None if the lesson is unknown or locked
            (in which case nothing changes)
        """
        found = find_lesson(self.outline, chapter_id, lesson_id)
        if found is None:
            logger.warning(f"Ignoring selection of unknown lesson {chapter_id}/{lesson_id}")
            return None

        chapter, lesson = found
        if lesson.is_locked:
            logger.info(f"Ignoring selection of locked lesson {lesson_id}")
            return None

        self._epoch += 1
        self.selection = LessonSelection(
            chapter_id=chapter.id,
            lesson_id=lesson.id,
            chapter_title=chapter.title,
            lesson_title=lesson.title,
            epoch=self._epoch,
        )
        self.content = None
        self.answers = {}
        self.quiz_result = None
        return self.selection

    def load_content(self, selection: LessonSelection) -> Optional[LessonContent]:
        """
        Fetch (or read from cache) the content for a selection.

        Returns:
            The displayed content, or None if a newer selection was made
            while fetching

        Raises:
            GenerationError: If content generation fails
        """
        content = self.tracker.get_cached_content(selection.lesson_id)
        if content is None:
            raw = self._require_client().generate_lesson(selection.chapter_title, selection.lesson_title)
            content = parse_lesson_response(raw)
            self.tracker.cache_content(selection.lesson_id, content)

        if selection.epoch != self._epoch:
            logger.info(f"Discarding stale content for {selection.lesson_id}")
            return None

        self.content = content
        record = self.progress.get_lesson(selection.chapter_id, selection.lesson_id)
        if record is None or record.quiz_score is None:
            self.answers = self.tracker.load_quiz_answers(selection.lesson_id)

        self._apply_progress(record_lesson_progress(
            self.progress, self.catalog, selection.chapter_id, selection.lesson_id,
        ))
        return content

    def open_lesson(self, chapter_id: str, lesson_id: str) -> Optional[LessonContent]:
        selection = self.select_lesson(chapter_id, lesson_id)
        if selection is None:
            return None
        return self.load_content(selection)

    # -------------------------------------------------------------------------
    # Quiz
    # -------------------------------------------------------------------------

    def set_answer(self, question_id: str, answer: str):
        selection = self._require_selection()
        self.answers[question_id] = answer
        self.tracker.save_quiz_answers(selection.lesson_id, self.answers)

    def _request_feedback(self, items: list[QuizReviewItem], score: int) -> str:
        try:
            feedback = self._require_client().generate_quiz_feedback(
                [item.to_prompt_item() for item in items], score
            )
        except (GenerationError, ValueError) as e:
            logger.error(f"Quiz feedback failed: {e}")
            return FEEDBACK_ERROR_MESSAGE
        return feedback or FEEDBACK_EMPTY_MESSAGE

    def submit_quiz(self, answers: Optional[dict[str, str]] = None) -> QuizResult:
        """
        Grade the displayed quiz and record the result.

        A pass completes the lesson and unlocks the next one; a fail keeps
        the lesson's progress as it was.

        Args:
            answers: Answers by question id (defaults to the recorded answers)
        """
        selection = self._require_selection()
        if self.content is None:
            raise ValueError("Lesson content is not loaded")

        answers = dict(self.answers if answers is None else answers)
        items = grade_quiz(self.content.quiz, answers)
        score = sum(1 for item in items if item.is_correct)
        total = len(items)
        passed = is_passing(score, total)
        logger.info(f"Quiz {selection.lesson_id}: {score}/{total} ({'passed' if passed else 'failed'})")

        progress = record_quiz_result(
            self.progress, self.catalog, selection.chapter_id, selection.lesson_id,
            score=score, passed=passed,
        )
        outline = self.outline
        if passed:
            outline = unlock_next(outline, selection.chapter_id, selection.lesson_id)
        self._apply_progress(progress, outline)

        feedback = self._request_feedback(items, score)
        self.tracker.clear_quiz_answers(selection.lesson_id)

        self.answers = answers
        self.quiz_result = QuizResult(
            score=score, total=total, passed=passed, items=items, feedback=feedback,
        )
        return self.quiz_result

    def retake_quiz(self):
        selection = self._require_selection()
        self.answers = {}
        self.quiz_result = None
        self.tracker.clear_quiz_answers(selection.lesson_id)
        self._apply_progress(reset_quiz(
            self.progress, self.catalog, selection.chapter_id, selection.lesson_id,
        ))

    # -------------------------------------------------------------------------
    # Tab and practice progress
    # -------------------------------------------------------------------------

    def record_view(self, tab: str):
        """Raise lesson progress to the value for viewing ``tab``."""
        value = TAB_PROGRESS.get(tab)
        if value is None or self.selection is None:
            return
        self._apply_progress(record_lesson_progress(
            self.progress, self.catalog, self.selection.chapter_id, self.selection.lesson_id,
            value=value,
        ))

    def mark_practice_attempted(self, problem_id: str):
        selection = self._require_selection()
        self._apply_progress(add_practice_attempt(
            self.progress, self.catalog, selection.chapter_id, selection.lesson_id, problem_id,
        ))

    # -------------------------------------------------------------------------
    # Quick review
    # -------------------------------------------------------------------------

    def load_quick_review(self) -> list[QuickReviewQuestion]:
        """
        Fetch a fresh quick review batch.

        Raises:
            GenerationError: On request failure or an unreadable response
        """
        raw = self._require_client().generate_quick_review()
        try:
            return parse_quick_review(raw)
        except ValueError as e:
            logger.error(f"Quick review response rejected: {e}")
            raise GenerationError(QUICK_REVIEW_ERROR_MESSAGE) from e

    def grade_quick_review(
        self,
        questions: list[QuickReviewQuestion],
        answers: dict[str, str],
    ) -> QuickReviewResult:
        return grade_quick_review(questions, answers)
