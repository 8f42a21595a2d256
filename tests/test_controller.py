"""
Lesson controller tests for Toán 6.

Drives LessonController with an in-memory store and a fake content
generator in place of Gemini.
"""

import json
from types import SimpleNamespace

import httpx
import pytest

from toan6.classroom import (
    LessonController,
    MemoryKeyValueStore,
    ProgressTracker,
    get_default_catalog,
    grade_quick_review,
    grade_quiz,
    is_passing,
    required_score,
)
from toan6.content import (
    FEEDBACK_EMPTY_MESSAGE,
    FEEDBACK_ERROR_MESSAGE,
    LESSON_ERROR_MESSAGE,
    QUICK_REVIEW_ERROR_MESSAGE,
    GenerationError,
)
from toan6.content.client import GeminiContentClient
from toan6.schemas import (
    ChapterStatus,
    LessonContent,
    MultipleChoiceOption,
    QuickReviewQuestion,
    QuizQuestion,
    UserProgress,
)


OPTIONS = [MultipleChoiceOption(key=key, text=key.lower()) for key in "ABCD"]


def make_lesson(correct: str = "A", count: int = 10) -> LessonContent:
    return LessonContent(quiz=[
        QuizQuestion(id=f"quiz-q-{i + 1}", question=f"Câu {i + 1}", options=OPTIONS, correct_answer=correct)
        for i in range(count)
    ])


def answers_with(correct: int, total: int = 10) -> dict[str, str]:
    """``correct`` right answers ('A') followed by wrong ones ('B')."""
    return {f"quiz-q-{i + 1}": "A" if i < correct else "B" for i in range(total)}


class FakeGenerator:
    """Records calls and returns canned responses."""

    def __init__(self, lesson: LessonContent | None = None):
        self.lesson = lesson or make_lesson()
        self.lesson_calls: list[tuple[str, str]] = []
        self.feedback_calls: list[tuple[list[dict], int]] = []
        self.feedback = "Làm tốt lắm!"
        self.feedback_error: Exception | None = None
        self.lesson_error: Exception | None = None
        self.quick_review = "[]"
        self.on_generate = None

    def generate_lesson(self, chapter_title: str, lesson_title: str) -> str:
        self.lesson_calls.append((chapter_title, lesson_title))
        if self.on_generate:
            self.on_generate()
        if self.lesson_error:
            raise self.lesson_error
        return self.lesson.model_dump_json(by_alias=True)

    def generate_quick_review(self) -> str:
        return self.quick_review

    def generate_quiz_feedback(self, items: list[dict[str, str]], score: int) -> str:
        self.feedback_calls.append((items, score))
        if self.feedback_error:
            raise self.feedback_error
        return self.feedback


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def controller(store, generator):
    controller = LessonController(get_default_catalog(), ProgressTracker(store), generator)
    controller.load()
    return controller


def is_locked(controller: LessonController, lesson_id: str) -> bool:
    for chapter in controller.outline:
        for lesson in chapter.lessons:
            if lesson.id == lesson_id:
                return lesson.is_locked
    raise KeyError(lesson_id)


class TestGrading:
    """Test the pure grading helpers."""

    def test_required_score(self):
        assert required_score(10) == 7
        assert required_score(5) == 4
        assert required_score(3) == 3
        assert required_score(20) == 14

    def test_is_passing(self):
        assert is_passing(7, 10)
        assert not is_passing(6, 10)
        assert not is_passing(0, 0)

    def test_grade_quiz_exact_match(self):
        questions = make_lesson(correct="A", count=3).quiz
        items = grade_quiz(questions, {"quiz-q-1": "A", "quiz-q-2": "a"})

        assert [item.is_correct for item in items] == [True, False, False]
        assert items[2].user_answer is None

    def test_prompt_item(self):
        item = grade_quiz(make_lesson(count=1).quiz, {})[0]
        prompt_item = item.to_prompt_item()

        assert prompt_item["user_answer"] == "Không trả lời"
        assert prompt_item["options"] == "A. a, B. b, C. c, D. d"
        assert prompt_item["verdict"] == "Sai"

    def test_grade_quick_review(self):
        questions = [
            QuickReviewQuestion(id=f"q{i}", question="?", options=OPTIONS, correct_answer="A", topic=topic)
            for i, topic in enumerate(["Phân số", "Số nguyên", "Phân số"])
        ]
        result = grade_quick_review(questions, {"q0": "B", "q1": "A"})

        assert result.score == 1
        assert result.total == 3
        assert result.weak_areas == ["Phân số"]


class TestLoad:
    """Test startup."""

    def test_empty_progress(self, controller, store):
        assert controller.progress == UserProgress()
        assert not is_locked(controller, "c1l1")
        assert is_locked(controller, "c1l2")
        assert store.get("math6_kntt_curriculum_outline") is not None

    def test_ratchet_applied_on_load(self, store, generator):
        first = LessonController(get_default_catalog(), ProgressTracker(store), generator)
        first.load()
        first.open_lesson("chapter1", "c1l1")
        first.submit_quiz(answers_with(8))

        # Progress lost, outline cache survives
        store.delete("math6_kntt_user_progress")
        second = LessonController(get_default_catalog(), ProgressTracker(store), generator)
        second.load()

        assert second.progress == UserProgress()
        assert not is_locked(second, "c1l2")


class TestSelection:
    """Test lesson selection and content loading."""

    def test_locked_selection_is_noop(self, controller):
        assert controller.select_lesson("chapter1", "c1l2") is None
        assert controller.selection is None
        assert controller.epoch == 0

    def test_stale_selection_is_noop(self, controller):
        assert controller.select_lesson("chapter9", "zzz") is None
        assert controller.select_lesson("chapter2", "c1l1") is None

    def test_open_lesson_generates_and_caches(self, controller, generator, store):
        content = controller.open_lesson("chapter1", "c1l1")

        assert content == generator.lesson
        assert generator.lesson_calls == [("Chương I: Số tự nhiên", "Bài 1: Tập hợp và các phần tử")]
        assert store.get("lesson_content_c1l1") is not None

        record = controller.progress.get_lesson("chapter1", "c1l1")
        assert record.progress == 25
        assert controller.progress.get_chapter("chapter1").status == ChapterStatus.IN_PROGRESS

    def test_cached_content_skips_generation(self, controller, generator):
        controller.open_lesson("chapter1", "c1l1")
        controller.open_lesson("chapter1", "c1l1")
        assert len(generator.lesson_calls) == 1

    def test_stale_fetch_is_discarded(self, controller, generator):
        first = controller.select_lesson("chapter1", "c1l1")
        # A newer selection arrives while the first fetch is in flight
        generator.on_generate = lambda: controller.select_lesson("chapter1", "c1l1")

        assert controller.load_content(first) is None
        assert controller.content is None
        assert controller.progress.get_lesson("chapter1", "c1l1") is None

    def test_generation_error_propagates(self, controller, generator):
        generator.lesson_error = GenerationError("Lỗi máy chủ", 500)
        selection = controller.select_lesson("chapter1", "c1l1")

        with pytest.raises(GenerationError):
            controller.load_content(selection)
        assert controller.content is None
        assert controller.progress == UserProgress()

    def test_unparseable_content_gets_defaults(self, controller, generator):
        generator.generate_lesson = lambda chapter_title, lesson_title: "Xin lỗi!"
        content = controller.open_lesson("chapter1", "c1l1")
        assert content == LessonContent()

    def test_saved_answers_restored(self, controller, store):
        controller.open_lesson("chapter1", "c1l1")
        controller.set_answer("quiz-q-1", "C")
        assert json.loads(store.get("quiz_answers_c1l1")) == {"quiz-q-1": "C"}

        controller.select_lesson("chapter1", "c1l1")
        assert controller.answers == {}
        controller.load_content(controller.selection)
        assert controller.answers == {"quiz-q-1": "C"}


class TestQuiz:
    """Test quiz submission and retake."""

    def test_pass_unlocks_next_lesson(self, controller, generator, store):
        controller.open_lesson("chapter1", "c1l1")
        result = controller.submit_quiz(answers_with(8))

        assert result.score == 8
        assert result.passed
        assert result.feedback == "Làm tốt lắm!"

        record = controller.progress.get_lesson("chapter1", "c1l1")
        assert record.progress == 100
        assert record.quiz_score == 8
        assert record.quiz_passed
        assert not is_locked(controller, "c1l2")
        assert is_locked(controller, "c1l3")
        assert controller.outline[0].status == ChapterStatus.IN_PROGRESS

        saved = UserProgress.model_validate_json(store.get("math6_kntt_user_progress"))
        assert saved == controller.progress

    def test_fail_leaves_progress(self, controller):
        controller.open_lesson("chapter1", "c1l1")
        controller.record_view("quiz")
        result = controller.submit_quiz(answers_with(5))

        assert not result.passed
        record = controller.progress.get_lesson("chapter1", "c1l1")
        assert record.progress == 75
        assert record.quiz_score == 5
        assert not record.quiz_passed
        assert is_locked(controller, "c1l2")

    def test_exact_threshold_passes(self, controller):
        controller.open_lesson("chapter1", "c1l1")
        assert controller.submit_quiz(answers_with(7)).passed

    def test_uses_recorded_answers(self, controller):
        controller.open_lesson("chapter1", "c1l1")
        for question_id, answer in answers_with(9).items():
            controller.set_answer(question_id, answer)

        assert controller.submit_quiz().score == 9

    def test_feedback_request(self, controller, generator):
        controller.open_lesson("chapter1", "c1l1")
        controller.submit_quiz(answers_with(6))

        items, score = generator.feedback_calls[0]
        assert score == 6
        assert len(items) == 10
        assert items[0]["verdict"] == "Đúng"
        assert items[9]["verdict"] == "Sai"

    def test_feedback_failure_placeholder(self, controller, generator):
        generator.feedback_error = GenerationError("Lỗi", 500)
        controller.open_lesson("chapter1", "c1l1")
        result = controller.submit_quiz(answers_with(8))

        assert result.feedback == FEEDBACK_ERROR_MESSAGE
        assert result.passed

    def test_empty_feedback_placeholder(self, controller, generator):
        generator.feedback = ""
        controller.open_lesson("chapter1", "c1l1")
        assert controller.submit_quiz(answers_with(8)).feedback == FEEDBACK_EMPTY_MESSAGE

    def test_submit_clears_saved_answers(self, controller, store):
        controller.open_lesson("chapter1", "c1l1")
        controller.set_answer("quiz-q-1", "A")
        controller.submit_quiz()
        assert store.get("quiz_answers_c1l1") is None

    def test_retake(self, controller):
        controller.open_lesson("chapter1", "c1l1")
        controller.submit_quiz(answers_with(4))
        controller.retake_quiz()

        record = controller.progress.get_lesson("chapter1", "c1l1")
        assert record.quiz_score is None
        assert not record.quiz_passed
        assert controller.answers == {}
        assert controller.quiz_result is None

    def test_retake_after_pass_keeps_unlock(self, controller):
        controller.open_lesson("chapter1", "c1l1")
        controller.submit_quiz(answers_with(10))
        controller.retake_quiz()

        assert not is_locked(controller, "c1l2")

    def test_whole_chapter_completes(self, store):
        lesson = make_lesson()
        controller = LessonController(get_default_catalog(), ProgressTracker(store), FakeGenerator(lesson))
        controller.load()

        for chapter_lesson in controller.catalog[0].lessons:
            assert controller.open_lesson("chapter1", chapter_lesson.id) is not None
            assert controller.submit_quiz(answers_with(10)).passed

        assert controller.outline[0].status == ChapterStatus.COMPLETED
        assert not is_locked(controller, "c2l1")

    def test_submit_without_selection(self, controller):
        with pytest.raises(ValueError):
            controller.submit_quiz({})


class TestTabProgress:
    """Test tab and practice progress."""

    def test_record_view_raises_progress(self, controller):
        controller.open_lesson("chapter1", "c1l1")
        controller.record_view("practice")
        assert controller.progress.get_lesson("chapter1", "c1l1").progress == 50

        controller.record_view("examples")
        assert controller.progress.get_lesson("chapter1", "c1l1").progress == 50

    def test_unknown_tab_ignored(self, controller):
        controller.open_lesson("chapter1", "c1l1")
        controller.record_view("feedback")
        assert controller.progress.get_lesson("chapter1", "c1l1").progress == 25

    def test_mark_practice_attempted(self, controller):
        controller.open_lesson("chapter1", "c1l1")
        controller.mark_practice_attempted("c1l1-practice-1")
        record = controller.progress.get_lesson("chapter1", "c1l1")
        assert record.attempted_practice_problems == {"c1l1-practice-1"}


class TestQuickReview:
    """Test the quick review flow."""

    def test_load_quick_review(self, controller, generator):
        generator.quick_review = json.dumps([{
            "id": "qr_q_1",
            "question": "1/2 + 1/2 = ?",
            "options": [{"key": "A", "text": "1"}, {"key": "B", "text": "2"}],
            "correctAnswer": "A",
            "topic": "Phân số",
        }])
        questions = controller.load_quick_review()
        assert questions[0].topic == "Phân số"

        result = controller.grade_quick_review(questions, {"qr_q_1": "B"})
        assert result.score == 0
        assert result.weak_areas == ["Phân số"]

    def test_bad_response_raises_generation_error(self, controller, generator):
        generator.quick_review = "không phải json"
        with pytest.raises(GenerationError) as exc_info:
            controller.load_quick_review()
        assert exc_info.value.message == QUICK_REVIEW_ERROR_MESSAGE


class ScriptedModels:
    """Stands in for genai ``client.models``: returns or raises in order, then keeps raising the last error."""

    def __init__(self, responses):
        self.responses = list(responses)

    def generate_content(self, model, contents, config):
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return SimpleNamespace(text=response, candidates=None)


def gemini_controller(store, responses) -> LessonController:
    client = GeminiContentClient(api_key="test-key", sleep_seconds=0)
    client.client = SimpleNamespace(models=ScriptedModels(responses))
    controller = LessonController(get_default_catalog(), ProgressTracker(store), client)
    controller.load()
    return controller


class TestNetworkFailures:
    """Test the controller over the Gemini client when the network drops."""

    def test_offline_feedback_is_not_fatal(self, store):
        controller = gemini_controller(store, [
            make_lesson().model_dump_json(by_alias=True),
            httpx.ConnectError("offline"),
        ])
        controller.open_lesson("chapter1", "c1l1")
        controller.set_answer("quiz-q-1", "A")
        result = controller.submit_quiz(answers_with(8))

        assert result.passed
        assert result.feedback == FEEDBACK_ERROR_MESSAGE
        assert controller.quiz_result is result
        assert store.get("quiz_answers_c1l1") is None
        assert not is_locked(controller, "c1l2")

    def test_offline_lesson_fetch_raises_generation_error(self, store):
        controller = gemini_controller(store, [httpx.ConnectError("offline")])

        with pytest.raises(GenerationError) as exc_info:
            controller.open_lesson("chapter1", "c1l1")
        assert exc_info.value.message == LESSON_ERROR_MESSAGE
        assert controller.content is None
        assert store.get("lesson_content_c1l1") is None
