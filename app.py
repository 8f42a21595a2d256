"""
Toán 6 - Kết nối tri thức

Streamlit application for self-paced Grade 6 math lessons. Lessons unlock
one after another as the learner passes each lesson's quiz.

Usage:
    streamlit run app.py
"""

import logging

import streamlit as st
from dotenv import load_dotenv

from toan6.config import APP_NAME, QUICK_REVIEW_LENGTH
from toan6.classroom import (
    LessonController,
    ProgressTracker,
    SQLiteKeyValueStore,
    first_unlocked_lesson,
    get_adjacent_lessons,
    get_lesson_position,
    get_progress_summary,
    get_status_indicator,
    load_catalog,
)
from toan6.content import GenerationError
from toan6.content.client import GeminiContentClient
from toan6.schemas import QuizQuestion
from toan6.viewer import (
    calculate_quiz_score,
    format_option,
    get_lesson_css,
    get_quiz_css,
    option_key_from_label,
    practice_problem_id,
    render_example,
    render_illustrations,
    render_next_steps,
    render_practice_problem,
    render_quick_review_result,
    render_quiz_score,
    render_review_item,
    render_status_badge,
)

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

LESSON_TABS = {
    "theory": "(1) Lý thuyết",
    "examples": "(2) Ví dụ",
    "practice": "(3) Bài tập",
    "quiz": "(4) Kiểm tra",
    "feedback": "(5) Kết quả",
}

st.set_page_config(
    page_title=APP_NAME,
    page_icon="📐",
    layout="wide",
    initial_sidebar_state="expanded",
)


# -----------------------------------------------------------------------------
# Session State Initialization
# -----------------------------------------------------------------------------

def create_controller() -> LessonController:
    """Build the controller; a missing API key leaves it without a client."""
    client = None
    try:
        client = GeminiContentClient()
    except ValueError as e:
        logger.error(f"Content client unavailable: {e}")
        st.session_state.client_error = str(e)

    tracker = ProgressTracker(SQLiteKeyValueStore())
    controller = LessonController(load_catalog(), tracker, client)
    controller.load()
    return controller


def init_session_state():
    """Initialize session state variables."""
    if "client_error" not in st.session_state:
        st.session_state.client_error = None

    if "controller" not in st.session_state:
        controller = create_controller()
        st.session_state.controller = controller

        first = first_unlocked_lesson(controller.outline)
        if first:
            chapter, lesson = first
            controller.select_lesson(chapter.id, lesson.id)

    if "view_mode" not in st.session_state:
        st.session_state.view_mode = "lesson"  # lesson, quick_review

    if "active_tab" not in st.session_state:
        st.session_state.active_tab = "theory"

    if "quick_review" not in st.session_state:
        st.session_state.quick_review = None
        st.session_state.quick_review_result = None


# -----------------------------------------------------------------------------
# Sidebar: Chapter Tree
# -----------------------------------------------------------------------------

def render_sidebar():
    """Render the sidebar with chapters, lessons and progress."""
    controller = st.session_state.controller
    st.sidebar.title(f"📐 {APP_NAME}")

    stats = get_progress_summary(controller.outline)
    st.sidebar.markdown(
        f"**Tiến độ:** {stats['completed']}/{stats['total_lessons']} bài "
        f"({stats['completion_percent']}%)"
    )
    st.sidebar.progress(stats["completion_percent"] / 100)

    if st.sidebar.button("⚡ Ôn nhanh 5 phút", use_container_width=True):
        st.session_state.view_mode = "quick_review"
        st.rerun()

    st.sidebar.divider()
    st.sidebar.markdown(get_lesson_css(), unsafe_allow_html=True)

    selection = controller.selection
    for chapter in controller.outline:
        is_current_chapter = selection is not None and selection.chapter_id == chapter.id
        with st.sidebar.expander(f"**{chapter.title}**", expanded=is_current_chapter):
            st.markdown(render_status_badge(chapter.status), unsafe_allow_html=True)

            for lesson in chapter.lessons:
                is_current = is_current_chapter and selection.lesson_id == lesson.id
                indicator = get_status_indicator(lesson, is_current)

                col1, col2 = st.columns([1, 9])
                with col1:
                    st.markdown(indicator)
                with col2:
                    if st.button(
                        lesson.title,
                        key=f"lesson_{lesson.id}",
                        disabled=lesson.is_locked,
                        use_container_width=True,
                    ):
                        select_lesson(chapter.id, lesson.id)


def select_lesson(chapter_id: str, lesson_id: str):
    """Select a lesson and update state."""
    controller = st.session_state.controller
    if controller.select_lesson(chapter_id, lesson_id) is None:
        return
    st.session_state.view_mode = "lesson"
    st.session_state.active_tab = "theory"
    st.rerun()


# -----------------------------------------------------------------------------
# Main Content: Lesson View
# -----------------------------------------------------------------------------

def render_lesson_view():
    """Render the selected lesson."""
    controller = st.session_state.controller
    selection = controller.selection

    if selection is None:
        st.info("Chọn một bài học ở thanh bên để bắt đầu.")
        return

    st.title(selection.lesson_title)
    st.caption(selection.chapter_title)
    render_navigation_bar()

    if controller.content is None and not ensure_content():
        return

    st.markdown(get_lesson_css(), unsafe_allow_html=True)
    st.markdown(get_quiz_css(), unsafe_allow_html=True)

    tab_ids = list(LESSON_TABS)
    active = st.radio(
        "Phần",
        tab_ids,
        index=tab_ids.index(st.session_state.active_tab),
        format_func=LESSON_TABS.get,
        horizontal=True,
        label_visibility="collapsed",
    )
    if active != st.session_state.active_tab:
        st.session_state.active_tab = active
        controller.record_view(active)

    st.divider()

    if active == "theory":
        render_theory_tab()
    elif active == "examples":
        render_examples_tab()
    elif active == "practice":
        render_practice_tab()
    elif active == "quiz":
        render_quiz_tab()
    else:
        render_feedback_tab()


def ensure_content() -> bool:
    """Load content for the current selection, showing a retry on failure."""
    controller = st.session_state.controller

    try:
        with st.spinner("Đang tạo nội dung bài học..."):
            content = controller.load_content(controller.selection)
    except GenerationError as e:
        st.error(e.message)
        if st.button("Thử lại", type="primary"):
            st.rerun()
        return False
    except ValueError:
        # No client and nothing cached for this lesson
        st.error(f"Chưa cấu hình khóa API: {st.session_state.client_error}")
        return False

    if content is None:
        # A newer selection replaced this one while loading
        st.rerun()
    return True


def render_navigation_bar():
    """Render navigation bar with prev/next buttons."""
    controller = st.session_state.controller
    selection = controller.selection
    pos, total = get_lesson_position(controller.outline, selection.chapter_id, selection.lesson_id)
    prev_pair, next_pair = get_adjacent_lessons(controller.outline, selection.chapter_id, selection.lesson_id)

    col1, col2, col3 = st.columns([1, 2, 1])

    with col1:
        if prev_pair and st.button("← Bài trước", use_container_width=True):
            select_lesson(*prev_pair)

    with col2:
        st.markdown(f"<center>Bài {pos} / {total}</center>", unsafe_allow_html=True)

    with col3:
        if next_pair and st.button("Bài tiếp →", use_container_width=True):
            select_lesson(*next_pair)


def render_theory_tab():
    content = st.session_state.controller.content
    st.markdown(content.theory.text)
    illustrations = render_illustrations(content.theory)
    if illustrations:
        st.markdown(illustrations, unsafe_allow_html=True)


def render_examples_tab():
    content = st.session_state.controller.content
    if not content.examples:
        st.info("Chưa có ví dụ minh họa cho bài học này.")
        return
    for index, example in enumerate(content.examples):
        st.markdown(render_example(example, index), unsafe_allow_html=True)


def render_practice_tab():
    controller = st.session_state.controller
    content = controller.content
    selection = controller.selection

    if not content.practice_problems:
        st.info("Chưa có bài tập tự luyện cho bài học này.")
        return

    record = controller.progress.get_lesson(selection.chapter_id, selection.lesson_id)
    attempted = record.attempted_practice_problems if record else set()

    for index, problem in enumerate(content.practice_problems):
        problem_id = practice_problem_id(selection.lesson_id, index)
        st.markdown(
            render_practice_problem(problem, index, attempted=problem_id in attempted),
            unsafe_allow_html=True,
        )
        with st.expander("Xem đáp án"):
            st.markdown(problem.answer)
            if problem_id not in attempted and st.button("Tôi đã làm bài này", key=f"practice_{problem_id}"):
                controller.mark_practice_attempted(problem_id)
                st.rerun()


def render_quiz_question_input(question: QuizQuestion, index: int, key_prefix: str):
    """Render the answer widget for one question and record changes."""
    controller = st.session_state.controller
    saved = controller.answers.get(question.id)

    st.markdown(f"**Câu {index + 1}:** {question.question}")
    if question.options:
        labels = [format_option(option) for option in question.options]
        keys = [option.key for option in question.options]
        label = st.radio(
            f"Câu {index + 1}",
            labels,
            index=keys.index(saved) if saved in keys else None,
            key=f"{key_prefix}_{question.id}",
            label_visibility="collapsed",
        )
        answer = option_key_from_label(label)
    else:
        answer = st.text_input(
            f"Câu {index + 1}",
            value=saved or "",
            key=f"{key_prefix}_{question.id}",
            label_visibility="collapsed",
        ).strip() or None

    if answer is not None and answer != saved:
        controller.set_answer(question.id, answer)


def render_quiz_tab():
    controller = st.session_state.controller
    content = controller.content
    selection = controller.selection

    if not content.quiz:
        st.info("Chưa có câu hỏi kiểm tra cho bài học này.")
        return

    record = controller.progress.get_lesson(selection.chapter_id, selection.lesson_id)
    if controller.quiz_result is not None or (record and record.quiz_score is not None):
        st.info("Bạn đã nộp bài kiểm tra này. Xem kết quả ở phần (5) hoặc làm lại.")
        if st.button("Làm lại bài kiểm tra"):
            controller.retake_quiz()
            st.rerun()
        return

    key_prefix = f"quiz_{selection.lesson_id}_{selection.epoch}"
    for index, question in enumerate(content.quiz):
        render_quiz_question_input(question, index, key_prefix)

    answered = sum(1 for q in content.quiz if q.id in controller.answers)
    st.caption(f"Đã trả lời {answered}/{len(content.quiz)} câu")

    if st.button("Nộp bài", type="primary", use_container_width=True):
        with st.spinner("Đang chấm bài và tạo gợi ý..."):
            controller.submit_quiz()
        st.session_state.active_tab = "feedback"
        st.rerun()


def render_feedback_tab():
    controller = st.session_state.controller
    selection = controller.selection
    result = controller.quiz_result

    if result is None:
        record = controller.progress.get_lesson(selection.chapter_id, selection.lesson_id)
        if record and record.quiz_score is not None:
            st.markdown(f"**Điểm lần trước:** {record.quiz_score}")
        else:
            st.info("Hoàn thành bài kiểm tra để xem kết quả.")
        st.markdown(render_next_steps(controller.content.next_steps), unsafe_allow_html=True)
        return

    st.markdown(render_quiz_score(calculate_quiz_score(result)), unsafe_allow_html=True)
    for index, item in enumerate(result.items):
        st.markdown(render_review_item(item, index), unsafe_allow_html=True)

    st.subheader("Gợi ý lộ trình tiếp theo")
    st.markdown(result.feedback)
    st.markdown(render_next_steps(controller.content.next_steps), unsafe_allow_html=True)

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Làm lại bài kiểm tra", use_container_width=True):
            controller.retake_quiz()
            st.session_state.active_tab = "quiz"
            st.rerun()
    with col2:
        if st.button("Xem lại lý thuyết", use_container_width=True):
            st.session_state.active_tab = "theory"
            st.rerun()


# -----------------------------------------------------------------------------
# Quick Review View
# -----------------------------------------------------------------------------

def render_quick_review_view():
    """Render the 5-minute mixed-topic review."""
    controller = st.session_state.controller
    st.title("⚡ Ôn nhanh 5 phút")
    st.markdown(f"{QUICK_REVIEW_LENGTH} câu hỏi trắc nghiệm ngẫu nhiên từ chương trình Toán 6.")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Tạo bộ câu hỏi mới", type="primary", use_container_width=True):
            if controller.client is None:
                st.error(f"Chưa cấu hình khóa API: {st.session_state.client_error}")
                return
            try:
                with st.spinner("Đang tạo câu hỏi..."):
                    st.session_state.quick_review = controller.load_quick_review()
                st.session_state.quick_review_result = None
            except GenerationError as e:
                st.error(e.message)
                return
    with col2:
        if st.button("← Quay lại bài học", use_container_width=True):
            st.session_state.view_mode = "lesson"
            st.rerun()

    questions = st.session_state.quick_review
    if not questions:
        return

    answers = {}
    for index, question in enumerate(questions):
        st.markdown(f"**Câu {index + 1}** ({question.topic}): {question.question}")
        label = st.radio(
            f"Câu {index + 1}",
            [format_option(option) for option in question.options],
            index=None,
            key=f"qr_{question.id}",
            label_visibility="collapsed",
        )
        key = option_key_from_label(label)
        if key:
            answers[question.id] = key

    if st.button("Chấm điểm", use_container_width=True):
        st.session_state.quick_review_result = controller.grade_quick_review(questions, answers)

    result = st.session_state.quick_review_result
    if result is not None:
        st.markdown(get_quiz_css(), unsafe_allow_html=True)
        st.markdown(render_quick_review_result(result), unsafe_allow_html=True)
        with st.expander("Xem đáp án"):
            for index, question in enumerate(questions):
                st.markdown(f"Câu {index + 1}: **{question.correct_answer}**")


# -----------------------------------------------------------------------------
# Main App
# -----------------------------------------------------------------------------

def main():
    """Main application entry point."""
    init_session_state()
    render_sidebar()

    if st.session_state.view_mode == "quick_review":
        render_quick_review_view()
    else:
        render_lesson_view()


if __name__ == "__main__":
    main()
