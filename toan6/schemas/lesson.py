"""
Lesson content schemas for Toán 6.

Defines Pydantic models for generated lesson content including:
- Theory text and illustration descriptions
- Worked examples
- Practice problems
- Quiz questions (multiple choice and short answer)
- Quick review questions

Field names are snake_case in Python and camelCase on the wire, matching
the JSON the content generator is asked to produce.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


THEORY_PLACEHOLDER = "Nội dung lý thuyết đang được cập nhật."
NEXT_STEPS_PLACEHOLDER = "Tiếp tục bài học kế tiếp!"
MISSING_FIELD_PLACEHOLDER = "N/A"
MISSING_ANSWER_PLACEHOLDER = "Chưa có đáp án"

QuizQuestionType = Literal["multiple_choice", "short_answer"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, coerce_numbers_to_str=True)


class TheoryContent(CamelModel):
    text: str = THEORY_PLACEHOLDER
    illustrations: list[str] = []  # descriptions of suggested figures


class ExampleProblem(CamelModel):
    title: str = MISSING_FIELD_PLACEHOLDER
    problem: str = MISSING_FIELD_PLACEHOLDER
    solution: str = MISSING_FIELD_PLACEHOLDER
    common_mistakes: str = MISSING_FIELD_PLACEHOLDER


class PracticeProblem(CamelModel):
    problem: str
    answer: str = MISSING_ANSWER_PLACEHOLDER


class MultipleChoiceOption(CamelModel):
    key: str   # 'A', 'B', 'C' or 'D'
    text: str


class QuizQuestion(CamelModel):
    id: str = ""  # synthesized as quiz-q-N by the parser when absent
    type: QuizQuestionType = "multiple_choice"
    question: str
    options: Optional[list[MultipleChoiceOption]] = None
    correct_answer: str = ""  # option key for multiple choice, free text otherwise

    @model_validator(mode="before")
    @classmethod
    def infer_type(cls, data):
        if isinstance(data, dict) and "type" not in data:
            data = dict(data)
            data["type"] = "multiple_choice" if data.get("options") else "short_answer"
        return data


class LessonContent(CamelModel):
    theory: TheoryContent = Field(default_factory=TheoryContent)
    examples: list[ExampleProblem] = []
    practice_problems: list[PracticeProblem] = []
    quiz: list[QuizQuestion] = []
    next_steps: str = NEXT_STEPS_PLACEHOLDER

    @field_validator("theory", mode="before")
    @classmethod
    def coerce_theory(cls, value):
        # Generators sometimes return the theory as a bare string
        if value is None:
            return {}
        if isinstance(value, str):
            return {"text": value}
        return value

    @field_validator("examples", "practice_problems", "quiz", mode="before")
    @classmethod
    def null_to_empty(cls, value):
        return [] if value is None else value

    @field_validator("next_steps", mode="before")
    @classmethod
    def null_to_placeholder(cls, value):
        return NEXT_STEPS_PLACEHOLDER if value is None else value


class QuickReviewQuestion(CamelModel):
    id: str
    question: str
    options: list[MultipleChoiceOption]
    correct_answer: str
    topic: str  # used to report weak areas
