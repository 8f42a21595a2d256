"""
Gemini content client for Toán 6.

Wraps google-genai with retries and maps API failures to GenerationError
with learner-facing messages. Three requests are supported:
- Lesson content for one lesson (five-section markdown)
- A quick review batch (JSON array, schema-constrained)
- Study feedback for a graded quiz (plain text)
"""

import logging
import time
from typing import Any, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from toan6.config import GEMINI_MODEL, QUICK_REVIEW_LENGTH, QUIZ_LENGTH, get_api_key
from toan6.content.errors import (
    LESSON_ERROR_MESSAGE,
    QUICK_REVIEW_ERROR_MESSAGE,
    FEEDBACK_ERROR_MESSAGE,
    GenerationError,
)
from toan6.utils.prompt_loader import format_prompt, generation_settings, load_prompt


logger = logging.getLogger(__name__)

DEFAULT_API_SLEEP = 1.0
DEFAULT_PRACTICE_COUNT = 10

# Response schema for quick review batches
OPTION_SCHEMA = genai_types.Schema(
    type=genai_types.Type.OBJECT,
    properties={
        "key": genai_types.Schema(type=genai_types.Type.STRING),
        "text": genai_types.Schema(type=genai_types.Type.STRING),
    },
    required=["key", "text"],
)
QUICK_REVIEW_SCHEMA = genai_types.Schema(
    type=genai_types.Type.ARRAY,
    items=genai_types.Schema(
        type=genai_types.Type.OBJECT,
        properties={
            "id": genai_types.Schema(type=genai_types.Type.STRING),
            "question": genai_types.Schema(type=genai_types.Type.STRING),
            "options": genai_types.Schema(type=genai_types.Type.ARRAY, items=OPTION_SCHEMA),
            "correctAnswer": genai_types.Schema(type=genai_types.Type.STRING),
            "topic": genai_types.Schema(type=genai_types.Type.STRING),
        },
        required=["id", "question", "options", "correctAnswer", "topic"],
    ),
)


class GeminiContentClient:
    """Wrapper for Gemini API with retries and learner-facing errors."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = GEMINI_MODEL,
        sleep_seconds: float = DEFAULT_API_SLEEP,
        max_retries: int = 3,
    ):
        self.api_key = api_key or get_api_key()
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY not set. Check your .env file.")

        self.client = genai.Client(api_key=self.api_key)
        self.model_name = model
        self.sleep_seconds = sleep_seconds
        self.max_retries = max_retries

    def _generate(
        self,
        prompt: dict[str, Any],
        user_prompt: str,
        error_message: str,
        response_mime_type: Optional[str] = None,
        response_schema: Optional[genai_types.Schema] = None,
    ) -> str:
        """
        Run one generation request with retries.

        Raises:
            GenerationError: If every attempt fails or the response is empty
        """
        config = genai_types.GenerateContentConfig(
            system_instruction=prompt["system"],
            **generation_settings(prompt),
            response_mime_type=response_mime_type,
            response_schema=response_schema,
        )

        for attempt in range(self.max_retries):
            try:
                response = self.client.models.generate_content(
                    model=self.model_name,
                    contents=user_prompt,
                    config=config,
                )

                if response.text is None:
                    if response.candidates and len(response.candidates) > 0:
                        candidate = response.candidates[0]
                        if candidate.content and candidate.content.parts:
                            return candidate.content.parts[0].text or ""
                    raise ValueError("Empty response from API")

                return response.text

            except genai_errors.ClientError as e:
                # 4xx: retrying will not help
                logger.error(f"API request rejected ({e.code}): {e}")
                raise GenerationError.from_status(e.code, error_message) from e
            except (genai_errors.APIError, httpx.HTTPError, ValueError) as e:
                # 5xx, transport failures and empty responses are retried
                logger.warning(f"API call failed (attempt {attempt + 1}/{self.max_retries}): {e}")
                if attempt < self.max_retries - 1:
                    time.sleep(self.sleep_seconds * (attempt + 1))
                else:
                    status_code = getattr(e, "code", None)
                    raise GenerationError.from_status(status_code, error_message) from e

        raise GenerationError(error_message)

    def generate_lesson(self, chapter_title: str, lesson_title: str) -> str:
        """Request the five-section lesson text for one lesson."""
        prompt = load_prompt("lesson_content")
        user_prompt = format_prompt(
            prompt["user_template"],
            lesson_title=lesson_title,
            chapter_title=chapter_title,
            practice_count=DEFAULT_PRACTICE_COUNT,
            quiz_count=QUIZ_LENGTH,
        )
        logger.info(f"Generating lesson content: {chapter_title} / {lesson_title}")
        return self._generate(prompt, user_prompt, LESSON_ERROR_MESSAGE)

    def generate_quick_review(self, question_count: int = QUICK_REVIEW_LENGTH) -> str:
        """Request a JSON array of mixed-topic multiple choice questions."""
        prompt = load_prompt("quick_review")
        user_prompt = format_prompt(prompt["user_template"], question_count=question_count)
        logger.info(f"Generating quick review ({question_count} questions)")
        return self._generate(
            prompt,
            user_prompt,
            QUICK_REVIEW_ERROR_MESSAGE,
            response_mime_type="application/json",
            response_schema=QUICK_REVIEW_SCHEMA,
        )

    def generate_quiz_feedback(self, items: list[dict[str, str]], score: int) -> str:
        """
        Request study advice for a graded quiz.

        Args:
            items: One dict per question with keys question, options,
                user_answer, correct_answer and verdict
            score: Number of correct answers

        Returns:
            Feedback text (may be empty if the model returned nothing)
        """
        prompt = load_prompt("quiz_feedback")
        answers_block = "\n".join(
            format_prompt(prompt["item_template"], number=i + 1, **item)
            for i, item in enumerate(items)
        )
        user_prompt = format_prompt(
            prompt["user_template"],
            total=len(items),
            score=score,
            answers_block=answers_block,
        )
        logger.info(f"Generating quiz feedback for score {score}/{len(items)}")
        return self._generate(prompt, user_prompt, FEEDBACK_ERROR_MESSAGE).strip()
