"""
Configuration constants for Toán 6.

Values that the application and scripts share:
- Gemini model and API key lookup
- Storage keys for the local key-value store
- Quiz and progress thresholds
"""

import os
from pathlib import Path
from typing import Optional


APP_NAME = "Toán 6 - Kết nối tri thức"

# -----------------------------------------------------------------------------
# Gemini
# -----------------------------------------------------------------------------

GEMINI_MODEL = "gemini-2.5-flash"
API_KEY_ENV_VARS = ("GEMINI_API_KEY", "API_KEY")

# -----------------------------------------------------------------------------
# Storage
# -----------------------------------------------------------------------------

STORAGE_KEY_PROGRESS = "math6_kntt_user_progress"
STORAGE_KEY_CURRICULUM = "math6_kntt_curriculum_outline"
LESSON_CONTENT_KEY_PREFIX = "lesson_content_"
QUIZ_ANSWERS_KEY_PREFIX = "quiz_answers_"

DEFAULT_DATA_DIR = Path(os.environ.get("TOAN6_DATA_DIR", Path.home() / ".toan6"))
DEFAULT_STORE_DB = DEFAULT_DATA_DIR / "progress.db"

# -----------------------------------------------------------------------------
# Quiz and progress
# -----------------------------------------------------------------------------

QUIZ_PASS_SCORE = 7   # correct answers needed on a QUIZ_LENGTH-question quiz
QUIZ_LENGTH = 10
QUICK_REVIEW_LENGTH = 5

LESSON_STARTED_PROGRESS = 25
LESSON_COMPLETED_PROGRESS = 100

# Progress reached by viewing each lesson tab
TAB_PROGRESS = {
    "theory": LESSON_STARTED_PROGRESS,
    "examples": 25,
    "practice": 50,
    "quiz": 75,
}


def get_api_key() -> Optional[str]:
    """Return the first Gemini API key found in the environment."""
    for name in API_KEY_ENV_VARS:
        value = os.environ.get(name)
        if value:
            return value
    return None
