"""
Prompt templates for the Toán 6 content requests.

Each request (lesson, quick review, quiz feedback) has a YAML file in
toan6/prompts/ with a system instruction, a user template and generation
settings under ``meta``. Templates are checked for the keys the client
fills in when they are loaded, so a broken file fails before any API call.
"""

from pathlib import Path
from typing import Any

import yaml


PROMPTS_DIR = Path(__file__).parent.parent / "prompts"

BASE_KEYS = ("system", "user_template")

# Extra keys some requests need beyond BASE_KEYS
EXTRA_KEYS = {
    "quiz_feedback": ("item_template",),
}

GENERATION_SETTINGS = ("temperature", "max_output_tokens")


def load_prompt(name: str, prompts_dir: Path | None = None) -> dict[str, Any]:
    """
    Load and check a prompt template.

    Args:
        name: Request name, the file stem under the prompts directory
            (e.g., "lesson_content")
        prompts_dir: Directory to read from instead of the packaged one

    Returns:
        Template mapping with at least ``system`` and ``user_template``
        (plus ``item_template`` for quiz feedback)

    Raises:
        FileNotFoundError: If the template file doesn't exist
        ValueError: If the file is not a mapping or lacks a required key
    """
    file_path = (prompts_dir or PROMPTS_DIR) / f"{name}.yaml"
    if not file_path.exists():
        raise FileNotFoundError(f"Prompt template not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        prompt = yaml.safe_load(f)

    if not isinstance(prompt, dict):
        raise ValueError(f"Prompt template {name} is not a mapping")

    missing = [key for key in BASE_KEYS + EXTRA_KEYS.get(name, ()) if not prompt.get(key)]
    if missing:
        raise ValueError(f"Prompt template {name} is missing: {', '.join(missing)}")

    return prompt


def generation_settings(prompt: dict[str, Any]) -> dict[str, Any]:
    """Temperature and token limit from a template's meta block (absent values are left out)."""
    meta = prompt.get("meta") or {}
    return {key: meta[key] for key in GENERATION_SETTINGS if meta.get(key) is not None}


def format_prompt(template: str, **kwargs) -> str:
    """
    Fill a template's {placeholders}.

    Raises:
        ValueError: If the template names a placeholder not in kwargs
    """
    try:
        return template.format(**kwargs)
    except KeyError as e:
        raise ValueError(f"Prompt placeholder has no value: {e}") from e
