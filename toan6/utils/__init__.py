"""Toán 6 utilities."""

from .prompt_loader import format_prompt, generation_settings, load_prompt

__all__ = ["load_prompt", "format_prompt", "generation_settings"]
