"""Lumina utilities."""

from .ids import new_id
from .prompt_loader import load_prompt, format_prompt

__all__ = ["new_id", "load_prompt", "format_prompt"]
