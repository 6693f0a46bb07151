"""
Prompt templates for Lumina's generative calls.

Templates are YAML files packaged under lumina/prompts/, each with a
``system`` prompt and a ``user_template`` using str.format placeholders.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any
import yaml


PROMPTS_DIR = Path(__file__).parent.parent / "prompts"
REQUIRED_KEYS = ("system", "user_template")


@lru_cache(maxsize=None)
def _read_prompt(file_path: Path) -> dict[str, Any]:
    with open(file_path, "r", encoding="utf-8") as f:
        prompt = yaml.safe_load(f)

    if not isinstance(prompt, dict):
        raise ValueError(f"Prompt template is not a mapping: {file_path}")
    missing = [key for key in REQUIRED_KEYS if not prompt.get(key)]
    if missing:
        raise ValueError(f"Prompt template {file_path.name} lacks: {', '.join(missing)}")
    return prompt


def load_prompt(name: str, prompts_dir: Path | None = None) -> dict[str, Any]:
    """
    Load a prompt template by name.

    Args:
        name: Template name without .yaml extension (e.g., "generate_course")
        prompts_dir: Directory to read from instead of the packaged prompts

    Returns:
        Parsed template: system, user_template, and optional meta/validation

    Raises:
        FileNotFoundError: if the template does not exist
        ValueError: if it lacks a system prompt or user template
    """
    file_path = (prompts_dir or PROMPTS_DIR) / f"{name}.yaml"
    if not file_path.exists():
        raise FileNotFoundError(f"Prompt template not found: {file_path}")
    return dict(_read_prompt(file_path.resolve()))


def format_prompt(template: str, **kwargs) -> str:
    """Fill a user template; a placeholder without a value is a ValueError."""
    try:
        return template.format(**kwargs)
    except KeyError as e:
        raise ValueError(f"No value for prompt placeholder {e}") from e
