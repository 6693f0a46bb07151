"""
Course generation via the Gemini API.

Turns a topic / difficulty / audience / duration request into a validated
Course:
- Prompt built from the generate_course YAML template
- JSON extracted from the model response (plain or fenced)
- Strict draft validation, then ids and ownership assigned locally
"""

import json
import logging
import re
import time
from datetime import datetime, timezone
from typing import Optional, Protocol

from google import genai
from google.genai import types as genai_types

from lumina.config import DEFAULT_MODEL
from lumina.errors import ValidationFailure
from lumina.schemas import Course, CourseDraft, Difficulty, parse_course_draft, validate_for_publish
from lumina.utils.ids import new_id
from lumina.utils.prompt_loader import format_prompt, load_prompt

logger = logging.getLogger(__name__)

DEFAULT_API_SLEEP = 1.0
PROMPT_NAME = "generate_course"


class TextGenerator(Protocol):
    def generate(self, system_prompt: str, user_prompt: str) -> str: ...


# -----------------------------------------------------------------------------
# Gemini API Client
# -----------------------------------------------------------------------------

class GeminiClient:
    """Wrapper for Gemini API with retries on transient failures."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        temperature: float = 0.2,
        sleep_seconds: float = DEFAULT_API_SLEEP,
        max_retries: int = 3,
    ):
        if not api_key:
            raise ValueError("GEMINI_API_KEY not set. Check your .env file.")

        self.client = genai.Client(api_key=api_key)
        self.model_name = model
        self.temperature = temperature
        self.sleep_seconds = sleep_seconds
        self.max_retries = max_retries

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        """Generate a JSON response using the Gemini API."""
        for attempt in range(self.max_retries):
            try:
                response = self.client.models.generate_content(
                    model=self.model_name,
                    contents=user_prompt,
                    config=genai_types.GenerateContentConfig(
                        temperature=self.temperature,
                        system_instruction=system_prompt,
                        response_mime_type="application/json",
                    )
                )

                if response.text is None:
                    if response.candidates and len(response.candidates) > 0:
                        candidate = response.candidates[0]
                        if candidate.content and candidate.content.parts:
                            return candidate.content.parts[0].text
                    raise ValueError("Empty response from API")

                return response.text

            except Exception as e:
                logger.warning(f"API call failed (attempt {attempt + 1}/{self.max_retries}): {e}")
                if attempt < self.max_retries - 1:
                    time.sleep(self.sleep_seconds * (attempt + 1))
                else:
                    raise


# -----------------------------------------------------------------------------
# Response parsing
# -----------------------------------------------------------------------------

def extract_json_from_response(text: str) -> dict:
    """
    Extract a JSON object from an LLM response, handling markdown code blocks.

    Raises:
        ValidationFailure: if no JSON object can be found
    """
    code_block_pattern = r'```(?:json)?\s*([\s\S]*?)```'
    for match in re.findall(code_block_pattern, text):
        try:
            return json.loads(match.strip())
        except json.JSONDecodeError:
            continue

    text = text.strip()
    start = text.find('{')
    if start >= 0:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            char = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif char == '\\':
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    try:
                        return json.loads(text[start:i + 1])
                    except json.JSONDecodeError:
                        break

    raise ValidationFailure(
        [f"no JSON object in response: {text[:200]}"],
        "Generated course is invalid",
    )


# -----------------------------------------------------------------------------
# Draft -> Course
# -----------------------------------------------------------------------------

def materialize_draft(
    draft: CourseDraft,
    teacher_id: str,
    difficulty: Difficulty | str,
    target_audience: str,
    now: Optional[datetime] = None,
) -> Course:
    """
    Turn a validated draft into a Course owned by a teacher.

    Assigns fresh ids to the course and every module, lesson and quiz
    question, sets the creation time and a zero enrollment count, and runs
    publish validation on the result.
    """
    modules = []
    for module in draft.modules:
        lessons = []
        for lesson in module.lessons:
            lessons.append({
                "id": new_id("l"),
                "title": lesson.title,
                "content": lesson.content,
                "duration_minutes": lesson.duration_minutes,
                "resources": [],
                "quiz": [
                    {"id": new_id("q"), **question.model_dump()}
                    for question in lesson.quiz
                ],
            })
        modules.append({
            "id": new_id("m"),
            "title": module.title,
            "description": module.description,
            "lessons": lessons,
        })

    course = Course.model_validate({
        "id": new_id("c"),
        "teacher_id": teacher_id,
        "title": draft.title,
        "description": draft.description,
        "difficulty": difficulty,
        "target_audience": target_audience,
        "estimated_duration": draft.estimated_duration,
        "modules": modules,
        "enrolled_count": 0,
        "tags": draft.tags,
        "created_at": now or datetime.now(timezone.utc),
    })
    return validate_for_publish(course)


class CourseGenerator:
    """Generate course drafts from a topic using an LLM."""

    def __init__(self, client: TextGenerator, prompt: Optional[dict] = None):
        """
        Args:
            client: Anything with generate(system_prompt, user_prompt) -> str
            prompt: Parsed prompt template (default: generate_course.yaml)
        """
        self.client = client
        self.prompt = prompt or load_prompt(PROMPT_NAME)

    def generate_draft(self, topic: str, difficulty: str, audience: str, duration: str) -> CourseDraft:
        """
        Ask the model for a course and validate the answer.

        Raises:
            ValidationFailure: if the response is not a valid course draft
        """
        user_prompt = format_prompt(
            self.prompt["user_template"],
            topic=topic,
            difficulty=difficulty,
            audience=audience,
            duration=duration,
        )
        logger.info("Generating course on %r (%s, %s)", topic, difficulty, audience)
        text = self.client.generate(self.prompt["system"], user_prompt)
        draft = parse_course_draft(extract_json_from_response(text))
        logger.info(
            "Generated draft %r: %d modules, %d lessons",
            draft.title,
            len(draft.modules),
            sum(len(m.lessons) for m in draft.modules),
        )
        return draft
