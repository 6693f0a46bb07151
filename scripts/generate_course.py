#!/usr/bin/env python3
"""
generate_course.py - Generate a course with Gemini and save it.

Builds a full course (modules, lessons, quizzes) from a topic, validates
it, and stores it in the configured repository (local SQLite or remote).

Usage:
  python scripts/generate_course.py --teacher-id teacher-1 --topic "Black holes"
  python scripts/generate_course.py --teacher-id teacher-1 --topic "SQL" \\
      --difficulty Intermediate --audience "Data analysts" --duration "3 Weeks"
  python scripts/generate_course.py --teacher-id teacher-1 --topic "Poetry" --dry-run
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Project root for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from lumina.config import load_settings
from lumina.errors import LuminaError, ValidationFailure
from lumina.repository import create_repository
from lumina.schemas import Difficulty
from lumina.services import AuthoringService, CourseGenerator, GeminiClient

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate a course with Gemini")
    parser.add_argument("--teacher-id", required=True, help="Owning teacher's user ID")
    parser.add_argument("--topic", required=True, help="Course topic")
    parser.add_argument(
        "--difficulty",
        default=Difficulty.BEGINNER.value,
        choices=[d.value for d in Difficulty],
    )
    parser.add_argument("--audience", default="General learners", help="Target audience")
    parser.add_argument("--duration", default="4 Weeks", help="Desired course duration")
    parser.add_argument("--env-file", type=Path, default=PROJECT_ROOT / ".env")
    parser.add_argument("--dry-run", action="store_true", help="Print the course instead of saving it")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    try:
        settings = load_settings(args.env_file if args.env_file.exists() else None)
        generator = CourseGenerator(GeminiClient(settings.gemini_api_key, model=settings.model))
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        return 1
    logging.getLogger().setLevel(settings.log_level)

    repository = create_repository(settings)
    service = AuthoringService(repository, generator)
    try:
        if args.dry_run:
            course = await service.draft_course(
                args.teacher_id, args.topic, args.difficulty, args.audience, args.duration
            )
            print(json.dumps(course.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False))
        else:
            course = await service.generate_course(
                args.teacher_id, args.topic, args.difficulty, args.audience, args.duration
            )
            logger.info("Saved course %s: %s", course.id, course.title)
    except ValidationFailure as e:
        logger.error("Generated course rejected:")
        for error in e.errors:
            logger.error("  - %s", error)
        return 1
    except LuminaError as e:
        logger.error("%s", e.message)
        return 1
    finally:
        await repository.close()
    return 0


def main(argv=None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s"
    )
    return asyncio.run(run(parse_args(argv)))


if __name__ == "__main__":
    sys.exit(main())
