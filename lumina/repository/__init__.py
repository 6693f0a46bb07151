"""
Lumina Repository - Storage backends behind one contract.

This module provides:
- CourseRepository: the async CRUD contract
- LocalCourseRepository: SQLite file storage
- RemoteCourseRepository: PostgREST (Supabase) storage
- create_repository: pick the backend once at startup
"""

import logging

from lumina.config import Settings

from .base import CourseRepository
from .local import LocalCourseRepository
from .remote import RemoteCourseRepository

logger = logging.getLogger(__name__)


def create_repository(settings: Settings, seed: bool = True) -> CourseRepository:
    """
    Build the repository selected by configuration.

    Args:
        settings: Resolved settings
        seed: Seed a new local database with the demo catalog
    """
    if settings.is_remote:
        logger.info("Using remote storage at %s", settings.supabase_url)
        return RemoteCourseRepository(
            settings.supabase_url,
            settings.supabase_key,
            timeout=settings.http_timeout,
        )
    logger.info("Using local storage at %s", settings.db_path)
    return LocalCourseRepository(settings.db_path, seed=seed)


__all__ = [
    "CourseRepository",
    "LocalCourseRepository",
    "RemoteCourseRepository",
    "create_repository",
]
