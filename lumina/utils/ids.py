"""Identifier helpers."""

from uuid import uuid4


def new_id(prefix: str) -> str:
    """Random identifier with a readable prefix, e.g. ``m-3f9c2a1b7d40``."""
    return f"{prefix}-{uuid4().hex[:12]}"
