"""
Runtime configuration for Lumina.

Settings come from the environment, optionally primed from a .env file.
The storage backend is decided once here: remote when Supabase
credentials are present, local SQLite otherwise.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".lumina"
DEFAULT_DB_PATH = DEFAULT_DATA_DIR / "lumina.db"
DEFAULT_MODEL = "gemini-3-pro-preview"
DEFAULT_HTTP_TIMEOUT = 10.0

BACKEND_LOCAL = "local"
BACKEND_REMOTE = "remote"


@dataclass(frozen=True)
class Settings:
    """Resolved configuration."""
    backend: str
    db_path: Path
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    log_level: str = "INFO"
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    @property
    def is_remote(self) -> bool:
        return self.backend == BACKEND_REMOTE


def load_settings(env_file: Optional[Path] = None, environ: Optional[dict] = None) -> Settings:
    """
    Load settings from the environment.

    Args:
        env_file: Optional .env file loaded into os.environ first
        environ: Mapping to read instead of os.environ (tests)

    Raises:
        ValueError: if the remote backend is forced without credentials,
            or a value cannot be parsed
    """
    if environ is None:
        if env_file is not None:
            load_dotenv(env_file)
        else:
            load_dotenv()
        environ = os.environ

    supabase_url = environ.get("SUPABASE_URL") or None
    supabase_key = environ.get("SUPABASE_ANON_KEY") or None
    configured = bool(supabase_url and supabase_key)

    backend = (environ.get("LUMINA_BACKEND") or "").strip().lower()
    if not backend:
        if configured:
            backend = BACKEND_REMOTE
        else:
            logger.warning("Supabase credentials missing. Lumina will use local storage.")
            backend = BACKEND_LOCAL
    if backend not in (BACKEND_LOCAL, BACKEND_REMOTE):
        raise ValueError(f"LUMINA_BACKEND must be 'local' or 'remote', got {backend!r}")
    if backend == BACKEND_REMOTE and not configured:
        raise ValueError("LUMINA_BACKEND=remote requires SUPABASE_URL and SUPABASE_ANON_KEY")

    try:
        timeout = float(environ.get("LUMINA_HTTP_TIMEOUT") or DEFAULT_HTTP_TIMEOUT)
    except ValueError:
        raise ValueError("LUMINA_HTTP_TIMEOUT must be a number of seconds")

    db_path = environ.get("LUMINA_DB_PATH")
    return Settings(
        backend=backend,
        db_path=Path(db_path).expanduser() if db_path else DEFAULT_DB_PATH,
        supabase_url=supabase_url.rstrip("/") if supabase_url else None,
        supabase_key=supabase_key,
        gemini_api_key=environ.get("GEMINI_API_KEY") or environ.get("API_KEY") or None,
        model=environ.get("LUMINA_MODEL") or DEFAULT_MODEL,
        log_level=(environ.get("LUMINA_LOG_LEVEL") or "INFO").upper(),
        http_timeout=timeout,
    )
