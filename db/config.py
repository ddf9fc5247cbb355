"""
db/config.py

Database connection settings resolved from the process environment and
the optional project `.env` / `.env.local` files.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILES = (".env", ".env.local")
CLOUD_ENVIRONMENTS = frozenset({"prod", "production", "staging", "cloud"})

_env_loaded = False


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if line.startswith("export "):
        line = line[len("export ") :].lstrip()
    if not line or line.startswith("#") or "=" not in line:
        return None

    key, value = (part.strip() for part in line.split("=", 1))
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        value = value[1:-1]
    return (key, value) if key else None


def load_env_files(root: Path = PROJECT_ROOT) -> None:
    """
    Load KEY=VALUE pairs from the project env files once per process.

    Variables already present in the process environment win.
    """

    global _env_loaded
    if _env_loaded:
        return
    _env_loaded = True

    for filename in ENV_FILES:
        env_path = root / filename
        if not env_path.is_file():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(raw_line)
            if parsed is not None:
                os.environ.setdefault(*parsed)


def _env_int(name: str, default: int) -> int:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def normalize_postgres_url(url: str) -> str:
    """
    Rewrite postgres URLs to the psycopg (v3) driver form.
    """

    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix) :]
    return url


def resolve_database_url() -> str:
    """
    Pick the first configured URL.

    Order: DATABASE_URL, then CLOUD_DATABASE_URL when ENVIRONMENT is
    cloud-like, then LOCAL_DATABASE_URL.
    """

    load_env_files()

    environment = os.getenv("ENVIRONMENT", "local").strip().lower()
    candidates = ["DATABASE_URL"]
    if environment in CLOUD_ENVIRONMENTS:
        candidates.append("CLOUD_DATABASE_URL")
    candidates.append("LOCAL_DATABASE_URL")

    for name in candidates:
        value = (os.getenv(name) or "").strip()
        if value:
            return normalize_postgres_url(value)

    raise RuntimeError(
        "No database URL configured. Set DATABASE_URL, or configure "
        "LOCAL_DATABASE_URL / CLOUD_DATABASE_URL."
    )


@dataclass(frozen=True)
class DatabaseSettings:
    url: str
    echo: bool = False
    pool_size: int = 9
    max_overflow: int = 10
    pool_recycle_seconds: int = 1800


def get_database_settings() -> DatabaseSettings:
    """
    Engine settings; the default pool leaves one connection per
    processing worker on top of the API's own share.
    """

    url = resolve_database_url()
    worker_count = max(1, _env_int("PROCESSING_MAX_WORKERS", 4))
    return DatabaseSettings(
        url=url,
        echo=_env_bool("SQL_ECHO", False),
        pool_size=max(1, _env_int("DB_POOL_SIZE", 5 + worker_count)),
        max_overflow=max(0, _env_int("DB_MAX_OVERFLOW", 10)),
        pool_recycle_seconds=_env_int("DB_POOL_RECYCLE", 1800),
    )
