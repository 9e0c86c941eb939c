"""Database configuration — connection parameters from the environment.

``DATABASE_URL`` wins when set (typical for the managed Postgres the app
runs against).  Otherwise the URL is assembled from ``PG_HOST``,
``PG_PORT``, ``PG_USER``, ``PG_PASSWORD`` and ``PG_DATABASE``.

Alembic needs the plain libpq URL; the application engine needs the
asyncpg one.
"""

import os

_ASYNC_PREFIX = "postgresql+asyncpg://"
_SYNC_PREFIX = "postgresql://"


def _url_from_parts() -> str:
    host = os.getenv("PG_HOST", "localhost")
    port = os.getenv("PG_PORT", "5432")
    user = os.getenv("PG_USER", "nutriforms")
    password = os.getenv("PG_PASSWORD", "nutriforms")
    database = os.getenv("PG_DATABASE", "nutriforms")
    return f"{_SYNC_PREFIX}{user}:{password}@{host}:{port}/{database}"


def get_sync_url() -> str:
    """URL for Alembic migrations (psycopg2 driver)."""
    url = os.getenv("DATABASE_URL") or _url_from_parts()
    return url.replace(_ASYNC_PREFIX, _SYNC_PREFIX, 1)


def get_async_url() -> str:
    """URL for the runtime engine (asyncpg driver)."""
    url = os.getenv("DATABASE_URL") or _url_from_parts()
    if url.startswith(_SYNC_PREFIX):
        return url.replace(_SYNC_PREFIX, _ASYNC_PREFIX, 1)
    return url


def echo_sql() -> bool:
    """Whether to log emitted SQL (``DB_ECHO=1``)."""
    return os.getenv("DB_ECHO", "0").lower() in ("1", "true", "yes")
