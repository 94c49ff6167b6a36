"""
Async database access helpers (raw SQL) using asyncpg.

This module owns the connection pool. The app opens it in its lifespan
(see `api/main.py`) and the CLI opens it around a single command.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from .settings import ConfigError, env_int, env_str

logger = logging.getLogger(__name__)

# libpq query options dropped from the DSN before it reaches asyncpg.
LIBPQ_ONLY_OPTIONS = frozenset({"sslmode", "channel_binding"})

_pool: asyncpg.Pool | None = None


def database_url(raw: str | None = None) -> str:
    """
    DSN for asyncpg: DATABASE_URL (or `raw`) without libpq-only query options.
    """
    url = env_str("DATABASE_URL") if raw is None else raw.strip()
    if not url:
        raise ConfigError("DATABASE_URL is not set.")

    parts = urlsplit(url)
    options = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key not in LIBPQ_ONLY_OPTIONS
    ]
    return urlunsplit(parts._replace(query=urlencode(options)))


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return None

    min_size = max(1, env_int("DB_POOL_MIN_SIZE", 1))
    max_size = max(min_size, env_int("DB_POOL_MAX_SIZE", 5))
    _pool = await asyncpg.create_pool(
        dsn=database_url(),
        min_size=min_size,
        max_size=max_size,
        command_timeout=30,
    )
    logger.info("db_pool_opened min_size=%s max_size=%s", min_size, max_size)


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None
    logger.info("db_pool_closed")


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
    return _pool


async def fetch_one(sql: str, *args: Any) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    row = await pool().fetchrow(sql, *args)
    return dict(row) if row is not None else None


async def fetch_all(sql: str, *args: Any) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    rows = await pool().fetch(sql, *args)
    return [dict(r) for r in rows]


async def execute(sql: str, *args: Any) -> str:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL) and return the command status.
    """
    return await pool().execute(sql, *args)
