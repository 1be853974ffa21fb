from __future__ import annotations

import hashlib
import logging
import os
import re
import sqlite3
import threading
import time
from typing import Callable

from resume_forge.core.config import settings
from resume_forge.schemas.generation import GeneratedBundle

logger = logging.getLogger(__name__)

CACHE_KEY_VERSION = "v1"


def _normalize_for_key(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip().lower()


def make_cache_key(resume_text: str, job_description: str, include_cover_letter: bool) -> str:
    """Fingerprint of the inputs; whitespace and case noise map to the same key."""
    seed = "\x1f".join(
        [
            CACHE_KEY_VERSION,
            _normalize_for_key(resume_text),
            _normalize_for_key(job_description),
            "cover" if include_cover_letter else "resume-only",
        ]
    )
    return hashlib.sha256(seed.encode("utf-8", errors="ignore")).hexdigest()


class GenerationCache:
    """SQLite store of generated bundles with TTL expiry and a size bound.

    ``get`` and ``put`` never raise: storage problems are logged and reported
    as a miss or ``False``.
    """

    def __init__(
        self,
        db_path: str,
        *,
        ttl_seconds: int = 24 * 60 * 60,
        max_entries: int = 10000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._db_path = db_path
        self._ttl_seconds = max(1, int(ttl_seconds))
        self._max_entries = max(1, int(max_entries))
        self._clock = clock
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    make_key = staticmethod(make_cache_key)

    def _get_connection(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn

        directory = os.path.dirname(self._db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        conn = sqlite3.connect(
            self._db_path,
            check_same_thread=False,
            timeout=5,
            isolation_level=None,
        )
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        conn.execute("PRAGMA busy_timeout=5000;")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS generation_cache (
                cache_key TEXT PRIMARY KEY,
                resume TEXT NOT NULL,
                cover_letter TEXT,
                created_at REAL NOT NULL,
                expires_at REAL NOT NULL
            );
            """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_generation_cache_created
            ON generation_cache (created_at);
            """
        )
        self._conn = conn
        return conn

    def get(self, key: str) -> GeneratedBundle | None:
        try:
            with self._lock:
                conn = self._get_connection()
                row = conn.execute(
                    "SELECT resume, cover_letter, expires_at FROM generation_cache WHERE cache_key = ?",
                    (key,),
                ).fetchone()
                if row is None:
                    return None
                if row[2] <= self._clock():
                    conn.execute("DELETE FROM generation_cache WHERE cache_key = ?", (key,))
                    return None
        except (sqlite3.Error, OSError) as exc:
            logger.warning("generation_cache_get_failed key=%s: %s", key[:12], exc)
            return None
        return GeneratedBundle(resume=row[0], cover_letter=row[1])

    def put(self, key: str, bundle: GeneratedBundle) -> bool:
        now = self._clock()
        try:
            with self._lock:
                conn = self._get_connection()
                conn.execute(
                    """
                    INSERT OR REPLACE INTO generation_cache (cache_key, resume, cover_letter, created_at, expires_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (key, bundle.resume, bundle.cover_letter, now, now + self._ttl_seconds),
                )
                self._evict_overflow(conn)
        except (sqlite3.Error, OSError) as exc:
            logger.warning("generation_cache_put_failed key=%s: %s", key[:12], exc)
            return False
        return True

    def _evict_overflow(self, conn: sqlite3.Connection) -> None:
        (count,) = conn.execute("SELECT COUNT(*) FROM generation_cache").fetchone()
        overflow = count - self._max_entries
        if overflow > 0:
            conn.execute(
                """
                DELETE FROM generation_cache WHERE cache_key IN (
                    SELECT cache_key FROM generation_cache ORDER BY created_at ASC LIMIT ?
                )
                """,
                (overflow,),
            )

    def delete(self, key: str) -> None:
        try:
            with self._lock:
                self._get_connection().execute("DELETE FROM generation_cache WHERE cache_key = ?", (key,))
        except (sqlite3.Error, OSError) as exc:
            logger.warning("generation_cache_delete_failed key=%s: %s", key[:12], exc)

    def purge_expired(self) -> int:
        with self._lock:
            cur = self._get_connection().execute(
                "DELETE FROM generation_cache WHERE expires_at <= ?", (self._clock(),)
            )
            return cur.rowcount or 0

    def size(self) -> int:
        with self._lock:
            (count,) = self._get_connection().execute("SELECT COUNT(*) FROM generation_cache").fetchone()
            return int(count)

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


_cache: GenerationCache | None = None
_cache_lock = threading.Lock()


def get_generation_cache() -> GenerationCache | None:
    """Process-wide cache, or ``None`` when caching is disabled."""
    global _cache
    if not settings.cache_enabled:
        return None
    with _cache_lock:
        if _cache is None:
            _cache = GenerationCache(
                settings.cache_db_path,
                ttl_seconds=settings.cache_ttl_seconds,
                max_entries=settings.cache_max_entries,
            )
        return _cache
