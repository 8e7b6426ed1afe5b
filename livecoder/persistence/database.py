"""SQLite connection management for the transcript store.

One table holds the transcript: a row per message, ordered by position,
with the message serialized as JSON. ``PRAGMA user_version`` records the
layout so a future change can migrate old files.
"""

from __future__ import annotations

import logging
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

_MEMORY = ":memory:"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS messages (
    position     INTEGER PRIMARY KEY,
    message_id   TEXT NOT NULL,
    message_json TEXT NOT NULL
);
"""


def _resolve(db_path: str | Path) -> str:
    """Expand ``~`` and create the parent directory for on-disk databases."""
    if str(db_path) == _MEMORY:
        return _MEMORY
    path = Path(db_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return str(path)


async def init_db(db_path: str | Path) -> aiosqlite.Connection:
    """Open the transcript database, creating the schema on first use.

    File databases run in WAL mode; ``":memory:"`` is accepted for tests.
    """
    target = _resolve(db_path)
    db = await aiosqlite.connect(target)
    if target != _MEMORY:
        await db.execute("PRAGMA journal_mode=WAL")

    await db.executescript(_SCHEMA)
    await db.execute(f"PRAGMA user_version={SCHEMA_VERSION}")
    await db.commit()
    logger.debug("Transcript database ready at %s (schema v%d)", target, SCHEMA_VERSION)
    return db


async def close_db(db: aiosqlite.Connection) -> None:
    await db.close()
