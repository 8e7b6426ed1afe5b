"""Transcript persistence.

Stores the capped chat transcript in SQLite so it survives restarts.
"""

from livecoder.persistence.database import close_db, init_db
from livecoder.persistence.transcript import TranscriptStore

__all__ = ["TranscriptStore", "close_db", "init_db"]
