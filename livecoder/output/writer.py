"""Project file sink.

Writes each committed artifact beneath a project directory, preserving
the inferred subdirectory structure (``models/``, ``services/`` ...).
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def sanitise_filepath(raw: str) -> str:
    """Normalise an inferred path into a safe relative path.

    Strips leading ``./``, ``/``, and any path components that try to
    escape the project directory (``..``).  Keeps subdirectories so that
    ``services/userservice.py`` stays nested.
    """
    p = Path(raw.replace("\\", "/"))
    parts = [part for part in p.parts if part not in (".", "..", "/", "\\")]
    if not parts:
        return p.name or "output"
    return str(Path(*parts))


class ProjectWriter:
    """Writes artifact files under ``root``.

    Later writes to the same path overwrite earlier ones; paths are not
    deduplicated across runs.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).expanduser()
        self._written: list[Path] = []

    @property
    def root(self) -> Path:
        return self._root

    @property
    def written(self) -> list[Path]:
        """Every file written by this writer, in order."""
        return list(self._written)

    def write_file(self, file_path: str, code: str, language: str) -> Path:
        """Write ``code`` to ``root/file_path`` and return the full path."""
        target = self._root / sanitise_filepath(file_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        content = code if code.endswith("\n") else code + "\n"
        target.write_text(content, encoding="utf-8")
        self._written.append(target)
        logger.debug("Wrote %s (%s, %d chars)", target, language, len(code))
        return target
