"""Provider API keys.

Backends read their key from the environment variable named by
``backend.api_key_env``. Before a run the CLI merges key files into
``os.environ``, lowest priority last:

  1. variables already exported in the shell
  2. ~/.livecoder/keys.env
  3. .env in the current directory
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

LIVECODER_HOME = Path.home() / ".livecoder"
KEYS_FILE = LIVECODER_HOME / "keys.env"


def read_env_file(path: Path) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines; comments, blanks and junk lines are skipped.

    Accepts an optional ``export`` prefix and single or double quotes
    around the value.
    """
    pairs: dict[str, str] = {}
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        name, _, value = line.partition("=")
        name = name.strip()
        if name:
            pairs[name] = value.strip().strip("'\"")
    return pairs


def load_keys_env(files: list[Path] | None = None) -> list[str]:
    """Merge key files into ``os.environ`` without overriding set values.

    Returns the names that were newly set.
    """
    loaded: list[str] = []
    for env_file in files or [KEYS_FILE, Path.cwd() / ".env"]:
        if not env_file.is_file():
            continue
        try:
            pairs = read_env_file(env_file)
        except OSError:
            logger.warning("Could not read key file %s", env_file)
            continue
        for name, value in pairs.items():
            if has_key(name):
                continue
            os.environ[name] = value
            loaded.append(name)
            logger.debug("Loaded %s from %s", name, env_file)
    return loaded


def has_key(env_var: str) -> bool:
    """Whether ``env_var`` is set to a non-blank value."""
    return bool(os.environ.get(env_var, "").strip())
