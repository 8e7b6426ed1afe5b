"""Prompt templates.

Markdown templates live beside this module and are rendered with Jinja2.
``system.md`` is the fixed instruction block the orchestrator puts in
front of every user request; its optional ``stack`` variable adds a
preferred-technology line.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

_PROMPTS_DIR = Path(__file__).parent


@lru_cache(maxsize=1)
def _environment() -> Environment:
    # Undefined variables render empty, so unset {% if %} blocks drop out
    return Environment(
        loader=FileSystemLoader(_PROMPTS_DIR),
        keep_trailing_newline=True,
        autoescape=False,
    )


def render_prompt(template_name: str, **variables: object) -> str:
    """Render ``<template_name>.md`` with ``variables``.

    Raises:
        FileNotFoundError: If no such template ships with the package.
    """
    try:
        template = _environment().get_template(f"{template_name}.md")
    except TemplateNotFound:
        raise FileNotFoundError(
            f"Prompt template not found: {_PROMPTS_DIR / template_name}.md"
        ) from None
    return template.render(**variables)
