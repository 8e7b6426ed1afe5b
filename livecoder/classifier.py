"""Heuristic content classification for generated responses.

Parses a free-form response into CodeArtifacts: one per fenced block, in
document order. Each block gets a language profile, a complexity level,
a set of design-pattern names, and a plausible relative file path.

Everything here is pattern based and allowed to be wrong. No function in
this module raises on any input: unknown languages fall back to
``txt``/``other`` and unmatched blocks get a numbered fallback path.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from livecoder.schemas.artifacts import (
    Category,
    CodeArtifact,
    Complexity,
    LanguageProfile,
)

logger = logging.getLogger(__name__)

# Opening fence with optional language tag, body up to the next closing fence
_FENCE_RE = re.compile(
    r"```([\w+#.-]*)[^\n]*\n"   # opening fence, tag, rest of the line
    r"(.*?)"                     # body (non-greedy)
    r"```",                      # closing fence
    re.DOTALL,
)

# ── Language profiles ─────────────────────────────────────────────

_LANGUAGE_PROFILES: dict[str, LanguageProfile] = {
    # frontend
    "javascript": LanguageProfile(extension="js", category=Category.FRONTEND),
    "js": LanguageProfile(extension="js", category=Category.FRONTEND),
    "jsx": LanguageProfile(extension="jsx", category=Category.FRONTEND),
    "typescript": LanguageProfile(extension="ts", category=Category.FRONTEND),
    "ts": LanguageProfile(extension="ts", category=Category.FRONTEND),
    "tsx": LanguageProfile(extension="tsx", category=Category.FRONTEND),
    "html": LanguageProfile(extension="html", category=Category.FRONTEND),
    "vue": LanguageProfile(extension="vue", category=Category.FRONTEND),
    "svelte": LanguageProfile(extension="svelte", category=Category.FRONTEND),
    # backend
    "python": LanguageProfile(extension="py", category=Category.BACKEND),
    "py": LanguageProfile(extension="py", category=Category.BACKEND),
    "java": LanguageProfile(extension="java", category=Category.BACKEND),
    "kotlin": LanguageProfile(extension="kt", category=Category.BACKEND),
    "go": LanguageProfile(extension="go", category=Category.BACKEND),
    "rust": LanguageProfile(extension="rs", category=Category.BACKEND),
    "ruby": LanguageProfile(extension="rb", category=Category.BACKEND),
    "php": LanguageProfile(extension="php", category=Category.BACKEND),
    "csharp": LanguageProfile(extension="cs", category=Category.BACKEND),
    "c#": LanguageProfile(extension="cs", category=Category.BACKEND),
    "cpp": LanguageProfile(extension="cpp", category=Category.BACKEND),
    "c": LanguageProfile(extension="c", category=Category.BACKEND),
    "swift": LanguageProfile(extension="swift", category=Category.BACKEND),
    "graphql": LanguageProfile(extension="graphql", category=Category.BACKEND),
    # styling
    "css": LanguageProfile(extension="css", category=Category.STYLING),
    "scss": LanguageProfile(extension="scss", category=Category.STYLING),
    "sass": LanguageProfile(extension="sass", category=Category.STYLING),
    "less": LanguageProfile(extension="less", category=Category.STYLING),
    # config
    "json": LanguageProfile(extension="json", category=Category.CONFIG),
    "yaml": LanguageProfile(extension="yml", category=Category.CONFIG),
    "yml": LanguageProfile(extension="yml", category=Category.CONFIG),
    "toml": LanguageProfile(extension="toml", category=Category.CONFIG),
    "ini": LanguageProfile(extension="ini", category=Category.CONFIG),
    "env": LanguageProfile(extension="env", category=Category.CONFIG),
    "xml": LanguageProfile(extension="xml", category=Category.CONFIG),
    # database
    "sql": LanguageProfile(extension="sql", category=Category.DATABASE),
    "prisma": LanguageProfile(extension="prisma", category=Category.DATABASE),
    # docs
    "markdown": LanguageProfile(extension="md", category=Category.DOCS),
    "md": LanguageProfile(extension="md", category=Category.DOCS),
    # devops
    "dockerfile": LanguageProfile(extension="dockerfile", category=Category.DEVOPS),
    "docker": LanguageProfile(extension="dockerfile", category=Category.DEVOPS),
    "bash": LanguageProfile(extension="sh", category=Category.DEVOPS),
    "sh": LanguageProfile(extension="sh", category=Category.DEVOPS),
    "shell": LanguageProfile(extension="sh", category=Category.DEVOPS),
    "powershell": LanguageProfile(extension="ps1", category=Category.DEVOPS),
    "terraform": LanguageProfile(extension="tf", category=Category.DEVOPS),
    "hcl": LanguageProfile(extension="tf", category=Category.DEVOPS),
    # testing
    "gherkin": LanguageProfile(extension="feature", category=Category.TESTING),
    "feature": LanguageProfile(extension="feature", category=Category.TESTING),
}

_DEFAULT_PROFILE = LanguageProfile(extension="txt", category=Category.OTHER)

# Fallback directory per category
_CATEGORY_DIRS: dict[Category, str] = {
    Category.FRONTEND: "src",
    Category.BACKEND: "server",
    Category.STYLING: "styles",
    Category.CONFIG: "config",
    Category.DATABASE: "database",
    Category.DOCS: "docs",
    Category.DEVOPS: "deploy",
    Category.TESTING: "tests",
    Category.OTHER: "misc",
}


def language_profile(tag: str) -> LanguageProfile:
    """Map a fence language tag to its extension and category.

    Unknown or empty tags map to ``txt`` / ``other``.
    """
    return _LANGUAGE_PROFILES.get((tag or "").strip().lower(), _DEFAULT_PROFILE)


# ── Complexity ────────────────────────────────────────────────────

_ASYNC_RE = re.compile(r"\basync\b|\bawait\b|\.then\(|\bPromise\b")
# Brace-bodied class declarations (JS/TS/Java/C#-style)
_CLASS_RE = re.compile(r"\bclass\s+[A-Za-z_]\w*[^{;:\n]*\{")
_INTERFACE_RE = re.compile(r"\binterface\s+[A-Za-z_]\w*")
_GENERIC_RE = re.compile(r"\w<[\w\s,.\[\]?|]+(?:<[\w\s,.\[\]?|]+>)?[\w\s,.\[\]?|]*>")
# CSS at-rules are not decorators
_DECORATOR_RE = re.compile(
    r"^\s*@(?!media\b|import\b|keyframes\b|font-face\b|tailwind\b|apply\b"
    r"|layer\b|supports\b|charset\b|use\b|mixin\b|include\b)[A-Za-z_][\w.]*",
    re.MULTILINE,
)
_NAMED_PATTERN_RE = re.compile(r"(?:Factory|Strategy|Observer|Singleton|Repository)")


# Structural markers and the least level each one implies
_MARKERS: tuple[tuple[re.Pattern[str], Complexity], ...] = (
    (_DECORATOR_RE, Complexity.ENTERPRISE),
    (_NAMED_PATTERN_RE, Complexity.ENTERPRISE),
    (_GENERIC_RE, Complexity.ADVANCED),
    (_INTERFACE_RE, Complexity.ADVANCED),
    (_ASYNC_RE, Complexity.INTERMEDIATE),
    (_CLASS_RE, Complexity.INTERMEDIATE),
)


def _level_for_lines(lines: int) -> Complexity:
    if lines > 200:
        return Complexity.ENTERPRISE
    if lines > 100:
        return Complexity.ADVANCED
    if lines > 50:
        return Complexity.INTERMEDIATE
    return Complexity.BASIC


def infer_complexity(code: str) -> Complexity:
    """Classify a block's complexity: the highest level any signal implies."""
    levels = [_level_for_lines(len(code.split("\n")))]
    levels.extend(level for pattern, level in _MARKERS if pattern.search(code))
    return max(levels, key=lambda level: level.rank)


# ── Design patterns ───────────────────────────────────────────────

# Ordered catalog: detect_patterns() reports matches in this order
PATTERN_CATALOG: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("Factory", re.compile(r"factory", re.IGNORECASE)),
    ("Strategy", re.compile(r"strategy", re.IGNORECASE)),
    (
        "Observer",
        re.compile(
            r"observer|subscribe|addeventlistener|eventemitter|\.on\(|\.emit\(",
            re.IGNORECASE,
        ),
    ),
    ("Singleton", re.compile(r"singleton|getinstance|\b_instance\b", re.IGNORECASE)),
    ("Repository", re.compile(r"repository", re.IGNORECASE)),
    (
        "Decorator",
        re.compile(r"decorator|^\s*@[a-z_][\w.]*(?:\(|$)", re.IGNORECASE | re.MULTILINE),
    ),
    ("Adapter", re.compile(r"adapter", re.IGNORECASE)),
    ("Builder", re.compile(r"builder|\.build\(\)", re.IGNORECASE)),
    ("Command", re.compile(r"command", re.IGNORECASE)),
    ("Facade", re.compile(r"facade", re.IGNORECASE)),
)


def detect_patterns(code: str) -> list[str]:
    """Return every catalog pattern whose keywords appear in ``code``."""
    return [name for name, pattern in PATTERN_CATALOG if pattern.search(code)]


# ── File path inference ───────────────────────────────────────────

_TEST_RE = re.compile(
    r"\b(?:describe|it|test)\s*\(|\bdef\s+test_\w*|\bimport\s+pytest\b"
    r"|\bunittest\b|@Test\b|\bexpect\("
)
_CONFIG_RE = re.compile(r"\b(?:config|Config|CONFIG|settings|Settings)\b")
_MODEL_RE = re.compile(r"\b(?:class|interface|type|struct)\s+([A-Za-z_]\w*Model)\b")
_SERVICE_RE = re.compile(
    r"\b(?:class|interface|function|const|let|var|def)\s+([A-Za-z_]\w*Service)\b"
)
_COMPONENT_RE = re.compile(
    r"\b(?:function|const|let|var|class)\s+([A-Za-z_]\w*Component)\b"
)
_ANY_CLASS_RE = re.compile(r"\bclass\s+([A-Za-z_]\w*)")
_TOP_LEVEL_DECL_RE = re.compile(
    r"^(?:export\s+(?:default\s+)?)?(?:async\s+)?"
    r"(?:function\*?|const|let|var|def|fn|func)\s+([A-Za-z_]\w*)",
    re.MULTILINE,
)


@dataclass(frozen=True)
class PathRule:
    """A file-path heuristic: first rule whose pattern matches wins."""

    name: str
    pattern: re.Pattern[str]
    build: Callable[[re.Match[str], str, int], str]


# Builders receive (match, extension, index)
PATH_RULES: tuple[PathRule, ...] = (
    PathRule("test", _TEST_RE, lambda m, ext, i: f"tests/test_{i + 1}.{ext}"),
    PathRule("config", _CONFIG_RE, lambda m, ext, i: f"config/config.{ext}"),
    PathRule("model", _MODEL_RE, lambda m, ext, i: f"models/{m.group(1).lower()}.{ext}"),
    PathRule(
        "service", _SERVICE_RE, lambda m, ext, i: f"services/{m.group(1).lower()}.{ext}"
    ),
    PathRule(
        "component", _COMPONENT_RE, lambda m, ext, i: f"components/{m.group(1)}.{ext}"
    ),
    PathRule("class", _ANY_CLASS_RE, lambda m, ext, i: f"{m.group(1).lower()}.{ext}"),
    PathRule(
        "declaration", _TOP_LEVEL_DECL_RE, lambda m, ext, i: f"{m.group(1).lower()}.{ext}"
    ),
)


def infer_file_path(code: str, tag: str, extension: str, index: int) -> str:
    """Derive a relative file path for a block.

    Walks PATH_RULES in order and uses the first match. Blocks that match
    nothing land in their category directory as ``file_<index+1>``; the
    index only keeps fallback names unique within one parse.
    """
    for rule in PATH_RULES:
        match = rule.pattern.search(code)
        if match:
            return rule.build(match, extension, index)

    directory = _CATEGORY_DIRS[language_profile(tag).category]
    return f"{directory}/file_{index + 1}.{extension}"


# ── Parsing ───────────────────────────────────────────────────────


def extract_blocks(raw_text: str) -> list[tuple[str, str]]:
    """Return ``(language, trimmed_body)`` for each fenced block, in order."""
    if not raw_text:
        return []
    return [
        ((match.group(1) or "text").lower(), match.group(2).strip())
        for match in _FENCE_RE.finditer(raw_text)
    ]


def classify_block(language: str, code: str, index: int) -> CodeArtifact:
    """Build the CodeArtifact for a single extracted block."""
    profile = language_profile(language)
    return CodeArtifact(
        language=language,
        raw_code=code,
        file_path=infer_file_path(code, language, profile.extension, index),
        category=profile.category,
        complexity=infer_complexity(code),
        patterns=tuple(detect_patterns(code)),
        index=index,
    )


def parse(raw_text: str) -> list[CodeArtifact]:
    """Parse a response into CodeArtifacts, one per fenced block.

    A response without fences yields an empty list; its prose is still
    valid narration for the caller to show.
    """
    artifacts = [
        classify_block(language, code, index)
        for index, (language, code) in enumerate(extract_blocks(raw_text))
    ]
    logger.debug("Classified %d artifact(s)", len(artifacts))
    return artifacts


def strip_code_blocks(raw_text: str) -> str:
    """Return the prose of a response with every fenced block removed."""
    prose = _FENCE_RE.sub("", raw_text or "")
    return re.sub(r"\n{3,}", "\n\n", prose).strip()
