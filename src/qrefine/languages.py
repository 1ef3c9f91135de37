"""Host language detection by file extension."""

from __future__ import annotations

import os

SQL = "sql"

# Extension -> language tag. ``sql`` files are analyzed directly; every
# other tag is a host language whose string literals are searched for SQL.
EXTENSION_MAP: dict[str, str] = {
    ".sql": SQL,
    ".py": "python",
    ".pyi": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".go": "go",
    ".java": "java",
    ".kt": "kotlin",
    ".cs": "csharp",
    ".php": "php",
    ".rb": "ruby",
    ".rs": "rust",
    ".swift": "swift",
    ".scala": "scala",
}

_LANG_ALIASES = {
    "js": "javascript",
    "ts": "typescript",
    "py": "python",
    "golang": "go",
    "c#": "csharp",
    "c_sharp": "csharp",
    "kt": "kotlin",
    "rb": "ruby",
    "javascriptreact": "javascript",
    "typescriptreact": "typescript",
}


def normalize_language(language: str | None) -> str | None:
    """Lower-case a language hint and resolve common aliases."""
    if not language:
        return None
    norm = language.strip().lower()
    if not norm:
        return None
    return _LANG_ALIASES.get(norm, norm)


def get_language_for_file(path: str, extra: dict[str, str] | None = None) -> str | None:
    """Determine the language for a file based on its extension.

    *extra* maps additional extensions (from config) and takes precedence.
    Returns the language tag, or None if unsupported.
    """
    _, ext = os.path.splitext(path)
    ext = ext.lower()
    if extra:
        lang = extra.get(ext)
        if lang:
            return normalize_language(lang)
    return EXTENSION_MAP.get(ext)


def supported_extensions(extra: dict[str, str] | None = None) -> list[str]:
    """Return the sorted list of file extensions that are analyzed."""
    return sorted(set(EXTENSION_MAP) | set(extra or {}))
