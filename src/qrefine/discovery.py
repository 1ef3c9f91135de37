"""File discovery using git ls-files with fallback to os.walk."""

from __future__ import annotations

import fnmatch
import logging
import os
import re
import subprocess
from pathlib import Path

from qrefine.languages import get_language_for_file

log = logging.getLogger(__name__)

# Directories to skip during os.walk fallback
SKIP_DIRS = frozenset({
    ".git", ".hg", ".svn", "node_modules", "__pycache__",
    ".tox", ".mypy_cache", ".pytest_cache", ".ruff_cache",
    "venv", ".venv", "env", ".env",
    "dist", "build", ".eggs",
    ".next", ".nuxt", ".output",
    "target", "bin", "obj", "vendor",
})

# Generated or bundled files that are never worth scanning
SKIP_SUFFIXES = (".min.js", ".bundle.js", ".d.ts")

MAX_FILE_SIZE = 1_000_000  # 1MB


def matches_glob(file_path: str, pattern: str) -> bool:
    """Check if a file path matches a glob pattern.

    Supports ``**`` for matching zero or more directories, unlike plain
    ``fnmatch`` which treats ``*`` as matching everything including ``/``.
    """
    norm = file_path.replace("\\", "/")
    pat = pattern.replace("\\", "/")

    if "**" not in pat:
        return fnmatch.fnmatch(norm, pat)

    parts: list[str] = []
    i = 0
    while i < len(pat):
        c = pat[i]
        if c == "*":
            if i + 1 < len(pat) and pat[i + 1] == "*":
                if i + 2 < len(pat) and pat[i + 2] == "/":
                    parts.append("(?:.+/)?")
                    i += 3
                    continue
                parts.append(".*")
                i += 2
                continue
            parts.append("[^/]*")
            i += 1
        elif c == "?":
            parts.append("[^/]")
            i += 1
        elif c in r".+^${}()|[]":
            parts.append("\\" + c)
            i += 1
        else:
            parts.append(c)
            i += 1

    return re.match("^" + "".join(parts) + "$", norm) is not None


def _git_ls_files(root: Path) -> list[str] | None:
    """Try to list files using git ls-files. Returns None if git unavailable."""
    try:
        result = subprocess.run(
            ["git", "ls-files", "--cached", "--others", "--exclude-standard"],
            cwd=str(root),
            capture_output=True,
            text=True,
            timeout=30,
        )
        if result.returncode != 0:
            return None
        return [p.strip() for p in result.stdout.splitlines() if p.strip()]
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None


def _walk_files(root: Path) -> list[str]:
    """Fallback file discovery using os.walk, respecting common ignore dirs."""
    result = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in SKIP_DIRS and not d.startswith(".")]
        for fname in filenames:
            full = os.path.join(dirpath, fname)
            try:
                rel = os.path.relpath(full, root).replace("\\", "/")
            except (ValueError, OSError):
                continue
            result.append(rel)
    return result


def _keep(rel_path: str, root: Path, exclude: list[str], extensions: dict[str, str] | None) -> bool:
    if rel_path.endswith(SKIP_SUFFIXES):
        return False
    if get_language_for_file(rel_path, extensions) is None:
        return False
    if any(matches_glob(rel_path, pat) for pat in exclude):
        return False
    try:
        if (root / rel_path).stat().st_size > MAX_FILE_SIZE:
            log.info("skipping %s: larger than %d bytes", rel_path, MAX_FILE_SIZE)
            return False
    except OSError:
        return False
    return True


def discover_files(
    root: str | Path,
    exclude: list[str] | None = None,
    extensions: dict[str, str] | None = None,
) -> list[str]:
    """Discover analyzable files under *root*.

    Uses git ls-files when available, falls back to os.walk. Keeps files
    with a known language extension that are not excluded and not over
    ``MAX_FILE_SIZE``. Returns a sorted list of relative paths using
    forward slashes.
    """
    root = Path(root).resolve()
    raw = _git_ls_files(root)
    if raw is None:
        raw = _walk_files(root)
    raw = [p.replace("\\", "/") for p in raw]
    kept = [p for p in raw if _keep(p, root, exclude or [], extensions)]
    kept.sort()
    return kept


def collect_paths(
    paths: list[str] | tuple[str, ...],
    exclude: list[str] | None = None,
    extensions: dict[str, str] | None = None,
) -> list[Path]:
    """Expand CLI path arguments: files are kept as given, directories are walked."""
    out: list[Path] = []
    for p in paths:
        path = Path(p)
        if path.is_dir():
            out.extend(path / rel for rel in discover_files(path, exclude, extensions))
        else:
            out.append(path)
    return out
