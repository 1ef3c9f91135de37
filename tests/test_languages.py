"""Tests for language detection by extension and alias normalization."""

from __future__ import annotations

import pytest

from qrefine.languages import SQL, get_language_for_file, normalize_language, supported_extensions


@pytest.mark.parametrize(
    "path,expected",
    [
        ("db/schema.sql", SQL),
        ("Q.SQL", SQL),
        ("app.py", "python"),
        ("web/App.tsx", "typescript"),
        ("store.go", "go"),
        ("Repo.kt", "kotlin"),
        ("index.php", "php"),
        ("README.md", None),
        ("Makefile", None),
    ],
)
def test_get_language_for_file(path, expected):
    assert get_language_for_file(path) == expected


def test_extra_extensions_take_precedence():
    assert get_language_for_file("q.pgsql", {".pgsql": "sql"}) == SQL
    assert get_language_for_file("view.vue", {".vue": "JS"}) == "javascript"
    assert get_language_for_file("a.py", {".py": "ruby"}) == "ruby"


@pytest.mark.parametrize(
    "hint,expected",
    [("js", "javascript"), (" Python ", "python"), ("golang", "go"), ("C#", "csharp"), ("", None), (None, None)],
)
def test_normalize_language(hint, expected):
    assert normalize_language(hint) == expected


def test_supported_extensions():
    exts = supported_extensions({".pgsql": "sql"})
    assert ".sql" in exts
    assert ".pgsql" in exts
    assert exts == sorted(exts)
