"""Plain-text and JSON formatting for command output."""

from __future__ import annotations

import json as _json
from datetime import datetime, timezone

# Envelope schema versioning (semver: major.minor.patch)
ENVELOPE_SCHEMA_VERSION = "1.0.0"
ENVELOPE_SCHEMA_NAME = "qrefine-envelope-v1"

SEVERITY_LABEL = {
    "error": "ERROR",
    "warning": "WARN",
    "info": "INFO",
}


def loc(path: str, line: int | None = None, column: int | None = None) -> str:
    """``path:line:col`` with 1-based line and column for editors and terminals."""
    if line is None:
        return path
    if column is None:
        return f"{path}:{line + 1}"
    return f"{path}:{line + 1}:{column + 1}"


def suggestion_line(path: str, suggestion) -> str:
    start = suggestion.range.start
    label = SEVERITY_LABEL.get(suggestion.severity.value, suggestion.severity.value.upper())
    line = f"{loc(path, start.line, start.column)}  [{label}] {suggestion.code}: {suggestion.message}"
    if suggestion.provenance and suggestion.provenance != "complete":
        line += f" ({suggestion.provenance})"
    return line


def format_table(headers: list[str], rows: list[list[str]], budget: int = 0) -> str:
    if not rows:
        return "(none)"
    widths = [len(h) for h in headers]
    num_cols = len(widths)
    for row in rows:
        for i, cell in enumerate(row):
            if i < num_cols:
                widths[i] = max(widths[i], len(str(cell)))
    lines = []
    lines.append("  ".join(h.ljust(widths[i]) for i, h in enumerate(headers)))
    lines.append("  ".join("-" * w for w in widths))
    display_rows = rows
    if budget and len(rows) > budget:
        display_rows = rows[:budget]
    for row in display_rows:
        lines.append("  ".join(str(cell).ljust(widths[i]) for i, cell in enumerate(row)).rstrip())
    if budget and len(rows) > budget:
        lines.append(f"(+{len(rows) - budget} more)")
    return "\n".join(lines)


def to_json(data) -> str:
    """Serialize data to a JSON string with deterministic key ordering.

    Uses ``sort_keys=True`` so that identical data always produces
    byte-identical output.
    """
    return _json.dumps(data, indent=2, default=str, sort_keys=True)


def json_envelope(command: str, summary: dict | None = None, **payload) -> dict:
    """Wrap command output in a self-describing envelope.

    Every ``qrefine --json <cmd>`` call uses this to produce consistent
    top-level keys. The timestamp lives in ``_meta`` so the content keys
    stay identical across invocations.

    Returns a dict with at minimum::

        {
            "schema":  "qrefine-envelope-v1",
            "command": "check",
            "version": "<current>",
            "summary": { ... },
            "_meta":   {"timestamp": "2026-02-12T14:30:00Z"},
            ...payload
        }
    """
    ts = datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")
    out: dict = {
        "schema": ENVELOPE_SCHEMA_NAME,
        "schema_version": ENVELOPE_SCHEMA_VERSION,
        "command": command,
        "version": _get_version(),
        "summary": summary or {},
    }
    out.update(payload)
    out["_meta"] = {"timestamp": ts}
    return out


def _get_version() -> str:
    from qrefine import __version__

    return __version__
