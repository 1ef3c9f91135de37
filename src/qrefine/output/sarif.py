"""SARIF 2.1.0 output for code scanning integration.

Converts qrefine file reports into Static Analysis Results Interchange
Format (SARIF) for consumption by GitHub code scanning, editor SARIF
viewers, and other SARIF-aware tools.

Usage::

    from qrefine.output.sarif import reports_to_sarif, write_sarif

    sarif = reports_to_sarif(reports)
    write_sarif(sarif, "qrefine.sarif")
"""

from __future__ import annotations

import hashlib as _hashlib
import json as _json
from pathlib import Path

_SARIF_VERSION = "2.1.0"
_SARIF_SCHEMA = "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/main/sarif-2.1/schema/sarif-schema-2.1.0.json"
_TOOL_NAME = "qrefine"


def _get_version() -> str:
    from qrefine import __version__

    return __version__


# ── Severity mapping ─────────────────────────────────────────────────

_LEVEL_MAP = {
    "ERROR": "error",
    "WARNING": "warning",
    "INFO": "note",
}


def _to_level(severity: str) -> str:
    """Map a qrefine severity string to a SARIF level."""
    return _LEVEL_MAP.get(severity.upper(), "note")


# ── Location helpers ─────────────────────────────────────────────────


def _region(rng) -> dict:
    """SARIF regions are 1-based; qrefine ranges are 0-based."""
    return {
        "startLine": rng.start.line + 1,
        "startColumn": rng.start.column + 1,
        "endLine": rng.end.line + 1,
        "endColumn": rng.end.column + 1,
    }


def _location(file_path: str, rng=None) -> dict:
    """Build a single SARIF location entry."""
    physical: dict = {"artifactLocation": {"uri": file_path.replace("\\", "/")}}
    if rng is not None:
        physical["region"] = _region(rng)
    return {"physicalLocation": physical}


# ── Core builder ─────────────────────────────────────────────────────


def to_sarif(
    tool_name: str,
    version: str,
    rules: list[dict],
    results: list[dict],
    invocation: dict | None = None,
) -> dict:
    """Build a complete SARIF 2.1.0 JSON document.

    Parameters
    ----------
    tool_name:
        Display name of the analysis tool.
    version:
        Semantic version of the tool.
    rules:
        List of rule definitions. Each dict must contain ``id`` and
        ``shortDescription``; ``defaultLevel`` and ``properties`` are
        optional.
    results:
        List of SARIF result objects.
    invocation:
        Optional SARIF invocation object (used to report rule failures).
    """
    driver: dict = {
        "name": tool_name,
        "version": version,
        "rules": [_build_rule(r) for r in rules],
    }
    run: dict = {
        "tool": {"driver": driver},
        "results": results,
    }
    if invocation is not None:
        run["invocations"] = [invocation]

    return {
        "$schema": _SARIF_SCHEMA,
        "version": _SARIF_VERSION,
        "runs": [run],
    }


def _build_rule(rule: dict) -> dict:
    """Normalise a rule dict into the SARIF rule schema."""
    out: dict = {
        "id": rule["id"],
        "shortDescription": {"text": rule["shortDescription"]},
    }
    if "defaultLevel" in rule:
        out["defaultConfiguration"] = {"level": rule["defaultLevel"]}
    if "properties" in rule:
        out["properties"] = rule["properties"]
    return out


def _fingerprint(path: str, suggestion) -> str:
    payload = "|".join(
        [
            suggestion.code,
            path.replace("\\", "/"),
            str(suggestion.range.start.line),
            str(suggestion.range.start.column),
            suggestion.message,
        ]
    )
    return _hashlib.sha1(payload.encode("utf-8")).hexdigest()


# ── Write / serialise ────────────────────────────────────────────────


def write_sarif(data: dict, output_path: str | Path | None = None) -> str:
    """Serialise *data* to JSON and optionally write it to *output_path*.

    Returns the JSON string in all cases.
    """
    text = _json.dumps(data, indent=2, default=str)
    if output_path is not None:
        Path(output_path).write_text(text, encoding="utf-8")
    return text


# ── Reports ──────────────────────────────────────────────────────────


def rules_to_sarif_descriptors(rules) -> list[dict]:
    """SARIF rule descriptors for the rules that ran, keyed by code."""
    return [
        {
            "id": r.code,
            "shortDescription": r.description,
            "defaultLevel": _to_level(r.severity.value),
            "properties": {"qrefineRuleId": r.id},
        }
        for r in rules
    ]


def reports_to_sarif(reports, rules) -> dict:
    """Convert ``FileReport`` objects to SARIF.

    Rule failures become ``toolExecutionNotifications`` and mark the
    invocation as not fully successful.
    """
    results: list[dict] = []
    notifications: list[dict] = []
    for report in reports:
        for s in report.suggestions:
            result = {
                "ruleId": s.code,
                "level": _to_level(s.severity.value),
                "message": {"text": s.message},
                "locations": [_location(report.path, s.range)],
                "partialFingerprints": {"qrefineFinding/v1": _fingerprint(report.path, s)},
            }
            if s.provenance:
                result["properties"] = {"provenance": s.provenance}
            results.append(result)
        for f in report.failures:
            notifications.append(
                {
                    "level": "error",
                    "message": {"text": f"rule {f.rule_id} failed: {f.error}"},
                    "locations": [_location(report.path)],
                }
            )

    invocation = {
        "executionSuccessful": not notifications,
        "toolExecutionNotifications": notifications,
    }
    return to_sarif(_TOOL_NAME, _get_version(), rules_to_sarif_descriptors(rules), results, invocation)
