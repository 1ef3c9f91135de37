"""Check SQL files and embedded queries for anti-patterns.

Standalone ``.sql`` files are analyzed directly; source files in known host
languages are searched for embedded SQL first. Rules can be selected
individually, filtered by severity, and configured via .qrefine.yml.

Built-in rules (11):
  select-star             -- SELECT *
  delete-without-where    -- DELETE with no WHERE
  update-without-where    -- UPDATE ... SET with no WHERE
  join-without-condition  -- JOIN with no ON / USING
  functions-in-where      -- function calls on columns in WHERE
  select-distinct         -- SELECT DISTINCT
  order-by-without-limit  -- ORDER BY with no LIMIT
  like-leading-wildcard   -- LIKE '%...'
  not-in                  -- NOT IN (...)
  insert-without-columns  -- INSERT INTO t VALUES without a column list
  select-without-where    -- SELECT ... FROM with no WHERE/LIMIT (off by default)
"""

from __future__ import annotations

import logging

import click

from qrefine.analyzer import analyze_file
from qrefine.config import FAIL_ON_CHOICES, load_config, merge_overrides, resolve_rules
from qrefine.discovery import collect_paths
from qrefine.exit_codes import EXIT_GATE_FAILURE, EXIT_PARTIAL, EXIT_SUCCESS, GateFailureError, PartialResultError
from qrefine.output.formatter import json_envelope, suggestion_line, to_json
from qrefine.rules.base import Severity

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Verdict calculation
# ---------------------------------------------------------------------------


def _counts(reports) -> dict[str, int]:
    counts = {s.value: 0 for s in Severity}
    for report in reports:
        for s in report.suggestions:
            counts[s.severity.value] += 1
    return counts


def _calculate_verdict(reports, fail_on: str) -> tuple[str, int]:
    """Return (verdict_string, exit_code).

    FAIL = 5 when a finding reaches ``fail_on``; PARTIAL = 6 when a rule
    failed; otherwise WARN / PASS = 0.
    """
    counts = _counts(reports)
    failures = sum(len(r.failures) for r in reports)
    total = sum(counts.values())

    gate_hit = False
    if fail_on != "never":
        threshold = Severity(fail_on).rank
        gate_hit = any(s.severity.rank >= threshold for r in reports for s in r.suggestions)

    detail = "{} error(s), {} warning(s), {} info".format(counts["error"], counts["warning"], counts["info"])
    if gate_hit:
        return "FAIL - " + detail, EXIT_GATE_FAILURE
    if failures:
        return "PARTIAL - {} rule failure(s), {}".format(failures, detail), EXIT_PARTIAL
    if total:
        return "WARN - " + detail, EXIT_SUCCESS
    return "PASS - no findings in {} file(s)".format(len(reports)), EXIT_SUCCESS


def _raise_for(exit_code: int, verdict: str) -> None:
    if exit_code == EXIT_GATE_FAILURE:
        raise GateFailureError(verdict)
    if exit_code == EXIT_PARTIAL:
        raise PartialResultError(verdict)


# ---------------------------------------------------------------------------
# CLI command
# ---------------------------------------------------------------------------


@click.command("check")
@click.argument("paths", nargs=-1, type=click.Path(exists=True))
@click.option(
    "--rule",
    "rule_filter",
    multiple=True,
    help="Run only this rule ID or code (repeatable). Runs it even if disabled.",
)
@click.option(
    "--severity",
    "severity_filter",
    default=None,
    type=click.Choice(["error", "warning", "info"]),
    help="Only run rules of this severity.",
)
@click.option("--config", "config_path", default=None, help="Path to .qrefine.yml config file.")
@click.option("--profile", "profile_name", default=None, help="Named rule profile (default, strict, minimal).")
@click.option(
    "--fail-on",
    default=None,
    type=click.Choice(list(FAIL_ON_CHOICES)),
    help="Exit 5 when a finding at or above this severity exists (default: error).",
)
@click.option("--language", default=None, help="Treat every file as this language (e.g. sql, python, go).")
@click.option("--workers", default=0, type=int, help="Evaluate rules on a thread pool of this size.")
@click.pass_context
def check(ctx, paths, rule_filter, severity_filter, config_path, profile_name, fail_on, language, workers):
    """Analyze PATHS (files or directories, default: .) for SQL anti-patterns.

    Exit code 5 when a finding reaches --fail-on, 6 when a rule failed
    while analyzing, 2 on bad arguments or config.
    """
    json_mode = ctx.obj.get("json") if ctx.obj else False
    sarif_mode = ctx.obj.get("sarif") if ctx.obj else False

    cfg = load_config(config_path)
    overrides = merge_overrides(profile_name or cfg.profile, cfg.rules)
    rules = resolve_rules(overrides, rule_filter, severity_filter)
    fail_on = fail_on or cfg.fail_on or "error"

    files = collect_paths(paths or (".",), cfg.exclude, cfg.extensions)
    reports = []
    skipped = []
    for path in files:
        try:
            reports.append(analyze_file(path, language, rules, cfg.extensions, max_workers=workers))
        except OSError as exc:
            log.warning("cannot read %s: %s", path, exc)
            skipped.append(str(path))

    verdict, exit_code = _calculate_verdict(reports, fail_on)

    # --- SARIF output ---
    if sarif_mode:
        from qrefine.output.sarif import reports_to_sarif, write_sarif

        click.echo(write_sarif(reports_to_sarif(reports, rules)))
        _raise_for(exit_code, verdict)
        return

    # --- JSON output ---
    if json_mode:
        counts = _counts(reports)
        envelope = json_envelope(
            "check",
            summary={
                "verdict": verdict,
                "files": len(reports),
                "findings": sum(counts.values()),
                "errors": counts["error"],
                "warnings": counts["warning"],
                "infos": counts["info"],
                "rule_failures": sum(len(r.failures) for r in reports),
                "fail_on": fail_on,
            },
            rules=[r.id for r in rules],
            files=[r.to_dict() for r in reports if r.suggestions or r.failures],
            skipped=skipped,
        )
        click.echo(to_json(envelope))
        _raise_for(exit_code, verdict)
        return

    # --- Text output ---
    for report in reports:
        for s in report.suggestions:
            click.echo(suggestion_line(report.path, s))
        for f in report.failures:
            click.echo("{}  [FAILED] rule {}: {}".format(report.path, f.rule_id, f.error))
    if any(r.suggestions or r.failures for r in reports):
        click.echo()
    click.echo("VERDICT: {}".format(verdict))
    _raise_for(exit_code, verdict)
