"""Apply rule fixes to a SQL file."""

from __future__ import annotations

import difflib
from pathlib import Path

import click

from qrefine.config import load_config, merge_overrides, resolve_rules
from qrefine.exit_codes import EXIT_USAGE, QRefineError
from qrefine.fixes import fix_all
from qrefine.languages import SQL, get_language_for_file
from qrefine.output.formatter import json_envelope, to_json


def _diff(original: str, fixed: str, path: str) -> str:
    lines = difflib.unified_diff(
        original.splitlines(keepends=True),
        fixed.splitlines(keepends=True),
        fromfile="a/" + path,
        tofile="b/" + path,
    )
    return "".join(lines)


@click.command("fix")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--rule", "rule_filter", multiple=True, help="Only apply fixes for this rule ID or code (repeatable).")
@click.option("--write", is_flag=True, help="Rewrite FILE in place instead of printing a diff.")
@click.option("--config", "config_path", default=None, help="Path to .qrefine.yml config file.")
@click.option("--profile", "profile_name", default=None, help="Named rule profile.")
@click.pass_context
def fix(ctx, file, rule_filter, write, config_path, profile_name):
    """Apply the available fixes to FILE and show a unified diff.

    Most fixes insert placeholders (``col1, col2``, ``condition_here``)
    that still need a human edit.
    """
    json_mode = ctx.obj.get("json") if ctx.obj else False

    cfg = load_config(config_path)
    if get_language_for_file(file, cfg.extensions) != SQL:
        raise QRefineError("fix only rewrites standalone SQL files: {}".format(file), EXIT_USAGE)

    overrides = merge_overrides(profile_name or cfg.profile, cfg.rules)
    rules = resolve_rules(overrides, rule_filter)

    path = Path(file)
    original = path.read_text(encoding="utf-8")
    result = fix_all(original, rules, codes=set(rule_filter) or None)
    diff = _diff(original, result.text, file)

    if write and result.changed:
        path.write_text(result.text, encoding="utf-8")

    verdict = "{} fix(es) applied".format(len(result.applied)) if result.applied else "nothing to fix"

    if json_mode:
        click.echo(
            to_json(
                json_envelope(
                    "fix",
                    summary={"verdict": verdict, "applied": len(result.applied), "written": bool(write and result.changed)},
                    file=file,
                    applied=[s.to_dict() for s in result.applied],
                    diff=diff,
                )
            )
        )
        return

    if write:
        click.echo("{}: {}".format(file, verdict))
        return
    if diff:
        click.echo(diff.rstrip("\n"))
    click.echo("VERDICT: {}".format(verdict))
