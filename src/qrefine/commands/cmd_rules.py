"""List the built-in rule catalog or the rule profiles."""

from __future__ import annotations

import click

from qrefine.output.formatter import json_envelope, to_json
from qrefine.rules.builtin import BUILTIN_RULES, list_profiles


@click.command("rules")
@click.option("--profiles", "do_profiles", is_flag=True, help="List rule profiles instead of rules.")
@click.pass_context
def rules(ctx, do_profiles):
    """List built-in rules in evaluation order."""
    json_mode = ctx.obj.get("json") if ctx.obj else False

    if do_profiles:
        profiles = list_profiles()
        if json_mode:
            click.echo(
                to_json(
                    json_envelope(
                        "rules",
                        summary={"verdict": "profiles listed", "count": len(profiles)},
                        profiles=profiles,
                    )
                )
            )
        else:
            click.echo("Available rule profiles ({}):".format(len(profiles)))
            for p in profiles:
                extends = " (extends: {})".format(p["extends"]) if p["extends"] else ""
                click.echo("  {:10s} {}{}".format(p["name"], p["description"], extends))
        return

    if json_mode:
        rules_list = [r.to_dict() for r in BUILTIN_RULES]
        click.echo(
            to_json(
                json_envelope(
                    "rules",
                    summary={"verdict": "listed", "count": len(rules_list)},
                    rules=rules_list,
                )
            )
        )
        return

    click.echo("Built-in rules ({}):".format(len(BUILTIN_RULES)))
    for r in BUILTIN_RULES:
        off = " (disabled by default)" if not r.enabled else ""
        click.echo("  {:24s} {:24s} [{:7s}] {}{}".format(r.id, r.code, r.severity.value, r.description, off))
