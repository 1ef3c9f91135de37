"""Dump the token stream of a SQL file or string."""

from __future__ import annotations

from pathlib import Path

import click

from qrefine.output.formatter import format_table, json_envelope, to_json
from qrefine.sql.tokenizer import significant, tokenize


@click.command("tokens")
@click.argument("file", required=False, type=click.Path(exists=True, dir_okay=False))
@click.option("--sql", "sql_text", default=None, help="Tokenize this text instead of a file.")
@click.option("--all", "show_all", is_flag=True, help="Include whitespace and comment tokens.")
@click.pass_context
def tokens(ctx, file, sql_text, show_all):
    """Tokenize FILE (or --sql TEXT) and print one token per row."""
    json_mode = ctx.obj.get("json") if ctx.obj else False

    if (file is None) == (sql_text is None):
        raise click.UsageError("Pass exactly one of FILE or --sql.")
    text = sql_text if sql_text is not None else Path(file).read_text(encoding="utf-8", errors="replace")

    toks = tokenize(text)
    shown = toks if show_all else significant(toks)

    if json_mode:
        click.echo(
            to_json(
                json_envelope(
                    "tokens",
                    summary={"verdict": "{} token(s)".format(len(shown)), "count": len(shown), "total": len(toks)},
                    tokens=[t.to_dict() for t in shown],
                )
            )
        )
        return

    rows = [["{}:{}".format(t.start_line + 1, t.start_column + 1), t.kind.value, repr(t.text)] for t in shown]
    click.echo(format_table(["pos", "kind", "text"], rows))
