"""List SQL snippets embedded in a source file."""

from __future__ import annotations

from pathlib import Path

import click

from qrefine.extract.extractor import extract
from qrefine.languages import get_language_for_file
from qrefine.output.formatter import format_table, json_envelope, loc, to_json


def _preview(query: str, width: int = 60) -> str:
    flat = " ".join(query.split())
    return flat if len(flat) <= width else flat[: width - 3] + "..."


@click.command("extract")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--language", default=None, help="Host language (default: from the file extension).")
@click.pass_context
def extract_cmd(ctx, file, language):
    """Show the SQL snippets found in FILE with confidence and provenance."""
    json_mode = ctx.obj.get("json") if ctx.obj else False

    text = Path(file).read_text(encoding="utf-8", errors="replace")
    lang = language or get_language_for_file(file)
    snippets = extract(text, lang)

    if json_mode:
        click.echo(
            to_json(
                json_envelope(
                    "extract",
                    summary={"verdict": "{} snippet(s)".format(len(snippets)), "count": len(snippets)},
                    file=file,
                    language=lang,
                    snippets=[s.to_dict() for s in snippets],
                )
            )
        )
        return

    click.echo("Snippets in {} ({}):".format(file, len(snippets)))
    rows = [
        [loc(file, s.range.start.line, s.range.start.column), s.provenance.value, str(s.confidence), _preview(s.query)]
        for s in snippets
    ]
    click.echo(format_table(["location", "provenance", "conf", "query"], rows))
