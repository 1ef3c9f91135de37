"""Click CLI entry point with lazy-loaded subcommands."""

from __future__ import annotations

import logging
import os
import sys

# Fix Unicode output on Windows consoles (cp1253, cp1252, etc.)
if sys.platform == "win32" and not os.environ.get("PYTHONIOENCODING"):
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")

import click

# Lazy-loading command group: imports command modules only when invoked.
_COMMANDS = {
    "check": ("qrefine.commands.cmd_check", "check"),
    "extract": ("qrefine.commands.cmd_extract", "extract_cmd"),
    "fix": ("qrefine.commands.cmd_fix", "fix"),
    "rules": ("qrefine.commands.cmd_rules", "rules"),
    "tokens": ("qrefine.commands.cmd_tokens", "tokens"),
}

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


class LazyGroup(click.Group):
    """A Click group that lazy-loads command modules on first access."""

    def list_commands(self, ctx):
        return sorted(_COMMANDS.keys())

    def get_command(self, ctx, cmd_name):
        if cmd_name not in _COMMANDS:
            return None
        module_path, attr_name = _COMMANDS[cmd_name]
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, attr_name)


class _ClickHandler(logging.Handler):
    """Writes records to whatever stderr click currently targets."""

    def emit(self, record):
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def _configure_logging(verbose: int) -> None:
    if verbose <= 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG
    root = logging.getLogger("qrefine")
    root.setLevel(level)
    if not any(isinstance(h, _ClickHandler) for h in root.handlers):
        handler = _ClickHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root.addHandler(handler)


@click.group(cls=LazyGroup)
@click.version_option(package_name="qrefine")
@click.option("--json", "json_mode", is_flag=True, help="Output in JSON format")
@click.option("--sarif", "sarif_mode", is_flag=True, help="Output SARIF 2.1.0 (check only)")
@click.option("-v", "--verbose", count=True, help="Log to stderr (-v info, -vv debug)")
@click.pass_context
def cli(ctx, json_mode, sarif_mode, verbose):
    """QRefine: find SQL anti-patterns in .sql files and embedded queries."""
    ctx.ensure_object(dict)
    ctx.obj["json"] = json_mode
    ctx.obj["sarif"] = sarif_mode
    ctx.obj["verbose"] = verbose
    _configure_logging(verbose)
