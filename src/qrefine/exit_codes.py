"""Process exit statuses for ``qrefine`` commands.

``qrefine check`` is meant to run as a CI gate, so its status says which
of these happened:

    0  SUCCESS        -- every file analysed, nothing reached --fail-on
    1  GENERAL_ERROR  -- qrefine itself failed (I/O error, bug)
    2  USAGE_ERROR    -- bad flags or a rejected .qrefine.yml
    5  GATE_FAILURE   -- some SQL finding is at or above --fail-on
    6  PARTIAL        -- a rule raised, so some findings may be missing

A pipeline can treat 5 as "fix the queries" and 1, 2 or 6 as "fix the
setup".
"""

from __future__ import annotations

import sys

import click

# ---------------------------------------------------------------------------
# Exit code constants
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_ERROR: int = 1
EXIT_USAGE: int = 2
EXIT_GATE_FAILURE: int = 5
EXIT_PARTIAL: int = 6

# ---------------------------------------------------------------------------
# Human-readable descriptions
# ---------------------------------------------------------------------------

DESCRIPTIONS: dict[int, str] = {
    EXIT_SUCCESS: "success",
    EXIT_ERROR: "unexpected error",
    EXIT_USAGE: "invalid usage (bad arguments, flags or config)",
    EXIT_GATE_FAILURE: "findings at or above the --fail-on severity",
    EXIT_PARTIAL: "partial results (one or more rules failed)",
}

# ---------------------------------------------------------------------------
# Exceptions carrying an exit status
# ---------------------------------------------------------------------------


class QRefineError(click.ClickException):
    """A failure reported as ``Error: <message>`` with *exit_code* as status.

    Click prints and exits on these, so commands just raise.
    """

    def __init__(self, message: str, exit_code: int = EXIT_ERROR):
        super().__init__(message)
        self.exit_code = exit_code

    def format_message(self) -> str:
        return self.message


class ConfigError(QRefineError):
    """``.qrefine.yml`` could not be read or named an unknown rule or value."""

    def __init__(self, message: str):
        super().__init__(message, EXIT_USAGE)


class GateFailureError(QRefineError):
    """The gate verdict of ``check``: a finding reached the --fail-on level."""

    def __init__(self, message: str = "Findings at or above the failure threshold."):
        super().__init__(message, EXIT_GATE_FAILURE)


class PartialResultError(QRefineError):
    """Analysis finished, but at least one rule raised on some query."""

    def __init__(self, message: str = "Some rules failed; results are partial."):
        super().__init__(message, EXIT_PARTIAL)


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------


def exit_with(code: int, message: str | None = None) -> None:
    """Leave immediately with *code*, printing *message* to stderr like click."""
    if message:
        click.echo(f"Error: {message}", err=True)
    sys.exit(code)
