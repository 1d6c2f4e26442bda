"""Explain command."""

import typer

from vpsdash.services.error_translator import translate


def explain(
    error: str = typer.Argument(..., help="Raw error or log text"),
) -> None:
    """Translate a raw Docker/deployment error into a readable message."""
    typer.echo(translate(error))
