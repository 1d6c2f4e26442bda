"""Typer app instance."""

import typer

from vpsdash.cli.utils import console, setup_logging

app = typer.Typer(
    name="vpsdash",
    help="Trigger app operations on managed servers and follow their progress",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show debug logging"
    ),
) -> None:
    """Trigger app operations on managed servers and follow their progress."""
    setup_logging(verbose, console)
