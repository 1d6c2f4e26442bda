"""vpsdash CLI - command registration and entry point."""

from vpsdash.cli.app import app
from vpsdash.cli.explain import explain
from vpsdash.cli.operations import delete, deploy, stop, watch
from vpsdash.cli.serve import serve

# Explicit command registration
app.command()(deploy)
app.command()(stop)
app.command()(delete)
app.command()(watch)
app.command()(explain)
app.command()(serve)


def main() -> None:
    """Entry point for the CLI."""
    app()
