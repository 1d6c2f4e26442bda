"""CLI utilities."""

import logging

import typer
from rich.console import Console, Group, RenderableType
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from vpsdash.core.enums import StepStatus
from vpsdash.core.models import ProgressView
from vpsdash.settings import Settings, get_settings

console = Console()

_STEP_ICONS: dict[StepStatus, tuple[str, str]] = {
    StepStatus.COMPLETED: ("✓", "green"),
    StepStatus.RUNNING: ("•", "bold blue"),
    StepStatus.PENDING: ("○", "dim"),
    StepStatus.ERROR: ("✗", "red"),
}


def setup_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Configure logging with Rich handler.

    Clears existing handlers first so it can be called again to switch
    consoles.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise WARNING.
        console: Optional Console shared with a Live display so log lines
            render above it.
    """
    level = logging.DEBUG if verbose else logging.WARNING

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = RichHandler(
        rich_tracebacks=True,
        show_path=False,
        console=console,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    root_logger.setLevel(level)
    root_logger.addHandler(handler)


def echo_error(message: str) -> None:
    """Print error message and exit."""
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def resolve_settings(api_url: str | None, token: str | None) -> Settings:
    """Settings with command-line overrides applied."""
    overrides = {
        key: value
        for key, value in (("api_url", api_url), ("api_token", token))
        if value is not None
    }
    return get_settings().model_copy(update=overrides)


def render_view(view: ProgressView) -> RenderableType:
    """Render a progress view: header, progress bar, steps and error."""
    if view.has_error:
        style = "red"
    elif view.is_complete:
        style = "green"
    else:
        style = "blue"

    header = Text.assemble(
        (view.title or "Operation", "bold"), "  ", (view.headline, style)
    )

    bar = Table.grid(padding=(0, 1))
    bar.add_row(
        ProgressBar(
            total=100,
            completed=view.progress_percent,
            width=40,
            complete_style=style,
            finished_style=style,
        ),
        Text(f"{view.progress_percent}%"),
    )

    steps = Table.grid(padding=(0, 1))
    for step in view.steps:
        icon, icon_style = _STEP_ICONS[step.status]
        steps.add_row(Text(icon, style=icon_style), Text(step.label, style=icon_style))

    parts: list[RenderableType] = [header, bar, steps]
    if view.error_message:
        parts.append(
            Panel(view.error_message, title="Error", border_style="red", expand=False)
        )
    return Group(*parts)
