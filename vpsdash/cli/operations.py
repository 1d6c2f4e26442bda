"""Deploy, stop, delete and watch commands."""

import asyncio

import typer
from rich.live import Live

from vpsdash.cli.utils import console, echo_error, render_view, resolve_settings
from vpsdash.client import DashboardClient
from vpsdash.core.enums import OperationKind, RunStatus
from vpsdash.core.models import ProgressView, TargetRef
from vpsdash.exceptions import VpsDashError
from vpsdash.services.operations import OperationService
from vpsdash.services.poller import ProgressPoller
from vpsdash.settings import Settings

ServerArg = typer.Argument(..., help="Server identifier")
AppArg = typer.Argument(..., help="Application identifier")
ApiUrlOpt = typer.Option(None, "--api-url", help="Dashboard backend URL")
TokenOpt = typer.Option(None, "--token", help="Bearer token for the backend")


async def _follow(
    kind: OperationKind, target: TargetRef, settings: Settings, *, trigger: bool
) -> ProgressView:
    """Optionally trigger an operation, then render its progress until done."""
    async with DashboardClient(
        settings.api_url,
        token=settings.api_token,
        timeout=settings.request_timeout,
    ) as client:
        poller = ProgressPoller(
            interval=settings.poll_interval,
            max_attempts=settings.max_attempts,
            fetch_timeout=settings.fetch_timeout,
        )
        service = OperationService(client, poller)
        model = poller.model(target)

        with Live(
            render_view(model.snapshot()), console=console, refresh_per_second=8
        ) as live:
            unsubscribe = model.subscribe(lambda view: live.update(render_view(view)))
            try:
                if trigger:
                    handle = await service.run(kind, target)
                else:
                    handle = service.track(kind, target)
                return await poller.wait(handle)
            finally:
                unsubscribe()
                poller.stop_all()


def _execute(
    kind: OperationKind,
    server_id: str,
    app_id: str,
    api_url: str | None,
    token: str | None,
    *,
    trigger: bool,
) -> None:
    settings = resolve_settings(api_url, token)
    target = TargetRef(server_id=server_id, app_id=app_id)
    try:
        view = asyncio.run(_follow(kind, target, settings, trigger=trigger))
    except VpsDashError as e:
        echo_error(e.message)
        return

    if view.overall_status is RunStatus.ERROR:
        raise typer.Exit(1)
    if view.overall_status is not RunStatus.COMPLETED:
        console.print(
            f"[yellow]Stopped following after {view.attempt_count} attempt(s); "
            "the operation may still be in progress.[/yellow]"
        )


def deploy(
    server_id: str = ServerArg,
    app_id: str = AppArg,
    api_url: str | None = ApiUrlOpt,
    token: str | None = TokenOpt,
) -> None:
    """Deploy an application and follow its progress."""
    _execute(OperationKind.DEPLOY, server_id, app_id, api_url, token, trigger=True)


def stop(
    server_id: str = ServerArg,
    app_id: str = AppArg,
    api_url: str | None = ApiUrlOpt,
    token: str | None = TokenOpt,
) -> None:
    """Stop an application and follow its progress."""
    _execute(OperationKind.STOP, server_id, app_id, api_url, token, trigger=True)


def delete(
    server_id: str = ServerArg,
    app_id: str = AppArg,
    api_url: str | None = ApiUrlOpt,
    token: str | None = TokenOpt,
) -> None:
    """Delete an application and follow its progress."""
    _execute(OperationKind.DELETE, server_id, app_id, api_url, token, trigger=True)


def watch(
    kind: OperationKind = typer.Argument(..., help="Operation to follow"),
    server_id: str = ServerArg,
    app_id: str = AppArg,
    api_url: str | None = ApiUrlOpt,
    token: str | None = TokenOpt,
) -> None:
    """Follow an operation that was started elsewhere."""
    _execute(kind, server_id, app_id, api_url, token, trigger=False)
