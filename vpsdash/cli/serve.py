"""API server command."""

import typer


def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Host to bind to"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    from vpsdash.api.app import setup_logging
    from vpsdash.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level)
    uvicorn.run(
        "vpsdash.api.app:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload or settings.reload,
        log_config=None,
    )
