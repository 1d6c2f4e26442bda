"""FastAPI application factory and configuration."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError, version

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from rich.console import Console
from rich.logging import RichHandler

from vpsdash.api.container import Services
from vpsdash.api.exceptions import register_exception_handlers
from vpsdash.api.routes import errors, health, operations
from vpsdash.client import DashboardClient
from vpsdash.services.operations import OperationService
from vpsdash.services.poller import ProgressPoller
from vpsdash.settings import Settings, get_settings


def setup_logging(level: str | int = logging.INFO) -> None:
    """Route root and uvicorn log records through a single RichHandler."""
    handler = RichHandler(
        console=Console(force_terminal=True),
        rich_tracebacks=True,
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s", datefmt="[%X]"))

    logging.root.handlers = [handler]
    logging.root.setLevel(level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        server_logger = logging.getLogger(name)
        server_logger.handlers = [handler]
        server_logger.propagate = False


logger = logging.getLogger(__name__)


def create_services(settings: Settings) -> Services:
    """Create all application services with proper dependency wiring."""
    client = DashboardClient(
        settings.api_url,
        token=settings.api_token,
        timeout=settings.request_timeout,
    )
    poller = ProgressPoller(
        interval=settings.poll_interval,
        max_attempts=settings.max_attempts,
        fetch_timeout=settings.fetch_timeout,
    )
    return Services(
        client=client,
        poller=poller,
        operations=OperationService(client, poller),
    )


def create_api_router() -> APIRouter:
    """Create the API router with all routes under /api prefix."""
    api_router = APIRouter(prefix="/api")
    api_router.include_router(health.router)
    api_router.include_router(operations.router)
    api_router.include_router(errors.router)
    return api_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting vpsdash API")

    # Services may be injected before startup (tests)
    services: Services | None = getattr(app.state, "services", None)
    if services is None:
        services = create_services(get_settings())
        app.state.services = services
    logger.info(
        "Tracking operations on %s (poll every %.1fs)",
        services.client.base_url,
        services.poller.interval,
    )

    yield

    await services.close()


def _package_version() -> str:
    try:
        return version("vpsdash")
    except PackageNotFoundError:
        return "0.0.0"


def create_app(services: Services | None = None) -> FastAPI:
    """Create and configure the main FastAPI application.

    Args:
        services: Optional pre-built services (tests inject fakes here).
    """
    settings = get_settings()
    # Also runs in reload workers, which never execute __main__
    setup_logging(settings.log_level)

    app = FastAPI(
        title="vpsdash",
        description="VPS operation progress API",
        version=_package_version(),
        lifespan=lifespan,
        debug=settings.debug,
    )
    if services is not None:
        app.state.services = services

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(create_api_router())
    return app
