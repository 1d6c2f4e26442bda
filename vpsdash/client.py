"""Dashboard backend REST client."""

import logging
from datetime import datetime
from typing import Any, Self

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from vpsdash.core.models import LogSnapshot, TargetRef
from vpsdash.exceptions import (
    APIError,
    AuthenticationRequiredError,
    TargetNotFoundError,
)

logger = logging.getLogger(__name__)

DELETED_STATUS = "deleted"


class AppLogs(BaseModel):
    """Response of the app logs endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str = ""
    logs: str | None = None
    status: str = ""
    deployed_at: datetime | None = Field(default=None, alias="deployedAt")

    def to_snapshot(self) -> LogSnapshot:
        return LogSnapshot(logs=self.logs, status=self.status)


class App(BaseModel):
    """An application deployed on a managed server."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    status: str = ""
    domain: str | None = None
    server_id: str | None = Field(default=None, alias="serverId")


class DashboardClient:
    """Async client for the dashboard backend.

    Wraps httpx with bearer authentication and consistent error mapping:
    401/403 raise AuthenticationRequiredError, 404 raises TargetNotFoundError
    and every other failure raises APIError.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Backend base URL, e.g. http://localhost:4000.
            token: Optional bearer token for authenticated requests.
            timeout: Request timeout in seconds.
            transport: Optional transport (tests pass httpx.MockTransport).
        """
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return str(self._http.base_url)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    # -------------------------------------------------------------------------
    # Apps
    # -------------------------------------------------------------------------

    async def list_apps(self, server_id: str) -> list[App]:
        data = await self._request("GET", f"/servers/{server_id}/apps")
        return [App.model_validate(item) for item in data or []]

    async def get_app(self, target: TargetRef) -> App:
        data = await self._request("GET", self._app_path(target))
        return App.model_validate(data)

    async def deploy_app(self, target: TargetRef) -> Any:
        return await self._request("POST", f"{self._app_path(target)}/deploy", {})

    async def stop_app(self, target: TargetRef) -> Any:
        return await self._request("POST", f"{self._app_path(target)}/stop", {})

    async def delete_app(self, target: TargetRef) -> None:
        await self._request("DELETE", self._app_path(target))

    async def get_app_logs(self, target: TargetRef) -> AppLogs:
        data = await self._request("GET", f"{self._app_path(target)}/logs")
        try:
            return AppLogs.model_validate(data)
        except ValidationError as e:
            raise APIError(f"Unexpected logs response: {e.errors()[0]['msg']}") from e

    # -------------------------------------------------------------------------
    # Poller fetchers
    # -------------------------------------------------------------------------

    async def fetch_logs(self, target: TargetRef) -> LogSnapshot:
        """Log fetcher for deploy and stop runs."""
        return (await self.get_app_logs(target)).to_snapshot()

    async def fetch_delete_state(self, target: TargetRef) -> LogSnapshot:
        """Log fetcher for delete runs.

        A target whose logs endpoint answers 404 no longer exists, which
        is reported as the terminal "deleted" status.
        """
        try:
            return await self.fetch_logs(target)
        except TargetNotFoundError:
            return LogSnapshot(status=DELETED_STATUS)

    # -------------------------------------------------------------------------
    # Private
    # -------------------------------------------------------------------------

    @staticmethod
    def _app_path(target: TargetRef) -> str:
        return f"/servers/{target.server_id}/apps/{target.app_id}"

    async def _request(
        self, method: str, endpoint: str, data: dict[str, Any] | None = None
    ) -> Any:
        """Send a request and decode the JSON body.

        Raises:
            AuthenticationRequiredError: On 401 or 403.
            TargetNotFoundError: On 404.
            APIError: On any other failure.
        """
        try:
            response = await self._http.request(method, endpoint, json=data)
        except httpx.HTTPError as e:
            raise APIError(f"Request to {endpoint} failed: {e}") from e

        if response.is_success:
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                raise APIError(f"Invalid JSON from {endpoint}") from e

        message = self._error_message(response)
        logger.debug("%s %s -> %d: %s", method, endpoint, response.status_code, message)
        match response.status_code:
            case 401 | 403:
                raise AuthenticationRequiredError(message, response.status_code)
            case 404:
                raise TargetNotFoundError(endpoint)
            case _:
                raise APIError(message, response.status_code)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            return body["message"]
        return f"Request failed with status {response.status_code}"
