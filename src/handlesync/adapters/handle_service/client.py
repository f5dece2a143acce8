"""HTTP client for a Handle minting service."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx

from handlesync.adapters.http_resilience import ResilientClient, default_client_factory
from handlesync.domain.errors import CollaboratorError
from handlesync.domain.model import HandleResponse

from .schema import parse_error_detail

if TYPE_CHECKING:
    from collections.abc import Callable

    from handlesync.config.handle_service import HandleServiceConfig
    from handlesync.config.http_resilience import ResilienceConfig

log = getLogger(__name__)


class HandleServiceError(CollaboratorError):
    """Raised when the Handle service cannot be reached or answers unexpectedly."""

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class HandleServiceClient:
    """Implements the ``HandleService`` port over ``{service_url}/{prefix}/{pid}``."""

    def __init__(
        self,
        *,
        config: HandleServiceConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or default_client_factory

    def canonical_url(self, pid: str) -> str:
        return f"{self._config.resolver_url}/{self._config.handle_for(pid)}"

    def exists(self, pid: str) -> bool:
        response = asyncio.run(self._send("GET", pid))
        if response.status_code == httpx.codes.OK:
            return True
        if response.status_code == httpx.codes.NOT_FOUND:
            return False
        raise HandleServiceError(
            f"Unexpected status {response.status_code} querying Handle for {pid}: "
            f"{_error_detail(response)}",
            code=response.status_code,
        )

    def create(self, pid: str) -> HandleResponse:
        target = self._config.target_url(pid)
        response = asyncio.run(self._send("POST", pid, data={"target": target}))
        result = _to_handle_response(response)
        if response.status_code == httpx.codes.CREATED:
            log.info("Created Handle %s -> %s", self._config.handle_for(pid), target)
        else:
            log.warning("Handle creation for %s answered %s", pid, result.code)
        return result

    def delete(self, pid: str) -> HandleResponse:
        response = asyncio.run(self._send("DELETE", pid))
        result = _to_handle_response(response)
        log.info("Deleting Handle %s answered %s", self._config.handle_for(pid), result.code)
        return result

    def _path(self, pid: str) -> str:
        return f"{quote(self._config.prefix)}/{quote(pid, safe=':')}"

    async def _send(
        self,
        method: str,
        pid: str,
        *,
        data: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            async with self._client_factory(self._resilience) as client:
                if data is None:
                    return await client.request(method, self._path(pid))
                return await client.request(method, self._path(pid), data=data)
        except httpx.HTTPError as exc:
            log.warning("Handle service request %s %s failed: %s", method, pid, exc)
            raise HandleServiceError(f"Handle service unreachable: {exc}") from exc


def _error_detail(response: httpx.Response) -> str:
    return parse_error_detail(response.content) or response.reason_phrase or "no detail"


def _to_handle_response(response: httpx.Response) -> HandleResponse:
    if response.is_success:
        return HandleResponse(code=response.status_code)
    return HandleResponse(code=response.status_code, error=_error_detail(response))
