"""Async HTTP session shared by the Handle service and Fedora adapters."""

from __future__ import annotations

from contextlib import AsyncExitStack
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import RetryTransport

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from handlesync.config.http_resilience import ResilienceConfig

log = getLogger(__name__)


class ResilientClient:
    """``httpx.AsyncClient`` for one service, configured from its ``ResilienceConfig``.

    Requests go through a ``RetryTransport`` built from the config's retry policy,
    carry basic auth when credentials are set and wait on an ``AsyncLimiter`` when
    a rate limit is configured. ``transport`` replaces the network layer beneath the
    retries, which is how tests plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )
        self._client = httpx.AsyncClient(
            base_url=config.base_url or "",
            timeout=config.timeout_seconds,
            headers=dict(config.default_headers or {}),
            auth=httpx.BasicAuth(*config.auth) if config.auth else None,
            transport=RetryTransport(transport=transport, retry=config.retry.build()),
        )

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        data: Mapping[str, str] | None = None,
        content: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        async with AsyncExitStack() as stack:
            if self._limiter is not None:
                await stack.enter_async_context(self._limiter)
            response = await self._client.request(
                method,
                url,
                params=params,
                data=data,
                content=content,
                headers=headers,
            )
        log.debug("%s %s %s -> %s", self.config.name, method, url, response.status_code)
        return response


def default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)
