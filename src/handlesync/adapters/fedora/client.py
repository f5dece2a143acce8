"""HTTP client for the Fedora 3 REST API."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx

from handlesync.adapters.http_resilience import ResilientClient, default_client_factory
from handlesync.domain.errors import CollaboratorError

from .objects import FedoraObject
from .schema import parse_datastream_listing, parse_object_profile

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from handlesync.config.fedora import FedoraConfig
    from handlesync.config.http_resilience import ResilienceConfig

    from .schema import DatastreamListing, ObjectProfile

log = getLogger(__name__)

DEFAULT_XML_MIMETYPE = "text/xml"


class FedoraAPIError(CollaboratorError):
    """Raised when Fedora cannot be reached or rejects a request."""

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class FedoraObjectNotFoundError(FedoraAPIError):
    """Raised when the requested object or datastream does not exist."""


class FedoraClient:
    """Low-level HTTP client for object profiles and datastream content."""

    def __init__(
        self,
        *,
        config: FedoraConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or default_client_factory

    def load_object(self, pid: str) -> FedoraObject:
        """Fetch the profile and datastream listing needed to reconcile ``pid``."""

        profile = self.fetch_object_profile(pid)
        listing = self.fetch_datastream_listing(pid)
        log.debug("Loaded %s with models %s", pid, ", ".join(profile.models))
        return FedoraObject(client=self, profile=profile, listing=listing)

    def fetch_object_profile(self, pid: str) -> ObjectProfile:
        response = self._request("GET", f"objects/{_segment(pid)}", params={"format": "xml"})
        return parse_object_profile(response.content)

    def fetch_datastream_listing(self, pid: str) -> DatastreamListing:
        response = self._request(
            "GET", f"objects/{_segment(pid)}/datastreams", params={"format": "xml"}
        )
        return parse_datastream_listing(response.content)

    def fetch_datastream_content(self, pid: str, dsid: str) -> bytes:
        response = self._request(
            "GET", f"objects/{_segment(pid)}/datastreams/{_segment(dsid)}/content"
        )
        return response.content

    def modify_datastream_content(
        self,
        pid: str,
        dsid: str,
        content: bytes,
        *,
        mime_type: str | None = None,
    ) -> None:
        self._request(
            "PUT",
            f"objects/{_segment(pid)}/datastreams/{_segment(dsid)}",
            content=content,
            headers={"Content-Type": mime_type or DEFAULT_XML_MIMETYPE},
        )
        log.info("Modified datastream %s of %s (%d bytes)", dsid, pid, len(content))

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        content: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        return asyncio.run(
            self._request_async(method, path, params=params, content=content, headers=headers)
        )

    async def _request_async(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None,
        content: bytes | None,
        headers: Mapping[str, str] | None,
    ) -> httpx.Response:
        try:
            async with self._client_factory(self._resilience) as client:
                response = await client.request(
                    method, path, params=params, content=content, headers=headers
                )
        except httpx.HTTPError as exc:
            raise FedoraAPIError(f"Fedora request {method} {path} failed: {exc}") from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            raise FedoraObjectNotFoundError(f"Not found: {path}", code=response.status_code)
        if response.is_error:
            log.error("Fedora %s %s answered %s", method, path, response.status_code)
            raise FedoraAPIError(
                f"Fedora {method} {path} answered {response.status_code} "
                f"{response.reason_phrase}",
                code=response.status_code,
            )
        return response


def _segment(value: str) -> str:
    return quote(value, safe=":")
