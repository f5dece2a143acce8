"""Repository objects backed by a live Fedora connection."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .client import FedoraClient
    from .schema import DatastreamEntry, DatastreamListing, ObjectProfile


class FedoraDatastream:
    """Datastream whose content is fetched on first access and written through on assignment."""

    def __init__(self, *, client: FedoraClient, pid: str, entry: DatastreamEntry) -> None:
        self._client = client
        self._pid = pid
        self._entry = entry
        self._content: bytes | None = None

    @property
    def id(self) -> str:
        return self._entry.dsid

    @property
    def mime_type(self) -> str | None:
        return self._entry.mime_type

    @property
    def content(self) -> bytes:
        if self._content is None:
            self._content = self._client.fetch_datastream_content(self._pid, self.id)
        return self._content

    @content.setter
    def content(self, value: bytes) -> None:
        self._client.modify_datastream_content(
            self._pid, self.id, value, mime_type=self._entry.mime_type
        )
        self._content = value


class FedoraObject:
    """Snapshot of an object's models and datastream ids, with live datastream access."""

    def __init__(
        self,
        *,
        client: FedoraClient,
        profile: ObjectProfile,
        listing: DatastreamListing,
    ) -> None:
        self._client = client
        self._profile = profile
        self._datastreams = {
            entry.dsid: FedoraDatastream(client=client, pid=profile.pid, entry=entry)
            for entry in listing.datastreams
        }

    @property
    def pid(self) -> str:
        return self._profile.pid

    @property
    def label(self) -> str | None:
        return self._profile.label

    @property
    def models(self) -> tuple[str, ...]:
        return self._profile.models

    def __contains__(self, dsid: object) -> bool:
        return dsid in self._datastreams

    def __getitem__(self, dsid: str) -> FedoraDatastream:
        return self._datastreams[dsid]

    def __iter__(self) -> Iterator[str]:
        return iter(self._datastreams)

    def __repr__(self) -> str:
        return f"FedoraObject(pid={self.pid!r}, models={self.models!r})"
