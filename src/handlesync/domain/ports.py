"""Collaborator contracts consumed by the reconciliation core."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from handlesync.domain.model import AttachmentResult, Association, HandleResponse


@runtime_checkable
class HandleService(Protocol):
    """Remote identifier-resolution API keyed by object pid."""

    def exists(self, pid: str) -> bool: ...

    def create(self, pid: str) -> HandleResponse: ...

    def delete(self, pid: str) -> HandleResponse: ...

    def canonical_url(self, pid: str) -> str: ...


@runtime_checkable
class ConfigurationStore(Protocol):
    """Read access to the content-model to datastream associations."""

    def associations_for(self, models: Iterable[str]) -> list[Association]: ...


@runtime_checkable
class Datastream(Protocol):
    @property
    def id(self) -> str: ...

    @property
    def content(self) -> bytes: ...

    @content.setter
    def content(self, value: bytes) -> None: ...


@runtime_checkable
class RepositoryObject(Protocol):
    """A digital object as seen by the reconciler; owned by the repository."""

    @property
    def pid(self) -> str: ...

    @property
    def models(self) -> Collection[str]: ...

    def __contains__(self, dsid: object) -> bool: ...

    def __getitem__(self, dsid: str) -> Datastream: ...


class HandleApplier(Protocol):
    """Embeds a Handle reference into one datastream using a configured transform."""

    def __call__(
        self,
        obj: RepositoryObject,
        dsid: str,
        transform: str,
        handle_url: str,
    ) -> AttachmentResult: ...


__all__ = [
    "ConfigurationStore",
    "Datastream",
    "HandleApplier",
    "HandleService",
    "RepositoryObject",
]
