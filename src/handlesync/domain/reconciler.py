"""Keeps an object's Handle and its Dublin Core identifier in step with configuration.

Per object the Handle and DC entry move through three states::

    NO_HANDLE -> (create) -> HANDLE_NO_DC_ENTRY -> (sync) -> HANDLE_WITH_DC_ENTRY

and any state with a Handle drops back to ``NO_HANDLE`` once no configured
datastream remains. Every operation checks current state before writing, so
repeated triggers converge. Nothing serialises concurrent triggers for the same
pid; two racing DC updates can still lose one write.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from handlesync.domain.dublin_core import (
    DEFAULT_RESOLVER_URL,
    parse_dublin_core,
    remove_handle_identifier,
    serialize_dublin_core,
    set_handle_identifier,
)
from handlesync.domain.errors import CollaboratorError
from handlesync.domain.model import Message, OperationResult

if TYPE_CHECKING:
    from handlesync.domain.model import Association, DerivativeHook
    from handlesync.domain.ports import (
        ConfigurationStore,
        HandleApplier,
        HandleService,
        RepositoryObject,
    )

DC_DATASTREAM: Final[str] = "DC"
CREATED: Final[int] = 201
DELETE_ACCEPTED: Final[frozenset[int]] = frozenset({204, 500})


class HandleReconciler:
    """Creates, reflects and retracts Handles for repository objects."""

    def __init__(
        self,
        *,
        handles: HandleService,
        associations: ConfigurationStore,
        applier: HandleApplier,
        resolver_url: str = DEFAULT_RESOLVER_URL,
    ) -> None:
        self._handles = handles
        self._associations = associations
        self._applier = applier
        self._resolver_url = resolver_url

    def ensure_handle_and_attach(
        self, obj: RepositoryObject, hook: DerivativeHook
    ) -> OperationResult:
        """Mint the object's Handle if needed, then embed it in the hook's datastream."""

        result = OperationResult.ok()
        try:
            if not self._handles.exists(obj.pid):
                response = self._handles.create(obj.pid)
                if response.code != CREATED:
                    return OperationResult.failed(
                        Message.log_error(
                            "Error constructing Handle for @obj! Error of: @error.",
                            obj=obj.pid,
                            error=response.error or f"HTTP {response.code}",
                        )
                    )

            association = self._first_applicable(obj, hook.destination_dsid)
            if association is None:
                return result
            attachment = self._applier(
                obj,
                association.datastream_id,
                association.transform,
                self._handles.canonical_url(obj.pid),
            )
        except CollaboratorError as exc:
            return _collaborator_failure(obj, exc)

        result.add(attachment.message, success=attachment.success)
        return result

    def sync_dublin_core(self, obj: RepositoryObject) -> OperationResult:
        """Reflect the canonical Handle URL into the object's ``DC`` datastream."""

        try:
            handle_exists = self._handles.exists(obj.pid)
        except CollaboratorError as exc:
            return _collaborator_failure(obj, exc)

        result = OperationResult.ok()
        if not handle_exists:
            result.add(
                Message.log_error(
                    "Unable to update the Dublin Core for @pid as a Handle does not exist.",
                    pid=obj.pid,
                ),
                success=False,
            )
        if DC_DATASTREAM not in obj:
            result.add(
                Message.log_error(
                    "Unable to update the Dublin Core for @pid as it has no @dsid datastream.",
                    pid=obj.pid,
                    dsid=DC_DATASTREAM,
                ),
                success=False,
            )
        if not result.success:
            return result

        try:
            datastream = obj[DC_DATASTREAM]
            root = parse_dublin_core(datastream.content)
            handle_url = self._handles.canonical_url(obj.pid)
            if not set_handle_identifier(root, handle_url, self._resolver_url):
                return OperationResult(success=True, messages=[])
            datastream.content = serialize_dublin_core(root)
        except CollaboratorError as exc:
            return _collaborator_failure(obj, exc)

        return OperationResult.ok(
            Message.notice("Updated the Handle in the Dublin Core for @pid.", pid=obj.pid)
        )

    def retract_if_orphaned(self, obj: RepositoryObject) -> OperationResult:
        """Delete the Handle and its DC entry once no configured datastream remains."""

        try:
            if not self._handles.exists(obj.pid):
                return OperationResult.ok()
            associations = self._associations.associations_for(obj.models)
            if any(association.datastream_id in obj for association in associations):
                return OperationResult.ok()

            handle_url = self._handles.canonical_url(obj.pid)
            if DC_DATASTREAM in obj:
                datastream = obj[DC_DATASTREAM]
                root = parse_dublin_core(datastream.content)
                if remove_handle_identifier(root, handle_url):
                    datastream.content = serialize_dublin_core(root)

            response = self._handles.delete(obj.pid)
        except CollaboratorError as exc:
            return _collaborator_failure(obj, exc)

        if response.code not in DELETE_ACCEPTED:
            return OperationResult.failed(
                Message.log_error(
                    "Error deleting Handle for @obj! Error of: @error.",
                    obj=obj.pid,
                    error=response.error or f"HTTP {response.code}",
                )
            )
        return OperationResult.ok()

    def reconcile(self, obj: RepositoryObject, hook: DerivativeHook) -> OperationResult:
        """Run the operations a derivative event on ``hook.destination_dsid`` calls for.

        A present datastream gets its Handle ensured, attached and mirrored into DC;
        an absent one may leave the object orphaned, so retraction is attempted.
        """

        if hook.destination_dsid not in obj:
            return self.retract_if_orphaned(obj)
        result = self.ensure_handle_and_attach(obj, hook)
        if not result.success:
            return result
        return result.merge(self.sync_dublin_core(obj))

    def _first_applicable(self, obj: RepositoryObject, dsid: str) -> Association | None:
        # first match wins even when other models also map this datastream
        for association in self._associations.associations_for(obj.models):
            if association.datastream_id == dsid and dsid in obj:
                return association
        return None


def _collaborator_failure(obj: RepositoryObject, exc: CollaboratorError) -> OperationResult:
    return OperationResult.failed(
        Message.log_error("Handle processing failed for @pid: @error", pid=obj.pid, error=exc)
    )
