"""Application orchestration entry points."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from handlesync.adapters.fedora import FedoraClient
from handlesync.adapters.handle_service import HandleServiceClient
from handlesync.adapters.sqlalchemy import (
    SqlAlchemyAssociationStore,
    is_started,
    open_session,
    startup,
)
from handlesync.adapters.xslt import XsltHandleApplier
from handlesync.config import get_fedora_config, get_handle_service_config
from handlesync.domain.errors import CollaboratorError
from handlesync.domain.model import (
    Association,
    Channel,
    DerivativeHook,
    Message,
    OperationResult,
    Severity,
)
from handlesync.domain.reconciler import HandleReconciler

if TYPE_CHECKING:
    from handlesync.domain.ports import HandleApplier, HandleService, RepositoryObject

ObjectLoader = Callable[[str], "RepositoryObject"]
Operation = Callable[[HandleReconciler, "RepositoryObject"], OperationResult]

log = getLogger(__name__)

_LEVEL_BY_SEVERITY = {
    Severity.ERROR: logging.ERROR,
    Severity.WARNING: logging.WARNING,
    Severity.NOTICE: logging.INFO,
    Severity.INFO: logging.INFO,
}


@dataclass(slots=True)
class Services:
    """External collaborators the reconciler is wired with."""

    handles: HandleService
    load_object: ObjectLoader
    applier: HandleApplier
    resolver_url: str


def build_services() -> Services:
    """Wire the HTTP adapters from environment configuration."""

    handle_config = get_handle_service_config()
    fedora = FedoraClient(config=get_fedora_config())
    return Services(
        handles=HandleServiceClient(config=handle_config),
        load_object=fedora.load_object,
        applier=XsltHandleApplier(),
        resolver_url=handle_config.resolver_url,
    )


def emit_result(result: OperationResult, *, logger: logging.Logger = log) -> None:
    """Log every message of ``result`` on the channel it was raised for."""

    for message in result.messages:
        if message.channel is Channel.OPERATIONAL_LOG:
            level = _LEVEL_BY_SEVERITY.get(message.severity, logging.WARNING)
        else:
            level = logging.INFO
        logger.log(level, message.render())


def _run(pid: str, operation: Operation, *, services: Services | None) -> OperationResult:
    if not is_started():
        startup()
    active = services or build_services()

    with open_session() as session:
        reconciler = HandleReconciler(
            handles=active.handles,
            associations=SqlAlchemyAssociationStore(session),
            applier=active.applier,
            resolver_url=active.resolver_url,
        )
        try:
            obj = active.load_object(pid)
        except CollaboratorError as exc:
            result = OperationResult.failed(
                Message.log_error("Unable to load @pid: @error", pid=pid, error=exc)
            )
        else:
            result = operation(reconciler, obj)

    emit_result(result)
    log.info("Finished %s: success=%s, messages=%s", pid, result.success, len(result.messages))
    return result


def ensure_handle(pid: str, dsid: str, *, services: Services | None = None) -> OperationResult:
    """Mint the Handle for ``pid`` if needed and embed it in ``dsid``."""

    hook = DerivativeHook(destination_dsid=dsid)
    return _run(pid, lambda r, obj: r.ensure_handle_and_attach(obj, hook), services=services)


def sync_dublin_core(pid: str, *, services: Services | None = None) -> OperationResult:
    return _run(pid, lambda r, obj: r.sync_dublin_core(obj), services=services)


def retract_handle(pid: str, *, services: Services | None = None) -> OperationResult:
    return _run(pid, lambda r, obj: r.retract_if_orphaned(obj), services=services)


def process_derivative(
    pid: str,
    dsid: str,
    *,
    source_dsid: str | None = None,
    services: Services | None = None,
) -> OperationResult:
    """Handle a derivative event on ``dsid`` end to end."""

    hook = DerivativeHook(destination_dsid=dsid, source_dsid=source_dsid)
    return _run(pid, lambda r, obj: r.reconcile(obj, hook), services=services)


def add_association(content_model: str, datastream_id: str, transform: str) -> Association:
    if not is_started():
        startup()
    association = Association(
        content_model=content_model,
        datastream_id=datastream_id,
        transform=transform,
    )
    with open_session() as session:
        SqlAlchemyAssociationStore(session).add(association)
        session.commit()
    return association


def list_associations() -> list[Association]:
    if not is_started():
        startup()
    with open_session() as session:
        return SqlAlchemyAssociationStore(session).all()
