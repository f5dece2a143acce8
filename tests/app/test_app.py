from __future__ import annotations

import logging

import pytest

from handlesync import app as app_module
from handlesync.adapters.fedora import FedoraObjectNotFoundError
from handlesync.adapters.sqlalchemy import DuplicateAssociationError
from handlesync.app import (
    Services,
    add_association,
    emit_result,
    ensure_handle,
    list_associations,
    process_derivative,
    retract_handle,
    sync_dublin_core,
)
from handlesync.domain.model import Message, OperationResult
from tests.helpers.dublin_core import RESOLVER, dc_document, handle_url
from tests.helpers.reconciliation import (
    FakeHandleService,
    FakeRepositoryObject,
    RecordingApplier,
)

PID = "islandora:42"
MODEL = "islandora:sp_basic_image"

pytestmark = pytest.mark.usefixtures("started_adapter")


def _services(
    obj: FakeRepositoryObject,
    handles: FakeHandleService | None = None,
    applier: RecordingApplier | None = None,
) -> Services:
    def load_object(pid: str) -> FakeRepositoryObject:
        if pid != obj.pid:
            raise FedoraObjectNotFoundError(f"Not found: objects/{pid}", code=404)
        return obj

    return Services(
        handles=handles or FakeHandleService(),
        load_object=load_object,
        applier=applier or RecordingApplier(),
        resolver_url=RESOLVER,
    )


def test_add_and_list_associations() -> None:
    added = add_association(MODEL, "OBJ", "add_handle_to_mods.xsl")

    assert list_associations() == [added]
    with pytest.raises(DuplicateAssociationError):
        add_association(MODEL, "OBJ", "other.xsl")


def test_ensure_handle_uses_stored_associations() -> None:
    add_association(MODEL, "OBJ", "add_handle_to_mods.xsl")
    applier = RecordingApplier()
    handles = FakeHandleService()
    obj = FakeRepositoryObject(PID, (MODEL,), {"OBJ": b"<mods/>"})

    result = ensure_handle(PID, "OBJ", services=_services(obj, handles, applier))

    assert result.success is True
    assert handles.created == [PID]
    assert applier.calls == [(PID, "OBJ", "add_handle_to_mods.xsl", handle_url(PID))]


def test_sync_dublin_core_writes_identifier() -> None:
    obj = FakeRepositoryObject(PID, (MODEL,), {"DC": dc_document()})

    result = sync_dublin_core(PID, services=_services(obj, FakeHandleService(existing={PID})))

    assert result.success is True
    assert handle_url(PID).encode() in obj["DC"].content


def test_retract_handle_deletes_orphaned_handle() -> None:
    add_association(MODEL, "OBJ", "add_handle_to_mods.xsl")
    handles = FakeHandleService(existing={PID})
    obj = FakeRepositoryObject(PID, (MODEL,), {"DC": dc_document(handle_url(PID))})

    result = retract_handle(PID, services=_services(obj, handles))

    assert result.success is True
    assert handles.deleted == [PID]


def test_process_derivative_runs_full_reconciliation() -> None:
    add_association(MODEL, "OBJ", "add_handle_to_mods.xsl")
    obj = FakeRepositoryObject(PID, (MODEL,), {"OBJ": b"<mods/>", "DC": dc_document()})

    result = process_derivative(PID, "OBJ", source_dsid="OBJ", services=_services(obj))

    assert result.success is True
    assert handle_url(PID).encode() in obj["DC"].content


def test_unknown_object_becomes_failed_result(caplog: pytest.LogCaptureFixture) -> None:
    obj = FakeRepositoryObject(PID, (MODEL,), {})

    with caplog.at_level(logging.INFO, logger=app_module.__name__):
        result = sync_dublin_core("islandora:missing", services=_services(obj))

    assert result.success is False
    assert "Unable to load islandora:missing" in result.messages[0].render()
    assert any(record.levelno == logging.ERROR for record in caplog.records)


def test_emit_result_logs_each_channel_at_its_level(caplog: pytest.LogCaptureFixture) -> None:
    result = OperationResult.ok(Message.notice("Updated @pid.", pid=PID))
    result.add(Message.log_error("Broken @pid.", pid=PID), success=False)
    logger = logging.getLogger("tests.emit")

    with caplog.at_level(logging.DEBUG, logger="tests.emit"):
        emit_result(result, logger=logger)

    assert [(record.levelno, record.getMessage()) for record in caplog.records] == [
        (logging.INFO, f"Updated {PID}."),
        (logging.ERROR, f"Broken {PID}."),
    ]
