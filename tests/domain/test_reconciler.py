"""Create, sync and retract flows of the Handle reconciler."""

from __future__ import annotations

import pytest

from handlesync.domain.dublin_core import (
    find_handle_identifiers,
    parse_dublin_core,
    serialize_dublin_core,
)
from handlesync.domain.model import Association, Channel, DerivativeHook, Severity
from handlesync.domain.reconciler import HandleReconciler
from tests.helpers.dublin_core import RESOLVER, dc_document, handle_url
from tests.helpers.reconciliation import (
    FakeAssociationStore,
    FakeHandleService,
    FakeRepositoryObject,
    RecordingApplier,
)

PID = "obj:1"
MODEL = "M"
MODS = b"<mods xmlns='http://www.loc.gov/mods/v3'><titleInfo><title>x</title></titleInfo></mods>"


def _reconciler(
    handles: FakeHandleService,
    *associations: Association,
    applier: RecordingApplier | None = None,
) -> HandleReconciler:
    return HandleReconciler(
        handles=handles,
        associations=FakeAssociationStore(associations),
        applier=applier or RecordingApplier(),
        resolver_url=RESOLVER,
    )


@pytest.fixture
def association() -> Association:
    return Association(content_model=MODEL, datastream_id="OBJ", transform="add_handle.xsl")


def _handle_identifiers(obj: FakeRepositoryObject) -> list[str | None]:
    root = parse_dublin_core(obj["DC"].content)
    return [node.text for node in find_handle_identifiers(root, RESOLVER)]


# ensure_handle_and_attach


def test_ensure_creates_handle_and_attaches_once(association: Association) -> None:
    handles = FakeHandleService()
    applier = RecordingApplier()
    obj = FakeRepositoryObject(PID, (MODEL,), {"OBJ": MODS, "DC": dc_document()})

    result = _reconciler(handles, association, applier=applier).ensure_handle_and_attach(
        obj, DerivativeHook(destination_dsid="OBJ")
    )

    assert result.success is True
    assert handles.created == [PID]
    assert applier.calls == [(PID, "OBJ", "add_handle.xsl", handle_url(PID))]
    assert [message.channel for message in result.messages] == [Channel.USER_NOTICE]


def test_ensure_reports_create_failure_without_attaching(association: Association) -> None:
    handles = FakeHandleService(create_code=500, error="Internal Server Error")
    applier = RecordingApplier()
    obj = FakeRepositoryObject(PID, (MODEL,), {"OBJ": MODS})

    result = _reconciler(handles, association, applier=applier).ensure_handle_and_attach(
        obj, DerivativeHook(destination_dsid="OBJ")
    )

    assert result.success is False
    assert applier.calls == []
    assert len(result.messages) == 1
    message = result.messages[0]
    assert message.channel is Channel.OPERATIONAL_LOG
    assert message.severity is Severity.ERROR
    assert message.render() == (
        "Error constructing Handle for obj:1! Error of: Internal Server Error."
    )


def test_ensure_falls_back_to_status_code_when_no_error_reported(
    association: Association,
) -> None:
    handles = FakeHandleService(create_code=409)
    obj = FakeRepositoryObject(PID, (MODEL,), {"OBJ": MODS})

    result = _reconciler(handles, association).ensure_handle_and_attach(
        obj, DerivativeHook(destination_dsid="OBJ")
    )

    assert result.success is False
    assert "HTTP 409" in result.messages[0].render()


def test_ensure_skips_creation_when_handle_exists(association: Association) -> None:
    handles = FakeHandleService(existing={PID})
    applier = RecordingApplier()
    obj = FakeRepositoryObject(PID, (MODEL,), {"OBJ": MODS})

    result = _reconciler(handles, association, applier=applier).ensure_handle_and_attach(
        obj, DerivativeHook(destination_dsid="OBJ")
    )

    assert result.success is True
    assert handles.created == []
    assert len(applier.calls) == 1


def test_ensure_without_matching_association_is_vacuous_success(
    association: Association,
) -> None:
    handles = FakeHandleService()
    applier = RecordingApplier()
    obj = FakeRepositoryObject(PID, (MODEL,), {"OBJ": MODS, "TN": b"thumb"})

    result = _reconciler(handles, association, applier=applier).ensure_handle_and_attach(
        obj, DerivativeHook(destination_dsid="TN")
    )

    assert result.success is True
    assert result.messages == []
    assert applier.calls == []


def test_ensure_requires_the_datastream_to_be_present(association: Association) -> None:
    applier = RecordingApplier()
    obj = FakeRepositoryObject(PID, (MODEL,), {"DC": dc_document()})

    reconciler = _reconciler(FakeHandleService(), association, applier=applier)
    result = reconciler.ensure_handle_and_attach(
        obj, DerivativeHook(destination_dsid="OBJ")
    )

    assert result.success is True
    assert applier.calls == []


def test_ensure_uses_first_matching_association_only() -> None:
    first = Association(content_model="A", datastream_id="MODS", transform="first.xsl")
    second = Association(content_model="B", datastream_id="MODS", transform="second.xsl")
    applier = RecordingApplier()
    obj = FakeRepositoryObject(PID, ("A", "B"), {"MODS": MODS})

    _reconciler(FakeHandleService(), second, first, applier=applier).ensure_handle_and_attach(
        obj, DerivativeHook(destination_dsid="MODS")
    )

    assert [call[2] for call in applier.calls] == ["first.xsl"]


def test_ensure_reports_attachment_failure(association: Association) -> None:
    applier = RecordingApplier(success=False)
    obj = FakeRepositoryObject(PID, (MODEL,), {"OBJ": MODS})

    reconciler = _reconciler(FakeHandleService(), association, applier=applier)
    result = reconciler.ensure_handle_and_attach(
        obj, DerivativeHook(destination_dsid="OBJ")
    )

    assert result.success is False
    assert result.messages[0].channel is Channel.OPERATIONAL_LOG


def test_ensure_turns_unreachable_service_into_failed_result(association: Association) -> None:
    obj = FakeRepositoryObject(PID, (MODEL,), {"OBJ": MODS})

    result = _reconciler(
        FakeHandleService(unreachable=True), association
    ).ensure_handle_and_attach(obj, DerivativeHook(destination_dsid="OBJ"))

    assert result.success is False
    assert "connection refused" in result.messages[0].render()


# sync_dublin_core


def test_sync_reports_missing_dc_only_when_handle_exists() -> None:
    obj = FakeRepositoryObject(PID, (MODEL,), {"OBJ": MODS})

    result = _reconciler(FakeHandleService(existing={PID})).sync_dublin_core(obj)

    assert result.success is False
    assert len(result.messages) == 1
    assert "DC datastream" in result.messages[0].render()
    assert result.messages[0].channel is Channel.OPERATIONAL_LOG


def test_sync_reports_both_preconditions_independently() -> None:
    obj = FakeRepositoryObject(PID, (MODEL,), {"OBJ": MODS})

    result = _reconciler(FakeHandleService()).sync_dublin_core(obj)

    assert result.success is False
    rendered = result.rendered()
    assert len(rendered) == 2
    assert "Handle does not exist" in rendered[0]
    assert "DC datastream" in rendered[1]
    assert all(message.channel is Channel.OPERATIONAL_LOG for message in result.messages)


def test_sync_appends_identifier_and_writes_once() -> None:
    obj = FakeRepositoryObject(PID, (MODEL,), {"DC": dc_document("obj:1")})

    result = _reconciler(FakeHandleService(existing={PID})).sync_dublin_core(obj)

    assert result.success is True
    assert len(obj["DC"].writes) == 1
    assert _handle_identifiers(obj) == [handle_url(PID)]
    assert result.messages[0].channel is Channel.USER_NOTICE


def test_sync_replaces_stale_identifier() -> None:
    stale = handle_url(PID, prefix="10.9999")
    obj = FakeRepositoryObject(PID, (MODEL,), {"DC": dc_document(stale)})

    result = _reconciler(FakeHandleService(existing={PID})).sync_dublin_core(obj)

    assert result.success is True
    assert _handle_identifiers(obj) == [handle_url(PID)]


def test_sync_is_idempotent() -> None:
    obj = FakeRepositoryObject(PID, (MODEL,), {"DC": dc_document()})
    reconciler = _reconciler(FakeHandleService(existing={PID}))

    reconciler.sync_dublin_core(obj)
    after_first = obj["DC"].content
    second = reconciler.sync_dublin_core(obj)

    assert second.success is True
    assert second.messages == []
    assert obj["DC"].content == after_first
    assert len(obj["DC"].writes) == 1


def test_sync_leaves_current_document_untouched() -> None:
    original = serialize_dublin_core(parse_dublin_core(dc_document(handle_url(PID))))
    obj = FakeRepositoryObject(PID, (MODEL,), {"DC": original})

    result = _reconciler(FakeHandleService(existing={PID})).sync_dublin_core(obj)

    assert result.success is True
    assert result.messages == []
    assert obj["DC"].writes == []
    assert obj["DC"].content == original


def test_sync_reports_unparsable_dc() -> None:
    obj = FakeRepositoryObject(PID, (MODEL,), {"DC": b"not xml"})

    result = _reconciler(FakeHandleService(existing={PID})).sync_dublin_core(obj)

    assert result.success is False
    assert obj["DC"].writes == []


def test_repeated_ensure_and_sync_keep_a_single_handle_identifier(
    association: Association,
) -> None:
    stale = handle_url(PID, prefix="10.9999")
    obj = FakeRepositoryObject(PID, (MODEL,), {"OBJ": MODS, "DC": dc_document(stale)})
    reconciler = _reconciler(FakeHandleService(), association)
    hook = DerivativeHook(destination_dsid="OBJ")

    for _ in range(3):
        reconciler.ensure_handle_and_attach(obj, hook)
        reconciler.sync_dublin_core(obj)

    assert _handle_identifiers(obj) == [handle_url(PID)]


# retract_if_orphaned


def test_retract_without_handle_is_a_no_op(association: Association) -> None:
    handles = FakeHandleService()
    obj = FakeRepositoryObject(PID, (MODEL,), {"DC": dc_document()})

    result = _reconciler(handles, association).retract_if_orphaned(obj)

    assert result.success is True
    assert handles.deleted == []


def test_retract_keeps_handle_while_an_associated_datastream_remains(
    association: Association,
) -> None:
    handles = FakeHandleService(existing={PID})
    obj = FakeRepositoryObject(PID, (MODEL,), {"OBJ": MODS, "DC": dc_document(handle_url(PID))})

    result = _reconciler(handles, association).retract_if_orphaned(obj)

    assert result.success is True
    assert handles.deleted == []
    assert obj["DC"].writes == []


def test_retract_removes_identifier_and_deletes_handle(association: Association) -> None:
    handles = FakeHandleService(existing={PID})
    obj = FakeRepositoryObject(PID, (MODEL,), {"DC": dc_document("obj:1", handle_url(PID))})

    result = _reconciler(handles, association).retract_if_orphaned(obj)

    assert result.success is True
    assert handles.deleted == [PID]
    assert _handle_identifiers(obj) == []
    assert len(obj["DC"].writes) == 1


def test_retract_skips_dc_write_when_identifier_absent(association: Association) -> None:
    handles = FakeHandleService(existing={PID})
    obj = FakeRepositoryObject(PID, (MODEL,), {"DC": dc_document("obj:1")})

    result = _reconciler(handles, association).retract_if_orphaned(obj)

    assert result.success is True
    assert obj["DC"].writes == []
    assert handles.deleted == [PID]


@pytest.mark.parametrize("code", [204, 500])
def test_retract_accepts_deleted_and_already_absent(association: Association, code: int) -> None:
    handles = FakeHandleService(existing={PID}, delete_code=code)
    obj = FakeRepositoryObject(PID, (MODEL,), {"DC": dc_document()})

    result = _reconciler(handles, association).retract_if_orphaned(obj)

    assert result.success is True


def test_retract_reports_unexpected_delete_code(association: Association) -> None:
    handles = FakeHandleService(existing={PID}, delete_code=403, error="Forbidden")
    obj = FakeRepositoryObject(PID, (MODEL,), {"DC": dc_document()})

    result = _reconciler(handles, association).retract_if_orphaned(obj)

    assert result.success is False
    assert result.messages[0].render() == "Error deleting Handle for obj:1! Error of: Forbidden."


def test_retraction_restores_pre_handle_dublin_core(association: Association) -> None:
    original = dc_document("obj:1")
    handles = FakeHandleService()
    obj = FakeRepositoryObject(PID, (MODEL,), {"OBJ": MODS, "DC": original})
    reconciler = _reconciler(handles, association)

    reconciler.ensure_handle_and_attach(obj, DerivativeHook(destination_dsid="OBJ"))
    reconciler.sync_dublin_core(obj)
    assert _handle_identifiers(obj) == [handle_url(PID)]

    obj.purge("OBJ")
    result = reconciler.retract_if_orphaned(obj)

    assert result.success is True
    assert handles.deleted == [PID]
    assert PID not in handles.handles
    assert obj["DC"].content == serialize_dublin_core(parse_dublin_core(original))


# reconcile


def test_reconcile_present_datastream_attaches_and_syncs(association: Association) -> None:
    applier = RecordingApplier()
    obj = FakeRepositoryObject(PID, (MODEL,), {"OBJ": MODS, "DC": dc_document()})

    result = _reconciler(FakeHandleService(), association, applier=applier).reconcile(
        obj, DerivativeHook(destination_dsid="OBJ")
    )

    assert result.success is True
    assert len(applier.calls) == 1
    assert _handle_identifiers(obj) == [handle_url(PID)]
    assert len(result.messages) == 2


def test_reconcile_missing_datastream_retracts(association: Association) -> None:
    handles = FakeHandleService(existing={PID})
    obj = FakeRepositoryObject(PID, (MODEL,), {"DC": dc_document(handle_url(PID))})

    result = _reconciler(handles, association).reconcile(
        obj, DerivativeHook(destination_dsid="OBJ")
    )

    assert result.success is True
    assert handles.deleted == [PID]


def test_reconcile_stops_after_failed_creation(association: Association) -> None:
    obj = FakeRepositoryObject(PID, (MODEL,), {"OBJ": MODS, "DC": dc_document()})

    result = _reconciler(FakeHandleService(create_code=500, error="boom"), association).reconcile(
        obj, DerivativeHook(destination_dsid="OBJ")
    )

    assert result.success is False
    assert len(result.messages) == 1
    assert obj["DC"].writes == []
