"""Fedora 3 REST API response schemas."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from lxml import etree
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from handlesync.domain.errors import CollaboratorError

if TYPE_CHECKING:
    from lxml.etree import _Element

MODEL_URI_PREFIX: Final[str] = "info:fedora/"


class FedoraSchemaError(CollaboratorError):
    """Raised when a Fedora response body is not the expected XML document."""


class FedoraBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class ObjectProfile(FedoraBaseModel):
    pid: str
    label: str | None = Field(default=None, alias="objLabel")
    state: str | None = Field(default=None, alias="objState")
    models: tuple[str, ...] = Field(default=(), alias="objModels")

    @field_validator("models", mode="before")
    @classmethod
    def _strip_model_uris(cls, value: object) -> object:
        if not isinstance(value, (list, tuple)):
            return value
        seen: dict[str, None] = {}
        for item in value:
            model = str(item).strip().removeprefix(MODEL_URI_PREFIX)
            if model:
                seen.setdefault(model, None)
        return tuple(seen)


class DatastreamEntry(FedoraBaseModel):
    dsid: str
    label: str | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")


class DatastreamListing(FedoraBaseModel):
    pid: str
    datastreams: tuple[DatastreamEntry, ...] = ()

    def get(self, dsid: str) -> DatastreamEntry | None:
        for entry in self.datastreams:
            if entry.dsid == dsid:
                return entry
        return None


def _parse(body: bytes, expected: str) -> _Element:
    try:
        root = etree.fromstring(body, etree.XMLParser(remove_blank_text=True))
    except etree.XMLSyntaxError as exc:
        raise FedoraSchemaError(f"Unparsable {expected} document: {exc}") from exc
    if etree.QName(root).localname != expected:
        raise FedoraSchemaError(f"Expected {expected}, got {etree.QName(root).localname}")
    return root


def _child_text(root: _Element, name: str) -> str | None:
    values = root.xpath(f"*[local-name() = '{name}']/text()")
    return str(values[0]) if values else None


def parse_object_profile(body: bytes) -> ObjectProfile:
    root = _parse(body, "objectProfile")
    payload = {
        "pid": root.get("pid"),
        "objLabel": _child_text(root, "objLabel"),
        "objState": _child_text(root, "objState"),
        "objModels": [
            str(text)
            for text in root.xpath(
                "*[local-name() = 'objModels']/*[local-name() = 'model']/text()"
            )
        ],
    }
    try:
        return ObjectProfile.model_validate(payload)
    except ValidationError as exc:
        raise FedoraSchemaError(f"Invalid object profile: {exc}") from exc


def parse_datastream_listing(body: bytes) -> DatastreamListing:
    root = _parse(body, "objectDatastreams")
    entries = [
        {"dsid": node.get("dsid"), "label": node.get("label"), "mimeType": node.get("mimeType")}
        for node in root.xpath("*[local-name() = 'datastream']")
    ]
    try:
        return DatastreamListing.model_validate({"pid": root.get("pid"), "datastreams": entries})
    except ValidationError as exc:
        raise FedoraSchemaError(f"Invalid datastream listing: {exc}") from exc
