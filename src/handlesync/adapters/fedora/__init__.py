"""Fedora 3 repository adapter."""

from __future__ import annotations

from .client import FedoraAPIError, FedoraClient, FedoraObjectNotFoundError
from .objects import FedoraDatastream, FedoraObject
from .schema import (
    DatastreamListing,
    FedoraSchemaError,
    ObjectProfile,
    parse_datastream_listing,
    parse_object_profile,
)

__all__ = [
    "DatastreamListing",
    "FedoraAPIError",
    "FedoraClient",
    "FedoraDatastream",
    "FedoraObject",
    "FedoraObjectNotFoundError",
    "FedoraSchemaError",
    "ObjectProfile",
    "parse_datastream_listing",
    "parse_object_profile",
]
