"""Handle service adapter."""

from __future__ import annotations

from .client import HandleServiceClient, HandleServiceError
from .schema import HandleErrorPayload, parse_error_detail

__all__ = [
    "HandleErrorPayload",
    "HandleServiceClient",
    "HandleServiceError",
    "parse_error_detail",
]
