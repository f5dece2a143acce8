"""XSLT attachment adapter."""

from __future__ import annotations

from .applier import BUNDLED_STYLESHEETS, StylesheetNotFoundError, XsltHandleApplier

__all__ = ["BUNDLED_STYLESHEETS", "StylesheetNotFoundError", "XsltHandleApplier"]
