"""Errors raised by collaborators of the reconciliation core."""

from __future__ import annotations


class CollaboratorError(RuntimeError):
    """Raised by an adapter when an external system cannot fulfil a request.

    The reconciler turns these into failed results; they never escape an operation.
    """


class DublinCoreError(CollaboratorError):
    """Raised when a DC datastream cannot be parsed as XML."""
