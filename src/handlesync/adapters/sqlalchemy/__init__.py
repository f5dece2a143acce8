"""SQLAlchemy adapter package for handlesync."""

from __future__ import annotations

from .mappings import association_table, create_all_tables, metadata
from .session import StartupError, is_started, open_session, shutdown, startup
from .store import AssociationStoreError, DuplicateAssociationError, SqlAlchemyAssociationStore

__all__ = [
    "AssociationStoreError",
    "DuplicateAssociationError",
    "SqlAlchemyAssociationStore",
    "StartupError",
    "association_table",
    "create_all_tables",
    "is_started",
    "metadata",
    "open_session",
    "shutdown",
    "startup",
]
