"""SQLAlchemy table metadata for the association store."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, UniqueConstraint

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

metadata = MetaData()

association_table = Table(
    "handle_association",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("content_model", String(255), nullable=False),
    Column("datastream_id", String(64), nullable=False),
    Column("transform", String(1024), nullable=False),
    UniqueConstraint("content_model", "datastream_id", name="uq_handle_association_model_ds"),
    Index("ix_handle_association_content_model", "content_model"),
)


def create_all_tables(engine: Engine) -> None:
    metadata.create_all(engine, checkfirst=True)
