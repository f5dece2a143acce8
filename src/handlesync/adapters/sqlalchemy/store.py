"""Association store backed by an SQLAlchemy session."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import insert, select
from sqlalchemy.exc import SQLAlchemyError

from handlesync.domain.errors import CollaboratorError
from handlesync.domain.model import Association

from .mappings import association_table

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.engine import Row
    from sqlalchemy.orm import Session

log = getLogger(__name__)


class DuplicateAssociationError(ValueError):
    """Raised when a content model already maps the given datastream."""


class AssociationStoreError(CollaboratorError):
    """Raised when the association table cannot be read."""


def _to_association(row: Row[tuple[int, str, str, str]]) -> Association:
    return Association(
        content_model=row.content_model,
        datastream_id=row.datastream_id,
        transform=row.transform,
    )


class SqlAlchemyAssociationStore:
    """``ConfigurationStore`` reading ``handle_association`` rows."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def associations_for(self, models: Iterable[str]) -> list[Association]:
        """Return associations grouped by ``models`` order, insertion order within a model."""

        ordered_models = list(dict.fromkeys(models))
        if not ordered_models:
            return []
        stmt = (
            select(association_table)
            .where(association_table.c.content_model.in_(ordered_models))
            .order_by(association_table.c.id)
        )
        try:
            rows = self.session.execute(stmt).all()
        except SQLAlchemyError as exc:
            log.warning("Association lookup for %s failed: %s", ", ".join(ordered_models), exc)
            raise AssociationStoreError(f"Unable to read associations: {exc}") from exc
        by_model: dict[str, list[Association]] = {model: [] for model in ordered_models}
        for row in rows:
            by_model[row.content_model].append(_to_association(row))
        return [association for model in ordered_models for association in by_model[model]]

    def all(self) -> list[Association]:
        stmt = select(association_table).order_by(
            association_table.c.content_model, association_table.c.id
        )
        return [_to_association(row) for row in self.session.execute(stmt).all()]

    def add(self, association: Association) -> None:
        stmt = insert(association_table).values(
            content_model=association.content_model,
            datastream_id=association.datastream_id,
            transform=association.transform,
        )
        existing = (
            select(association_table.c.id)
            .where(association_table.c.content_model == association.content_model)
            .where(association_table.c.datastream_id == association.datastream_id)
        )
        if self.session.execute(existing).first() is not None:
            raise DuplicateAssociationError(
                f"{association.content_model} already associates {association.datastream_id}"
            )
        self.session.execute(stmt)
        log.info(
            "Associated %s/%s with %s",
            association.content_model,
            association.datastream_id,
            association.transform,
        )
