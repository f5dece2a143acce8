"""Engine lifecycle for the association store."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from handlesync.config.storage import get_database_config

from .mappings import create_all_tables

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the store is used before ``startup`` or started twice."""


@dataclass(slots=True)
class _Registry:
    engine: Engine | None = None
    sessions: sessionmaker[Session] | None = None


_REGISTRY = _Registry()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Bind the store to ``engine`` (or a new one for ``database_uri``) and create its table."""

    if _REGISTRY.engine is not None and not force:
        raise StartupError("Association store already started; pass force=True to rebind it.")

    bound = engine or create_engine(database_uri or get_database_config().uri)
    create_all_tables(bound)
    _REGISTRY.engine = bound
    _REGISTRY.sessions = sessionmaker(bind=bound, expire_on_commit=False)
    log.debug("Association store bound to %s", bound.url.render_as_string(hide_password=True))
    return bound


def is_started() -> bool:
    return _REGISTRY.engine is not None


def shutdown() -> None:
    if _REGISTRY.engine is not None:
        _REGISTRY.engine.dispose()
    _REGISTRY.engine = None
    _REGISTRY.sessions = None


def open_session() -> Session:
    if _REGISTRY.sessions is None:
        raise StartupError("Association store not started; call startup() first.")
    return _REGISTRY.sessions()
