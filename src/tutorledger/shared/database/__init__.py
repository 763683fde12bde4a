from .base_model import Base, OwnedMixin, utcnow
from .engine import (
    build_engine,
    build_session_factory,
    close_database_engine as close_database,
    create_database_engine as init_database,
    create_schema,
    get_engine,
    get_session_factory,
)
from .owned_repository import OwnedRepository
from .rls import apply_owner_scope
from .unit_of_work import SQLAlchemyUnitOfWork

__all__ = [
    "Base",
    "OwnedMixin",
    "utcnow",
    "build_engine",
    "build_session_factory",
    "init_database",
    "close_database",
    "create_schema",
    "get_engine",
    "get_session_factory",
    "OwnedRepository",
    "apply_owner_scope",
    "SQLAlchemyUnitOfWork",
]
