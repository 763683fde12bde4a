"""
Owner-scoped async SQLAlchemy repository.

Every statement built here carries ``owner_id == :owner``; a row that belongs
to another owner is indistinguishable from a row that does not exist.
"""
from __future__ import annotations

from typing import Any, Generic, List, Mapping, Optional, Sequence, Type, TypeVar
from uuid import UUID

from sqlalchemy import Select, delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from tutorledger.shared.database.base_model import Base
from tutorledger.shared.exceptions import ConflictError, DomainError, NotFoundError, StoreError
from tutorledger.shared.logging import get_logger

logger = get_logger(__name__)

TEntity = TypeVar("TEntity")
TModel = TypeVar("TModel", bound=Base)


class OwnedRepository(Generic[TEntity, TModel]):
    """
    Generic owner-scoped repository.

    Subclasses set ``model_class`` and implement ``_to_entity``, the single
    decode boundary from ORM row to domain entity.

    Attributes:
        session: Injected async session (the store client)
        page_size: Default cap for search results; None means unbounded
    """

    model_class: Type[TModel]
    entity_name: str = "Entity"

    def __init__(self, session: AsyncSession, page_size: Optional[int] = None) -> None:
        self.session = session
        self.page_size = page_size

    def _to_entity(self, model: TModel) -> TEntity:
        raise NotImplementedError("Subclass must implement _to_entity")

    # --- statement builders ---------------------------------------------------
    def _owned(self, owner_id: UUID) -> Select:
        return select(self.model_class).where(self.model_class.owner_id == owner_id)

    def _by_id(self, entity_id: UUID, owner_id: UUID) -> Select:
        return self._owned(owner_id).where(self.model_class.id == entity_id)

    # --- reads ----------------------------------------------------------------
    async def _get_model(self, entity_id: UUID, owner_id: UUID) -> Optional[TModel]:
        try:
            result = await self.session.execute(self._by_id(entity_id, owner_id))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._map_error(e, "get", owner_id=owner_id, entity_id=entity_id)

    async def find(self, entity_id: UUID, owner_id: UUID) -> Optional[TEntity]:
        """Entity if it exists for this owner, None otherwise."""
        model = await self._get_model(entity_id, owner_id)
        return self._to_entity(model) if model is not None else None

    async def get(self, entity_id: UUID, owner_id: UUID) -> TEntity:
        """Entity for this owner; raises NotFoundError otherwise."""
        model = await self._get_model(entity_id, owner_id)
        if model is None:
            raise self._not_found(entity_id)
        return self._to_entity(model)

    async def _list(self, stmt: Select) -> List[TEntity]:
        try:
            result = await self.session.execute(stmt)
            return [self._to_entity(m) for m in result.scalars().all()]
        except SQLAlchemyError as e:
            raise self._map_error(e, "list")

    async def _search(
        self,
        field: InstrumentedAttribute,
        query: str,
        owner_id: UUID,
        order_by: Sequence[Any],
        limit: Optional[int],
    ) -> List[TEntity]:
        """Case-insensitive substring match on ``field``; empty query lists everything."""
        stmt = self._owned(owner_id)
        needle = (query or "").strip()
        if needle:
            stmt = stmt.where(field.icontains(needle, autoescape=True))
        stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        return await self._list(stmt)

    # --- writes ---------------------------------------------------------------
    async def _insert(self, owner_id: UUID, **values: Any) -> TEntity:
        model = self.model_class(owner_id=owner_id, **values)
        try:
            self.session.add(model)
            await self.session.flush()
        except SQLAlchemyError as e:
            raise self._map_error(e, "create", owner_id=owner_id)
        logger.info(f"Created {self.entity_name}", owner_id=str(owner_id), entity_id=str(model.id))
        return self._to_entity(model)

    async def _apply_changes(self, entity_id: UUID, owner_id: UUID, changes: Mapping[str, Any]) -> TEntity:
        """
        Set only the supplied columns. With no changes this is a scoped read-back.
        """
        model = await self._get_model(entity_id, owner_id)
        if model is None:
            raise self._not_found(entity_id)
        if not changes:
            return self._to_entity(model)
        try:
            for key, value in changes.items():
                setattr(model, key, value)
            await self.session.flush()
        except SQLAlchemyError as e:
            raise self._map_error(e, "update", owner_id=owner_id, entity_id=entity_id)
        logger.info(
            f"Updated {self.entity_name}",
            owner_id=str(owner_id),
            entity_id=str(entity_id),
            fields=sorted(changes),
        )
        return self._to_entity(model)

    async def delete(self, entity_id: UUID, owner_id: UUID) -> None:
        """Plain delete by (id, owner). Deleting an absent row is not an error."""
        stmt = delete(self.model_class).where(
            self.model_class.id == entity_id,
            self.model_class.owner_id == owner_id,
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            raise self._map_error(e, "delete", owner_id=owner_id, entity_id=entity_id)
        logger.info(
            f"Deleted {self.entity_name}",
            owner_id=str(owner_id),
            entity_id=str(entity_id),
            rows=result.rowcount,
        )

    # --- errors ---------------------------------------------------------------
    def _not_found(self, entity_id: UUID) -> NotFoundError:
        return NotFoundError(
            f"{self.entity_name} not found",
            code=f"{self.entity_name.lower()}_not_found",
            details={"id": str(entity_id)},
        )

    def _map_error(self, error: Exception, operation: str, **context: Any) -> DomainError:
        """Map store errors to domain errors, keeping the cause."""
        ctx = {k: str(v) for k, v in context.items()}
        logger.error(
            f"{self.entity_name} {operation} failed",
            error=str(error),
            error_type=type(error).__name__,
            **ctx,
        )
        if isinstance(error, IntegrityError):
            mapped: DomainError = ConflictError(f"{self.entity_name} {operation} violated a store constraint")
        else:
            mapped = StoreError(f"{self.entity_name} {operation} failed: {error.__class__.__name__}")
        mapped.__cause__ = error
        return mapped
