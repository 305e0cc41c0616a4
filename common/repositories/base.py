from contextlib import asynccontextmanager
from typing import Generic, TypeVar, Optional, List, Type, AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from pydantic import BaseModel

from common.core.otel_axiom_exporter import trace_span
from common.db.scoped import get_session

EntityType = TypeVar("EntityType")
DomainModelType = TypeVar("DomainModelType")
CreateModelType = TypeVar("CreateModelType", bound=BaseModel)


class BaseRepository(Generic[EntityType, DomainModelType]):
    """
    Base repository with support for both explicit and lazy session management.

    Two modes of operation:
    1. Explicit session: Pass db_session to constructor
       - Session is used directly, caller manages lifecycle
       - Used by request handlers that already hold a session

    2. Lazy session: Don't pass db_session
       - Sessions acquired per-operation, released immediately
       - Respects an enclosing transaction() block

    Example (explicit):
        repo = UsageCounterRepository(db_session)
        count = await repo.read_count("user_1", Metric.DM_SENT, "2026-10-19")

    Example (lazy):
        repo = UsageCounterRepository()
        count = await repo.read_count(...)  # Acquires and releases session
    """

    def __init__(
        self,
        entity_class: Type[EntityType],
        domain_class: Type[DomainModelType],
        db_session: Optional[AsyncSession] = None,
    ):
        self.entity_class = entity_class
        self.domain_class = domain_class
        self._explicit_session = db_session

    @asynccontextmanager
    async def _get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get a session for an operation.

        If explicit session was provided to __init__, uses that.
        Otherwise, uses lazy get_session() which acquires/releases per-operation.
        """
        if self._explicit_session is not None:
            yield self._explicit_session
        else:
            async with get_session() as session:
                yield session

    def _add_subject_filter(self, query, subject_id: str):
        """Add subject filtering to any query."""
        return query.where(self.entity_class.subject_id == subject_id)

    def _entity_to_domain(self, entity: EntityType) -> DomainModelType:
        """Convert database entity to domain model."""
        return self.domain_class.model_validate(entity)

    def _entities_to_domain(self, entities: List[EntityType]) -> List[DomainModelType]:
        """Convert list of database entities to domain models."""
        return [self._entity_to_domain(entity) for entity in entities]

    @trace_span
    async def get(
        self, id: int, subject_id: Optional[str] = None
    ) -> Optional[DomainModelType]:
        query = select(self.entity_class).where(self.entity_class.id == id)

        if subject_id is not None:
            query = self._add_subject_filter(query, subject_id)

        async with self._get_session() as session:
            result = await session.execute(query)
            entity = result.scalar_one_or_none()
            return self._entity_to_domain(entity) if entity else None

    @trace_span
    async def create(self, create_model: CreateModelType) -> DomainModelType:
        """Create a new entity from a typed create model."""
        data = create_model.model_dump(exclude_none=True, mode="json")
        db_obj = self.entity_class(**data)
        async with self._get_session() as session:
            session.add(db_obj)
            await session.flush()
            await session.refresh(db_obj)
            return self._entity_to_domain(db_obj)
