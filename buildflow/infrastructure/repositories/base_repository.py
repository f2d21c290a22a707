"""
Base Repository - Generic repository pattern implementation.

Provides the generic persistence contract shared by every aggregate:
save, delete, find-by-id, exists-by-id, find-all and pagination.
"""
from datetime import datetime
from typing import Callable, Generic, TypeVar, List, Optional, Type
from uuid import UUID

from sqlalchemy.orm import Query, Session

from buildflow.models import Base, utcnow
from buildflow.domain.entities.pagination import Page, PageRequest, DateFilter, DESC

T = TypeVar('T', bound=Base)

Clock = Callable[[], datetime]


class BaseRepository(Generic[T]):
    """
    Base repository providing common data access operations.

    Type Parameters:
        T: The SQLAlchemy model type this repository manages
    """

    def __init__(self, session: Session, model_class: Type[T], clock: Optional[Clock] = None):
        """
        Initialize the repository.

        Args:
            session: SQLAlchemy database session
            model_class: The model class this repository manages
            clock: Source of audit timestamps (defaults to naive UTC now)
        """
        self.session = session
        self.model_class = model_class
        self.clock = clock or utcnow

    def get_by_id(self, entity_id: Optional[UUID]) -> Optional[T]:
        """
        Retrieve an entity by its primary key.

        Args:
            entity_id: Primary key value

        Returns:
            The entity if found, None otherwise
        """
        if entity_id is None:
            return None
        return self.session.query(self.model_class).filter(
            self.model_class.id == entity_id
        ).first()

    def exists_by_id(self, entity_id: Optional[UUID]) -> bool:
        """Check whether a row with this primary key is stored."""
        if entity_id is None:
            return False
        return self.session.query(self.model_class.id).filter(
            self.model_class.id == entity_id
        ).first() is not None

    def get_all(self, limit: Optional[int] = None, offset: int = 0) -> List[T]:
        """
        Retrieve all entities with optional pagination.

        Args:
            limit: Maximum number of entities to return
            offset: Number of entities to skip

        Returns:
            List of entities
        """
        query = self.session.query(self.model_class).offset(offset)
        if limit:
            query = query.limit(limit)
        return query.all()

    def count(self) -> int:
        """Count total entities."""
        return self.session.query(self.model_class).count()

    def save(self, entity: T) -> T:
        """
        Persist an entity and flush it so its identifier is assigned.

        created_at is set on first save; last_updated_at on every save.

        Args:
            entity: New or modified entity

        Returns:
            The saved entity
        """
        self.touch(entity)
        self.session.add(entity)
        self.session.flush()
        return entity

    def touch(self, entity: T) -> None:
        """Stamp audit timestamps without persisting."""
        now = self.clock()
        if hasattr(entity, "created_at") and entity.created_at is None:
            entity.created_at = now
        if hasattr(entity, "last_updated_at"):
            entity.last_updated_at = now

    def delete(self, entity: T) -> None:
        """Delete an entity and flush."""
        self.session.delete(entity)
        self.session.flush()

    # =========================================================================
    # Query Helpers
    # =========================================================================

    def apply_date_filter(self, query: Query, date_filter: Optional[DateFilter]) -> Query:
        """Restrict a query to the created/updated bounds of a DateFilter."""
        if date_filter is None or date_filter.is_empty:
            return query
        model = self.model_class
        if date_filter.created_after is not None:
            query = query.filter(model.created_at >= date_filter.created_after)
        if date_filter.created_before is not None:
            query = query.filter(model.created_at <= date_filter.created_before)
        if date_filter.updated_after is not None:
            query = query.filter(model.last_updated_at >= date_filter.updated_after)
        if date_filter.updated_before is not None:
            query = query.filter(model.last_updated_at <= date_filter.updated_before)
        return query

    def paginate(self, query: Query, page_request: PageRequest) -> Page[T]:
        """
        Apply sorting and slicing to a query.

        Args:
            query: Base query (already filtered)
            page_request: Page index, size and sort order

        Returns:
            Page with the requested slice and the total row count
        """
        total = query.order_by(None).count()
        sort_column = getattr(self.model_class, page_request.sort or "id", None)
        if sort_column is None:
            sort_column = self.model_class.id
        order = sort_column.desc() if page_request.direction == DESC else sort_column.asc()
        items = (
            query.order_by(order, self.model_class.id)
            .offset(page_request.offset)
            .limit(page_request.size)
            .all()
        )
        return Page(items=items, total=total, page=page_request.page, size=page_request.size)
