"""
Quote Repository - Data access layer for Quote entities.

Implements:
- Paginated, date-filtered listing by creator and by supplier
- Counting by creator and by supplier
- Lookup of the quotes applicable to a work item for cost computation
"""
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from buildflow.models import Quote, Domain
from buildflow.domain.entities.pagination import Page, PageRequest, DateFilter
from .base_repository import BaseRepository, Clock


class QuoteRepository(BaseRepository[Quote]):
    """Repository for Quote entities."""

    def __init__(self, session: Session, clock: Optional[Clock] = None):
        super().__init__(session, Quote, clock)

    def paginate_by_creator(
        self,
        user_id: UUID,
        page_request: PageRequest,
        date_filter: Optional[DateFilter] = None,
    ) -> Page[Quote]:
        """
        Get one page of the quotes a user created.

        Args:
            user_id: Creator identifier
            page_request: Page index, size and sort order
            date_filter: Optional created/updated bounds

        Returns:
            Page of quotes
        """
        query = self.session.query(Quote).filter(Quote.created_by_id == user_id)
        query = self.apply_date_filter(query, date_filter)
        return self.paginate(query, page_request)

    def paginate_by_supplier(
        self,
        user_id: UUID,
        page_request: PageRequest,
        date_filter: Optional[DateFilter] = None,
    ) -> Page[Quote]:
        """Get one page of the quotes a user supplied."""
        query = self.session.query(Quote).filter(Quote.supplier_id == user_id)
        query = self.apply_date_filter(query, date_filter)
        return self.paginate(query, page_request)

    def count_by_creator(self, user_id: UUID) -> int:
        return self.session.query(Quote).filter(Quote.created_by_id == user_id).count()

    def count_by_supplier(self, user_id: UUID) -> int:
        return self.session.query(Quote).filter(Quote.supplier_id == user_id).count()

    def find_by_work_item_id(self, work_item_id: UUID) -> List[Quote]:
        return self.session.query(Quote).filter(
            Quote.work_item_id == work_item_id
        ).order_by(Quote.created_at.desc()).all()

    def find_applicable(self, work_item_id: UUID, builder_id: Optional[UUID]) -> List[Quote]:
        """
        Quotes that may price a work item for a builder.

        Valid quotes only; PRIVATE quotes count only when the builder created them.
        """
        visibility = Quote.domain == Domain.PUBLIC
        if builder_id is not None:
            visibility = or_(visibility, Quote.created_by_id == builder_id)
        return self.session.query(Quote).filter(
            Quote.work_item_id == work_item_id,
            Quote.valid.is_(True),
            visibility,
        ).all()
