"""
Work Item Repository - Data access layer for WorkItem entities.

Implements the derived finders used by WorkItemService:
- by owning user
- by domain
- by (user, code)
- by (user, domain)
"""
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from buildflow.models import WorkItem, Domain
from .base_repository import BaseRepository, Clock


class WorkItemRepository(BaseRepository[WorkItem]):
    """Repository for WorkItem entities."""

    def __init__(self, session: Session, clock: Optional[Clock] = None):
        super().__init__(session, WorkItem, clock)

    def find_by_user_id(self, user_id: UUID) -> List[WorkItem]:
        """
        Get all work items owned by a user.

        Args:
            user_id: Owning user identifier

        Returns:
            Work items ordered by code
        """
        return self.session.query(WorkItem).filter(
            WorkItem.user_id == user_id
        ).order_by(WorkItem.code).all()

    def find_by_domain(self, domain: Domain) -> List[WorkItem]:
        return self.session.query(WorkItem).filter(
            WorkItem.domain == domain
        ).order_by(WorkItem.code).all()

    def find_by_user_id_and_code(self, user_id: UUID, code: str) -> Optional[WorkItem]:
        """Get the work item a user registered under a code, if any."""
        return self.session.query(WorkItem).filter(
            WorkItem.user_id == user_id,
            WorkItem.code == code,
        ).first()

    def find_by_user_id_and_domain(self, user_id: UUID, domain: Domain) -> List[WorkItem]:
        return self.session.query(WorkItem).filter(
            WorkItem.user_id == user_id,
            WorkItem.domain == domain,
        ).order_by(WorkItem.code).all()
