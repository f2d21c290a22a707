"""
Project Repository - Data access layer for Project entities.
"""
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from buildflow.models import Project
from buildflow.domain.entities.pagination import Page, PageRequest, DateFilter
from .base_repository import BaseRepository, Clock


class ProjectRepository(BaseRepository[Project]):
    """Repository for Project entities."""

    def __init__(self, session: Session, clock: Optional[Clock] = None):
        super().__init__(session, Project, clock)

    def find_by_builder_id(self, builder_id: UUID) -> List[Project]:
        return self.session.query(Project).filter(
            Project.builder_id == builder_id
        ).order_by(Project.last_updated_at.desc()).all()

    def find_by_owner_id(self, owner_id: UUID) -> List[Project]:
        return self.session.query(Project).filter(
            Project.owner_id == owner_id
        ).order_by(Project.last_updated_at.desc()).all()

    def paginate_by_builder_id(self, builder_id: UUID, page_request: PageRequest) -> Page[Project]:
        query = self.session.query(Project).filter(Project.builder_id == builder_id)
        return self.paginate(query, page_request)

    def paginate_by_owner_id(self, owner_id: UUID, page_request: PageRequest) -> Page[Project]:
        query = self.session.query(Project).filter(Project.owner_id == owner_id)
        return self.paginate(query, page_request)

    def paginate_for_user(
        self,
        user_id: UUID,
        page_request: PageRequest,
        date_filter: Optional[DateFilter] = None,
        as_builder: bool = True,
        as_owner: bool = True,
    ) -> Page[Project]:
        """
        One page of the projects a user builds, owns, or either.

        A project the user both builds and owns appears once.
        """
        conditions = []
        if as_builder:
            conditions.append(Project.builder_id == user_id)
        if as_owner:
            conditions.append(Project.owner_id == user_id)
        query = self.session.query(Project).filter(or_(*conditions))
        query = self.apply_date_filter(query, date_filter)
        return self.paginate(query, page_request)
