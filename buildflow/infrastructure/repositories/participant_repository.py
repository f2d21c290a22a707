"""
Project Participant Repository - Data access layer for ProjectParticipant entities.
"""
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from buildflow.models import ProjectParticipant, ProjectRole
from buildflow.domain.entities.pagination import Page, PageRequest
from .base_repository import BaseRepository, Clock


class ProjectParticipantRepository(BaseRepository[ProjectParticipant]):
    """Repository for ProjectParticipant entities."""

    def __init__(self, session: Session, clock: Optional[Clock] = None):
        super().__init__(session, ProjectParticipant, clock)

    def find_by_project_id(self, project_id: UUID) -> List[ProjectParticipant]:
        return self.session.query(ProjectParticipant).filter(
            ProjectParticipant.project_id == project_id
        ).order_by(ProjectParticipant.contact_id, ProjectParticipant.id).all()

    def paginate_by_project_id(self, project_id: UUID, page_request: PageRequest) -> Page[ProjectParticipant]:
        query = self.session.query(ProjectParticipant).filter(ProjectParticipant.project_id == project_id)
        return self.paginate(query, page_request)

    def count_by_project_id(self, project_id: UUID) -> int:
        return self.session.query(ProjectParticipant).filter(
            ProjectParticipant.project_id == project_id
        ).count()

    def find_by_contact_id(self, contact_id: UUID) -> List[ProjectParticipant]:
        return self.session.query(ProjectParticipant).filter(
            ProjectParticipant.contact_id == contact_id
        ).all()

    def find_by_role(self, project_id: UUID, role: ProjectRole) -> List[ProjectParticipant]:
        """Participants of one project holding a role."""
        return self.session.query(ProjectParticipant).filter(
            ProjectParticipant.project_id == project_id,
            ProjectParticipant.role == role,
        ).order_by(ProjectParticipant.contact_id).all()
