"""
Project Participant Service - Contacts taking part in a project.

Rules:
- a participant always belongs to an existing project
- the role must be BUILDER or OWNER (case-insensitive)
- a new contact is saved first; a stored contact is updated in place
- deleting a participant keeps its contact
"""
import logging
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy.orm import Session

from buildflow.models import Contact, ProjectParticipant, ProjectRole
from buildflow.infrastructure.repositories import ProjectParticipantRepository, ProjectRepository
from buildflow.infrastructure.repositories.base_repository import Clock
from buildflow.domain.entities.pagination import Page, PageRequest, PaginationHelper
from buildflow.domain.enum_parsing import from_string
from buildflow.domain.exceptions import (
    ParticipantNotFoundError,
    ProjectNotFoundError,
    ValidationError,
)
from .contact_service import ContactService

logger = logging.getLogger(__name__)


class ProjectParticipantService:
    """Service for project participants."""

    def __init__(self, session: Session, clock: Optional[Clock] = None):
        self.session = session
        self.participant_repo = ProjectParticipantRepository(session, clock)
        self.project_repo = ProjectRepository(session, clock)
        self.contact_service = ContactService(session, clock)

    # =========================================================================
    # Persistence
    # =========================================================================

    def create_participant(
        self,
        project_id: UUID,
        contact: Contact,
        role: Union[str, ProjectRole],
    ) -> ProjectParticipant:
        """
        Add a contact to a project in a role.

        Raises:
            ProjectNotFoundError: If the project does not exist
            ValidationError: If the role is unknown or the contact is invalid
            DuplicateEmailError: If a new contact's email is already taken
        """
        project = self.project_repo.get_by_id(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        parsed_role = self._parse_role(role)
        contact = self._store_contact(contact)

        participant = ProjectParticipant(project=project, contact=contact, role=parsed_role)
        saved = self.participant_repo.save(participant)
        logger.info(f"Created participant {saved.id} for project {project_id} with role {parsed_role.name}")
        return saved

    def update_participant(
        self,
        participant_id: UUID,
        contact: Contact,
        role: Union[str, ProjectRole],
    ) -> ProjectParticipant:
        """
        Replace the contact and role of a participant.

        Raises:
            ParticipantNotFoundError: If the participant does not exist
            ValidationError: If the role is unknown or the contact is invalid
        """
        participant = self.get_participant(participant_id)
        parsed_role = self._parse_role(role)
        contact = self._store_contact(contact)

        participant.contact = contact
        participant.role = parsed_role
        updated = self.participant_repo.save(participant)
        logger.info(f"Updated participant {participant_id}: contact {contact.id}, role {parsed_role.name}")
        return updated

    def delete_participant(self, participant_id: UUID) -> None:
        """
        Remove a participant from its project. The contact is kept.

        Raises:
            ParticipantNotFoundError: If the participant does not exist
        """
        self._delete(self.get_participant(participant_id))
        logger.info(f"Deleted participant {participant_id}")

    def delete_all_for_project(self, project_id: UUID) -> int:
        """Delete every participant of a project. Returns how many were removed."""
        participants = self.participant_repo.find_by_project_id(project_id)
        for participant in participants:
            self._delete(participant)
        return len(participants)

    # =========================================================================
    # Queries
    # =========================================================================

    def find_by_id(self, participant_id: UUID) -> Optional[ProjectParticipant]:
        return self.participant_repo.get_by_id(participant_id)

    def get_participant(self, participant_id: UUID) -> ProjectParticipant:
        participant = self.participant_repo.get_by_id(participant_id)
        if participant is None:
            raise ParticipantNotFoundError(participant_id)
        return participant

    def find_by_project_id(self, project_id: UUID) -> List[ProjectParticipant]:
        self._require_project(project_id)
        return self.participant_repo.find_by_project_id(project_id)

    def get_participants_by_project_id(
        self,
        project_id: UUID,
        page_request: Optional[PageRequest] = None,
    ) -> Page[ProjectParticipant]:
        """
        One page of a project's participants, ordered by contact by default.

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        self._require_project(project_id)
        page_request = page_request or PaginationHelper.for_resource("participants").build()
        return self.participant_repo.paginate_by_project_id(project_id, page_request)

    def count_by_project_id(self, project_id: UUID) -> int:
        return self.participant_repo.count_by_project_id(project_id)

    def find_by_contact_id(self, contact_id: UUID) -> List[ProjectParticipant]:
        return self.participant_repo.find_by_contact_id(contact_id)

    def find_by_role(self, project_id: UUID, role: Union[str, ProjectRole]) -> List[ProjectParticipant]:
        self._require_project(project_id)
        return self.participant_repo.find_by_role(project_id, self._parse_role(role))

    # =========================================================================
    # Helpers
    # =========================================================================

    def _delete(self, participant: ProjectParticipant) -> None:
        project = participant.project
        if project is not None and participant in project.participants:
            project.participants.remove(participant)
        self.participant_repo.delete(participant)

    def _store_contact(self, contact: Contact) -> Contact:
        if self.contact_service.is_persisted(contact):
            return self.contact_service.update(contact)
        return self.contact_service.save(contact)

    def _require_project(self, project_id: UUID) -> None:
        if not self.project_repo.exists_by_id(project_id):
            raise ProjectNotFoundError(project_id)

    @staticmethod
    def _parse_role(role: Union[str, ProjectRole]) -> ProjectRole:
        parsed = from_string(ProjectRole, role)
        if parsed is None:
            raise ValidationError("role", f"Invalid role: {role}. Must be BUILDER or OWNER.")
        return parsed
