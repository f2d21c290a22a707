"""
Project Service - Creation, maintenance and queries for projects.

A project links a builder and an owner (possibly the same user) and embeds
its location. Deleting a project deletes its estimates and participants
explicitly first.
"""
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from buildflow.models import Project
from buildflow.infrastructure.repositories import ProjectRepository, UserRepository
from buildflow.infrastructure.repositories.base_repository import Clock
from buildflow.domain.entities.address import Address
from buildflow.domain.entities.pagination import DateFilter, Page, PageRequest, PaginationHelper
from buildflow.domain.exceptions import NotPersistedError, UserNotFoundError
from .estimate_service import EstimateService
from .participant_service import ProjectParticipantService

logger = logging.getLogger(__name__)

SCOPE_BUILDER = "builder"
SCOPE_OWNER = "owner"
SCOPE_BOTH = "both"
SCOPES = (SCOPE_BUILDER, SCOPE_OWNER, SCOPE_BOTH)


class ProjectService:
    """Service for projects."""

    def __init__(self, session: Session, clock: Optional[Clock] = None):
        self.session = session
        self.project_repo = ProjectRepository(session, clock)
        self.user_repo = UserRepository(session, clock)
        self.estimate_service = EstimateService(session, clock)
        self.participant_service = ProjectParticipantService(session, clock)

    def create_project(
        self,
        builder_id: UUID,
        owner_id: UUID,
        location: Optional[Address] = None,
    ) -> Project:
        """
        Create a project with no estimates.

        Args:
            builder_id: User building the project
            owner_id: User owning the project
            location: Site address

        Raises:
            UserNotFoundError: If the builder or the owner does not exist
        """
        builder = self.user_repo.get_by_id(builder_id)
        if builder is None:
            logger.warning(f"Cannot create project: builder {builder_id} not found")
            raise UserNotFoundError(builder_id, role="Builder")
        owner = self.user_repo.get_by_id(owner_id)
        if owner is None:
            logger.warning(f"Cannot create project: owner {owner_id} not found")
            raise UserNotFoundError(owner_id, role="Owner")

        project = Project(builder=builder, owner=owner, location=location or Address())
        self.project_repo.save(project)
        logger.info(f"Created project {project.id} (builder {builder.id}, owner {owner.id})")
        return project

    def is_persisted(self, project: Project) -> bool:
        return project.id is not None and self.project_repo.exists_by_id(project.id)

    def update(self, project: Project) -> Project:
        """
        Persist changes to a stored project.

        Quote applicability follows the project's builder, so a builder
        change reprices every estimate of the project.

        Raises:
            NotPersistedError: If the project is not stored
        """
        builder_ids = {project.builder_id}
        builder_ids.update(inspect(project).attrs.builder_id.history.deleted)
        with self.session.no_autoflush:
            if not self.is_persisted(project):
                raise NotPersistedError("Project")
        updated = self.project_repo.save(project)
        logger.info(f"Updated project {updated.id}")
        if builder_ids != {updated.builder_id}:
            for estimate in updated.estimates:
                self.estimate_service.recompute_estimate(estimate.id)
        return updated

    def delete(self, project: Project) -> None:
        """
        Delete a stored project with its estimates and participants.

        Raises:
            NotPersistedError: If the project is not stored
        """
        if not self.is_persisted(project):
            raise NotPersistedError("Project")
        project_id = project.id
        for estimate in list(project.estimates):
            self.estimate_service.delete_estimate_tree(estimate)
        self.participant_service.delete_all_for_project(project_id)
        self.project_repo.delete(project)
        logger.info(f"Deleted project {project_id}")

    def find_by_id(self, project_id: UUID) -> Optional[Project]:
        return self.project_repo.get_by_id(project_id)

    def find_by_builder_id(self, builder_id: UUID) -> List[Project]:
        return self.project_repo.find_by_builder_id(builder_id)

    def find_by_owner_id(self, owner_id: UUID) -> List[Project]:
        return self.project_repo.find_by_owner_id(owner_id)

    def get_projects_by_builder_id(
        self,
        builder_id: UUID,
        page_request: Optional[PageRequest] = None,
    ) -> Page[Project]:
        """
        One page of a builder's projects.

        Raises:
            UserNotFoundError: If the builder does not exist
        """
        if not self.user_repo.exists_by_id(builder_id):
            raise UserNotFoundError(builder_id, role="Builder")
        page_request = page_request or PaginationHelper.for_resource("projects").build()
        return self.project_repo.paginate_by_builder_id(builder_id, page_request)

    def get_projects_by_owner_id(
        self,
        owner_id: UUID,
        page_request: Optional[PageRequest] = None,
    ) -> Page[Project]:
        """
        One page of an owner's projects.

        Raises:
            UserNotFoundError: If the owner does not exist
        """
        if not self.user_repo.exists_by_id(owner_id):
            raise UserNotFoundError(owner_id, role="Owner")
        page_request = page_request or PaginationHelper.for_resource("projects").build()
        return self.project_repo.paginate_by_owner_id(owner_id, page_request)

    def get_combined_projects(
        self,
        user_id: UUID,
        scope: Optional[str] = SCOPE_BOTH,
        date_filter: Optional[DateFilter] = None,
        page_request: Optional[PageRequest] = None,
    ) -> Page[Project]:
        """
        One page of the projects a user takes part in.

        Args:
            user_id: User to look up
            scope: 'builder', 'owner' or 'both'; anything else means 'both'
            date_filter: Optional created/updated bounds
            page_request: Page index, size and sort order

        Raises:
            UserNotFoundError: If the user does not exist
        """
        if not self.user_repo.exists_by_id(user_id):
            raise UserNotFoundError(user_id)
        normalized = (scope or SCOPE_BOTH).strip().lower()
        if normalized not in SCOPES:
            logger.warning(f"Unknown project scope '{scope}', using '{SCOPE_BOTH}'")
            normalized = SCOPE_BOTH
        page_request = page_request or PaginationHelper.for_resource("projects").build()
        return self.project_repo.paginate_for_user(
            user_id,
            page_request,
            date_filter,
            as_builder=normalized in (SCOPE_BUILDER, SCOPE_BOTH),
            as_owner=normalized in (SCOPE_OWNER, SCOPE_BOTH),
        )
