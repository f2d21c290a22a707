"""
Work Item Service - Creation, maintenance and queries for work items.

Domain strings are parsed with two policies:
- on create, an unknown or missing domain falls back to PUBLIC
- on queries, an unknown domain is a validation failure
"""
import logging
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy.orm import Session

from buildflow.models import Domain, WorkItem
from buildflow.infrastructure.repositories import UserRepository, WorkItemRepository
from buildflow.infrastructure.repositories.base_repository import Clock
from buildflow.domain.dto import CreateWorkItemRequest, CreateWorkItemResponse, work_item_to_dto
from buildflow.domain.enum_parsing import from_string, from_string_or_default
from buildflow.domain.exceptions import (
    NotPersistedError,
    UserNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class WorkItemService:
    """Service for work items."""

    def __init__(self, session: Session, clock: Optional[Clock] = None):
        self.session = session
        self.work_item_repo = WorkItemRepository(session, clock)
        self.user_repo = UserRepository(session, clock)

    # =========================================================================
    # Create / Update / Delete
    # =========================================================================

    def create_work_item(self, request: CreateWorkItemRequest) -> CreateWorkItemResponse:
        """
        Create a work item for an existing user.

        Args:
            request: Code, name, owner and optional settings

        Returns:
            Response wrapping the created work item

        Raises:
            ValidationError: If code or name is blank
            UserNotFoundError: If the owning user does not exist
        """
        self._validate_required(request.code, request.name)

        user = self.user_repo.get_by_id(request.user_id)
        if user is None:
            logger.warning(f"Cannot create work item {request.code}: user {request.user_id} not found")
            raise UserNotFoundError(request.user_id)

        work_item = WorkItem(
            code=request.code,
            name=request.name,
            description=request.description,
            optional=request.optional,
            user=user,
            default_group_name=request.default_group_name,
            domain=from_string_or_default(Domain, request.domain, Domain.PUBLIC),
        )
        self.work_item_repo.save(work_item)
        logger.info(f"Created work item {work_item.id} ({work_item.code}) for user {user.id}")
        return CreateWorkItemResponse(work_item=work_item_to_dto(work_item))

    def update(self, work_item: WorkItem) -> WorkItem:
        """
        Persist changes to a stored work item.

        Raises:
            NotPersistedError: If the work item is not stored
            ValidationError: If code or name is blank
        """
        if not self.is_persisted(work_item):
            raise NotPersistedError("WorkItem")
        self._validate_required(work_item.code, work_item.name)
        updated = self.work_item_repo.save(work_item)
        logger.info(f"Updated work item {updated.id}")
        return updated

    def delete(self, work_item: WorkItem) -> None:
        """
        Delete a stored work item.

        Raises:
            NotPersistedError: If the work item is not stored
        """
        if not self.is_persisted(work_item):
            raise NotPersistedError("WorkItem")
        work_item_id = work_item.id
        self.work_item_repo.delete(work_item)
        logger.info(f"Deleted work item {work_item_id}")

    def _validate_required(self, code: Optional[str], name: Optional[str]) -> None:
        if _is_blank(code):
            raise ValidationError("code", "WorkItem code must not be blank.")
        if _is_blank(name):
            raise ValidationError("name", "WorkItem name must not be blank.")

    # =========================================================================
    # Queries
    # =========================================================================

    def is_persisted(self, work_item: WorkItem) -> bool:
        return work_item.id is not None and self.work_item_repo.exists_by_id(work_item.id)

    def exists_by_id(self, work_item_id: UUID) -> bool:
        return self.work_item_repo.exists_by_id(work_item_id)

    def find_by_id(self, work_item_id: UUID) -> Optional[WorkItem]:
        return self.work_item_repo.get_by_id(work_item_id)

    def find_all(self) -> List[WorkItem]:
        return self.work_item_repo.get_all()

    def count(self) -> int:
        return self.work_item_repo.count()

    def get_by_user_id(self, user_id: UUID) -> List[WorkItem]:
        if user_id is None:
            raise ValidationError("user_id", "User ID must not be null.")
        return self.work_item_repo.find_by_user_id(user_id)

    def find_by_domain(self, domain: Domain) -> List[WorkItem]:
        return self.work_item_repo.find_by_domain(domain)

    def get_by_domain(self, domain: Union[str, Domain]) -> List[WorkItem]:
        """
        Work items in a domain given by name.

        Raises:
            ValidationError: If the domain name is unknown
        """
        return self.work_item_repo.find_by_domain(self._parse_domain(domain))

    def get_by_user_id_and_code(self, user_id: UUID, code: str) -> Optional[WorkItem]:
        """
        The work item a user registered under a code.

        Raises:
            ValidationError: If the code is blank (checked before any query)
            UserNotFoundError: If the user does not exist
        """
        if _is_blank(code):
            raise ValidationError("code", "WorkItem code must not be blank.")
        if not self.user_repo.exists_by_id(user_id):
            raise UserNotFoundError(user_id)
        return self.work_item_repo.find_by_user_id_and_code(user_id, code)

    def get_by_user_id_and_domain(self, user_id: UUID, domain: Union[str, Domain]) -> List[WorkItem]:
        parsed = self._parse_domain(domain)
        if not self.user_repo.exists_by_id(user_id):
            raise UserNotFoundError(user_id)
        return self.work_item_repo.find_by_user_id_and_domain(user_id, parsed)

    def _parse_domain(self, domain: Union[str, Domain]) -> Domain:
        parsed = from_string(Domain, domain)
        if parsed is None:
            raise ValidationError("domain", f"Invalid domain: '{domain}'")
        return parsed
