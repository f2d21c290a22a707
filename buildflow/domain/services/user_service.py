"""
User Service - Account creation and lifecycle.

A user is always created together with its contact: role labels are merged
into the contact, the contact is stored first, then the user. The username
defaults to the contact email.
"""
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from buildflow.models import Contact, ContactLabel, User
from buildflow.infrastructure.repositories import UserRepository
from buildflow.infrastructure.repositories.base_repository import Clock
from buildflow.domain.dto import (
    CreateUserRequest,
    CreateUserResponse,
    UserDto,
    contact_from_dto,
    user_to_dto,
)
from buildflow.domain.exceptions import DuplicateUserError, NotPersistedError
from .contact_service import ContactService

logger = logging.getLogger(__name__)


class UserService:
    """Service for creating and maintaining users."""

    def __init__(self, session: Session, clock: Optional[Clock] = None):
        self.session = session
        self.user_repo = UserRepository(session, clock)
        self.contact_service = ContactService(session, clock)

    # =========================================================================
    # Creation
    # =========================================================================

    @staticmethod
    def from_contact(contact: Contact) -> User:
        """Build an unsaved user for a contact; username and email come from the contact."""
        return User(username=contact.email, email=contact.email, contact=contact)

    def new_registered_user(self, contact: Contact, *labels: ContactLabel) -> User:
        return self._new_user(contact, True, labels)

    def new_unregistered_user(self, contact: Contact, *labels: ContactLabel) -> User:
        return self._new_user(contact, False, labels)

    def new_registered_builder(self, contact: Contact) -> User:
        return self.new_registered_user(contact, ContactLabel.BUILDER)

    def new_unregistered_builder(self, contact: Contact) -> User:
        return self.new_unregistered_user(contact, ContactLabel.BUILDER)

    def new_registered_owner(self, contact: Contact) -> User:
        return self.new_registered_user(contact, ContactLabel.OWNER)

    def new_unregistered_owner(self, contact: Contact) -> User:
        return self.new_unregistered_user(contact, ContactLabel.OWNER)

    def _new_user(
        self,
        contact: Contact,
        registered: bool,
        labels,
        username: Optional[str] = None,
    ) -> User:
        user = self.from_contact(contact)
        if username:
            user.username = username
        self._check_unique(user.username, user.email)

        contact.add_labels(*labels)
        if self.contact_service.is_persisted(contact):
            self.contact_service.update(contact)
        else:
            self.contact_service.save(contact)

        user.registered = registered
        saved = self.user_repo.save(user)
        logger.info(
            f"Created {'registered' if registered else 'unregistered'} user "
            f"{saved.id} ({saved.username})"
        )
        return saved

    def create_user(self, request: CreateUserRequest) -> CreateUserResponse:
        """
        Create a user and its contact from a request.

        Raises:
            DuplicateUserError: If the username or email is already used
            DtoMappingError: If the contact part cannot be mapped
        """
        contact = contact_from_dto(request.contact)
        if self.contact_service.exists_by_email(contact.email):
            raise DuplicateUserError("email", contact.email)
        user = self._new_user(contact, request.registered, (), username=request.username)
        return CreateUserResponse(user=user_to_dto(user))

    def _check_unique(self, username: str, email: str) -> None:
        if self.user_repo.exists_by_username(username):
            raise DuplicateUserError("username", username)
        if self.user_repo.exists_by_email(email):
            raise DuplicateUserError("email", email)

    # =========================================================================
    # Update / Delete
    # =========================================================================

    def is_persisted(self, user: User) -> bool:
        return user.id is not None and self.user_repo.exists_by_id(user.id)

    def update(self, user: User) -> User:
        """
        Persist changes to a stored user (and its contact).

        Raises:
            NotPersistedError: If the user is not stored
            DuplicateUserError: If the new username or email belongs to another account
        """
        with self.session.no_autoflush:
            if not self.is_persisted(user):
                raise NotPersistedError("User")
            self._check_unique_for(user)
        if user.contact is not None:
            self.user_repo.touch(user.contact)
        updated = self.user_repo.save(user)
        logger.info(f"Updated user {updated.id}")
        return updated

    def _check_unique_for(self, user: User) -> None:
        other = self.user_repo.get_by_username(user.username)
        if other is not None and other.id != user.id:
            raise DuplicateUserError("username", user.username)
        other = self.user_repo.get_by_email(user.email)
        if other is not None and other.id != user.id:
            raise DuplicateUserError("email", user.email)
        if user.contact is not None:
            contact = self.contact_service.find_by_email(user.contact.email)
            if contact is not None and contact.id != user.contact.id:
                raise DuplicateUserError("email", user.contact.email)

    def delete(self, user: User) -> None:
        """
        Delete a stored user. The contact is kept.

        Raises:
            NotPersistedError: If the user is not stored
        """
        if not self.is_persisted(user):
            raise NotPersistedError("User")
        user_id = user.id
        self.user_repo.delete(user)
        logger.info(f"Deleted user {user_id}")

    # =========================================================================
    # Queries
    # =========================================================================

    def exists_by_id(self, user_id: UUID) -> bool:
        return self.user_repo.exists_by_id(user_id)

    def exists_by_email(self, email: str) -> bool:
        return self.user_repo.exists_by_email(email)

    def exists_by_username(self, username: str) -> bool:
        return self.user_repo.exists_by_username(username)

    def find_by_id(self, user_id: UUID) -> Optional[User]:
        return self.user_repo.get_by_id(user_id)

    def find_by_email(self, email: str) -> Optional[User]:
        return self.user_repo.get_by_email(email)

    def find_by_username(self, username: str) -> Optional[User]:
        return self.user_repo.get_by_username(username)

    def get_user_dto_by_username(self, username: str) -> Optional[UserDto]:
        user = self.find_by_username(username)
        return user_to_dto(user) if user is not None else None

    def get_all_user_dtos(self) -> List[UserDto]:
        return [user_to_dto(user) for user in self.user_repo.get_all_ordered()]
