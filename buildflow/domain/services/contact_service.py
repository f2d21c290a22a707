"""
Contact Service - Lifecycle of Contact entities.

Rules:
- save rejects a contact that is already stored or whose email is taken
- update/delete require a contact that is already stored
- update rejects an email another contact already uses
- first and last name must be non-blank
"""
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from buildflow.models import Contact
from buildflow.infrastructure.repositories import ContactRepository
from buildflow.infrastructure.repositories.base_repository import Clock
from buildflow.domain.exceptions import (
    AlreadyPersistedError,
    DuplicateEmailError,
    NotPersistedError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class ContactService:
    """Service for saving, updating and looking up contacts."""

    def __init__(self, session: Session, clock: Optional[Clock] = None):
        self.session = session
        self.contact_repo = ContactRepository(session, clock)

    def is_persisted(self, contact: Contact) -> bool:
        """True when the contact carries an id that exists in storage."""
        return contact.id is not None and self.contact_repo.exists_by_id(contact.id)

    def save(self, contact: Contact) -> Contact:
        """
        Persist a new contact.

        Raises:
            AlreadyPersistedError: If the contact is already stored
            DuplicateEmailError: If another contact uses the same email
            ValidationError: If a required field is blank
        """
        if self.is_persisted(contact):
            logger.warning(f"Refusing to save contact {contact.id}: already persisted")
            raise AlreadyPersistedError("Contact")
        self._validate(contact)
        if self.contact_repo.exists_by_email(contact.email):
            logger.warning(f"Refusing to save contact: email {contact.email} already exists")
            raise DuplicateEmailError(contact.email)

        saved = self.contact_repo.save(contact)
        logger.info(f"Saved contact {saved.id} ({saved.email})")
        return saved

    def update(self, contact: Contact) -> Contact:
        """
        Persist changes to a stored contact.

        Raises:
            NotPersistedError: If the contact is not stored
            DuplicateEmailError: If the new email belongs to another contact
            ValidationError: If a required field is blank
        """
        with self.session.no_autoflush:
            if not self.is_persisted(contact):
                raise NotPersistedError("Contact")
            self._validate(contact)
            self._check_email_available(contact)
        updated = self.contact_repo.save(contact)
        logger.info(f"Updated contact {updated.id}")
        return updated

    def _check_email_available(self, contact: Contact) -> None:
        """Raise DuplicateEmailError when another stored contact has this email."""
        other = self.contact_repo.get_by_email(contact.email)
        if other is not None and other.id != contact.id:
            logger.warning(f"Refusing to update contact {contact.id}: email {contact.email} already exists")
            raise DuplicateEmailError(contact.email)

    def delete(self, contact: Contact) -> None:
        """
        Delete a stored contact.

        Raises:
            NotPersistedError: If the contact is not stored
        """
        if not self.is_persisted(contact):
            raise NotPersistedError("Contact")
        contact_id = contact.id
        self.contact_repo.delete(contact)
        logger.info(f"Deleted contact {contact_id}")

    def find_by_id(self, contact_id: UUID) -> Optional[Contact]:
        return self.contact_repo.get_by_id(contact_id)

    def find_by_email(self, email: str) -> Optional[Contact]:
        return self.contact_repo.get_by_email(email)

    def exists_by_email(self, email: str) -> bool:
        return self.contact_repo.exists_by_email(email)

    def _validate(self, contact: Contact) -> None:
        for field in ("first_name", "last_name", "email"):
            value = getattr(contact, field)
            if value is None or not str(value).strip():
                raise ValidationError(field, f"Contact {field} must not be blank.")
