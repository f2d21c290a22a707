"""
Contact Repository - Data access layer for Contact entities.
"""
from typing import Optional

from sqlalchemy.orm import Session

from buildflow.models import Contact
from .base_repository import BaseRepository, Clock


class ContactRepository(BaseRepository[Contact]):
    """Repository for Contact entities. Emails are unique across contacts."""

    def __init__(self, session: Session, clock: Optional[Clock] = None):
        super().__init__(session, Contact, clock)

    def get_by_email(self, email: str) -> Optional[Contact]:
        """Get the contact with this email, if any."""
        return self.session.query(Contact).filter(Contact.email == email).first()

    def exists_by_email(self, email: str) -> bool:
        return self.session.query(Contact.id).filter(Contact.email == email).first() is not None
