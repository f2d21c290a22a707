"""
User Repository - Data access layer for User entities.

Usernames and emails are unique across users.
"""
from typing import Optional

from sqlalchemy.orm import Session

from buildflow.models import User
from .base_repository import BaseRepository, Clock


class UserRepository(BaseRepository[User]):
    """Repository for User entities."""

    def __init__(self, session: Session, clock: Optional[Clock] = None):
        super().__init__(session, User, clock)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.query(User).filter(User.email == email).first()

    def get_by_username(self, username: str) -> Optional[User]:
        return self.session.query(User).filter(User.username == username).first()

    def exists_by_email(self, email: str) -> bool:
        return self.session.query(User.id).filter(User.email == email).first() is not None

    def exists_by_username(self, username: str) -> bool:
        return self.session.query(User.id).filter(User.username == username).first() is not None

    def get_all_ordered(self):
        """All users ordered by username."""
        return self.session.query(User).order_by(User.username).all()
