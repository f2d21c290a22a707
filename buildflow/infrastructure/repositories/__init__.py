"""
Repository implementations for data access layer.
"""
from .base_repository import BaseRepository
from .contact_repository import ContactRepository
from .user_repository import UserRepository
from .work_item_repository import WorkItemRepository
from .project_repository import ProjectRepository
from .participant_repository import ProjectParticipantRepository
from .estimate_repository import (
    EstimateRepository,
    EstimateGroupRepository,
    EstimateLineRepository,
)
from .quote_repository import QuoteRepository

__all__ = [
    'BaseRepository',
    'ContactRepository',
    'UserRepository',
    'WorkItemRepository',
    'ProjectRepository',
    'ProjectParticipantRepository',
    'EstimateRepository',
    'EstimateGroupRepository',
    'EstimateLineRepository',
    'QuoteRepository',
]
