"""
Domain Services - Business logic for contacts, users, work items, projects,
project participants, estimates and quotes.
"""
from .contact_service import ContactService
from .user_service import UserService
from .work_item_service import WorkItemService
from .cost_computation_service import CostComputationService
from .estimate_service import EstimateService
from .project_service import ProjectService
from .participant_service import ProjectParticipantService
from .quote_service import QuoteService

__all__ = [
    'ContactService',
    'UserService',
    'WorkItemService',
    'CostComputationService',
    'EstimateService',
    'ProjectService',
    'ProjectParticipantService',
    'QuoteService',
]
