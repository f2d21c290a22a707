"""
Data Transfer Objects - Wire shapes and entity mappers.
"""
from .contact import (
    AddressDto, ContactDto, ContactRequestDto, UserDto,
    CreateUserRequest, CreateUserResponse,
    address_to_dto, address_from_dto, contact_to_dto, contact_from_dto, user_to_dto,
    apply_contact_dto,
)
from .work_item import (
    WorkItemDto, CreateWorkItemRequest, CreateWorkItemResponse, UpdateWorkItemRequest,
    work_item_to_dto,
)
from .project import (
    ProjectDto, CreateProjectRequest, UpdateProjectRequest, project_to_dto,
    ProjectParticipantDto, CreateProjectParticipantRequest, participant_to_dto,
)
from .estimate import (
    EstimateDto, EstimateGroupDto, EstimateLineDto,
    CreateEstimateRequest, UpdateEstimateRequest,
    CreateEstimateGroupRequest, UpdateEstimateGroupRequest,
    CreateEstimateLineRequest, UpdateEstimateLineRequest,
    estimate_to_dto, estimate_group_to_dto, estimate_line_to_dto,
)
from .quote import QuoteDto, CreateQuoteRequest, UpdateQuoteRequest, quote_to_dto

__all__ = [
    'AddressDto', 'ContactDto', 'ContactRequestDto', 'UserDto',
    'CreateUserRequest', 'CreateUserResponse',
    'address_to_dto', 'address_from_dto', 'contact_to_dto', 'contact_from_dto', 'user_to_dto',
    'apply_contact_dto',
    'WorkItemDto', 'CreateWorkItemRequest', 'CreateWorkItemResponse', 'UpdateWorkItemRequest',
    'work_item_to_dto',
    'ProjectDto', 'CreateProjectRequest', 'UpdateProjectRequest', 'project_to_dto',
    'ProjectParticipantDto', 'CreateProjectParticipantRequest', 'participant_to_dto',
    'EstimateDto', 'EstimateGroupDto', 'EstimateLineDto',
    'CreateEstimateRequest', 'UpdateEstimateRequest',
    'CreateEstimateGroupRequest', 'UpdateEstimateGroupRequest',
    'CreateEstimateLineRequest', 'UpdateEstimateLineRequest',
    'estimate_to_dto', 'estimate_group_to_dto', 'estimate_line_to_dto',
    'QuoteDto', 'CreateQuoteRequest', 'UpdateQuoteRequest', 'quote_to_dto',
]
