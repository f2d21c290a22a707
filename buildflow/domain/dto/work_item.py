"""
WorkItem DTOs and mappers.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from buildflow.models import WorkItem


class WorkItemDto(BaseModel):
    """Work item as returned to clients."""
    id: UUID
    code: str
    name: str
    description: Optional[str] = None
    optional: bool = False
    user_id: UUID
    default_group_name: str
    domain: str
    created_at: Optional[datetime] = None
    last_updated_at: Optional[datetime] = None


class CreateWorkItemRequest(BaseModel):
    """
    Request model for creating a work item.

    Blank code/name are rejected by the service, not here, so that every
    entry point reports them the same way.
    """
    code: str = Field(..., max_length=50)
    name: str = Field(..., max_length=250)
    description: Optional[str] = Field(None, max_length=1000)
    optional: bool = False
    user_id: UUID
    default_group_name: Optional[str] = Field(None, max_length=100)
    domain: Optional[str] = Field(None, description="PUBLIC or PRIVATE; anything else becomes PUBLIC")


class CreateWorkItemResponse(BaseModel):
    work_item: WorkItemDto


class UpdateWorkItemRequest(BaseModel):
    code: Optional[str] = Field(None, max_length=50)
    name: Optional[str] = Field(None, max_length=250)
    description: Optional[str] = Field(None, max_length=1000)
    optional: Optional[bool] = None
    default_group_name: Optional[str] = Field(None, max_length=100)
    domain: Optional[str] = None


def work_item_to_dto(work_item: WorkItem) -> WorkItemDto:
    return WorkItemDto(
        id=work_item.id,
        code=work_item.code,
        name=work_item.name,
        description=work_item.description,
        optional=bool(work_item.optional),
        user_id=work_item.user_id,
        default_group_name=work_item.default_group_name,
        domain=work_item.domain.name,
        created_at=work_item.created_at,
        last_updated_at=work_item.last_updated_at,
    )
