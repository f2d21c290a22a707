"""
Project and project participant DTOs with their mappers.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from buildflow.models import Project, ProjectParticipant
from .contact import AddressDto, ContactDto, ContactRequestDto, address_to_dto, contact_to_dto


class ProjectDto(BaseModel):
    id: UUID
    builder_id: UUID
    owner_id: UUID
    location: AddressDto
    estimate_count: int = 0
    created_at: Optional[datetime] = None
    last_updated_at: Optional[datetime] = None


class CreateProjectRequest(BaseModel):
    """Request model for creating a project. Builder and owner may be the same user."""
    builder_id: UUID
    owner_id: UUID
    location: AddressDto = Field(default_factory=AddressDto)


class UpdateProjectRequest(BaseModel):
    location: AddressDto


def project_to_dto(project: Project) -> ProjectDto:
    return ProjectDto(
        id=project.id,
        builder_id=project.builder_id,
        owner_id=project.owner_id,
        location=address_to_dto(project.location),
        estimate_count=len(project.estimates),
        created_at=project.created_at,
        last_updated_at=project.last_updated_at,
    )


class ProjectParticipantDto(BaseModel):
    id: UUID
    project_id: UUID
    role: str
    contact: ContactDto


class CreateProjectParticipantRequest(BaseModel):
    """Request model for adding or changing a project participant."""
    role: str = Field(..., min_length=1, description="BUILDER or OWNER")
    contact: ContactRequestDto


def participant_to_dto(participant: ProjectParticipant) -> ProjectParticipantDto:
    return ProjectParticipantDto(
        id=participant.id,
        project_id=participant.project_id,
        role=participant.role.name,
        contact=contact_to_dto(participant.contact),
    )
