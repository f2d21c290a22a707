"""
Project Participant API Endpoints.

Implements:
- GET /api/v1/projects/{project_id}/participants - Paginated participants of a project
- GET /api/v1/projects/{project_id}/participants/{id} - Get a participant
- POST /api/v1/projects/{project_id}/participants - Add a participant
- PUT /api/v1/projects/{project_id}/participants/{id} - Change contact details and role
- DELETE /api/v1/projects/{project_id}/participants/{id} - Remove a participant
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from buildflow.models import ProjectParticipant, get_db
from buildflow.domain.dto import (
    CreateProjectParticipantRequest,
    ProjectParticipantDto,
    apply_contact_dto,
    contact_from_dto,
    participant_to_dto,
)
from buildflow.domain.exceptions import ValidationError
from buildflow.domain.services import ProjectParticipantService
from .pagination import page_request_for, set_pagination_headers

router = APIRouter()


def _get_in_project(
    service: ProjectParticipantService,
    project_id: UUID,
    participant_id: UUID,
) -> ProjectParticipant:
    participant = service.get_participant(participant_id)
    if participant.project_id != project_id:
        raise ValidationError(
            "project_id", f"Participant {participant_id} does not belong to project {project_id}"
        )
    return participant


@router.get("", response_model=List[ProjectParticipantDto], summary="Participants of a project")
def get_participants(
    project_id: UUID,
    request: Request,
    response: Response,
    page: Optional[int] = Query(None, ge=0),
    size: Optional[int] = Query(None, ge=1),
    sort: Optional[str] = None,
    direction: Optional[str] = None,
    db: Session = Depends(get_db),
):
    page_request = page_request_for("participants", page, size, sort, direction)
    result = ProjectParticipantService(db).get_participants_by_project_id(project_id, page_request)
    set_pagination_headers(response, request, result)
    return [participant_to_dto(participant) for participant in result.items]


@router.get("/{participant_id}", response_model=ProjectParticipantDto, summary="Get a participant")
def get_participant(project_id: UUID, participant_id: UUID, db: Session = Depends(get_db)):
    service = ProjectParticipantService(db)
    return participant_to_dto(_get_in_project(service, project_id, participant_id))


@router.post(
    "",
    response_model=ProjectParticipantDto,
    status_code=status.HTTP_201_CREATED,
    summary="Add a participant",
)
def create_participant(
    project_id: UUID,
    request: CreateProjectParticipantRequest,
    db: Session = Depends(get_db),
):
    participant = ProjectParticipantService(db).create_participant(
        project_id, contact_from_dto(request.contact), request.role
    )
    return participant_to_dto(participant)


@router.put("/{participant_id}", response_model=ProjectParticipantDto, summary="Update a participant")
def update_participant(
    project_id: UUID,
    participant_id: UUID,
    request: CreateProjectParticipantRequest,
    db: Session = Depends(get_db),
):
    service = ProjectParticipantService(db)
    participant = _get_in_project(service, project_id, participant_id)
    contact = apply_contact_dto(participant.contact, request.contact)
    return participant_to_dto(service.update_participant(participant_id, contact, request.role))


@router.delete("/{participant_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Remove a participant")
def delete_participant(project_id: UUID, participant_id: UUID, db: Session = Depends(get_db)):
    service = ProjectParticipantService(db)
    _get_in_project(service, project_id, participant_id)
    service.delete_participant(participant_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
