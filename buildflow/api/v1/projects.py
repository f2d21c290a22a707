"""
Project API Endpoints.

Implements:
- POST /api/v1/projects - Create a project
- GET /api/v1/projects/{id} - Get a project
- PATCH /api/v1/projects/{id} - Update the location
- DELETE /api/v1/projects/{id} - Delete a project with its estimates and participants
- GET /api/v1/projects/builder/{builder_id} - Paginated projects of a builder
- GET /api/v1/projects/owner/{owner_id} - Paginated projects of an owner
- GET /api/v1/projects/user/{user_id} - Paginated, date-filtered projects a user builds, owns or both
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from buildflow.models import get_db
from buildflow.domain.dto import (
    CreateProjectRequest,
    ProjectDto,
    UpdateProjectRequest,
    address_from_dto,
    project_to_dto,
)
from buildflow.domain.entities.pagination import DateFilter
from buildflow.domain.exceptions import ProjectNotFoundError
from buildflow.domain.services import ProjectService
from .pagination import date_filter_params, page_request_for, set_pagination_headers

router = APIRouter()


def _get_or_404(service: ProjectService, project_id: UUID):
    project = service.find_by_id(project_id)
    if project is None:
        raise ProjectNotFoundError(project_id)
    return project


@router.post(
    "",
    response_model=ProjectDto,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
)
def create_project(request: CreateProjectRequest, db: Session = Depends(get_db)):
    project = ProjectService(db).create_project(
        builder_id=request.builder_id,
        owner_id=request.owner_id,
        location=address_from_dto(request.location),
    )
    return project_to_dto(project)


@router.get("/builder/{builder_id}", response_model=List[ProjectDto], summary="Projects of a builder")
def get_projects_by_builder(
    builder_id: UUID,
    request: Request,
    response: Response,
    page: Optional[int] = Query(None, ge=0),
    size: Optional[int] = Query(None, ge=1),
    sort: Optional[str] = None,
    direction: Optional[str] = None,
    db: Session = Depends(get_db),
):
    page_request = page_request_for("projects", page, size, sort, direction)
    result = ProjectService(db).get_projects_by_builder_id(builder_id, page_request)
    set_pagination_headers(response, request, result)
    return [project_to_dto(project) for project in result.items]


@router.get("/owner/{owner_id}", response_model=List[ProjectDto], summary="Projects of an owner")
def get_projects_by_owner(
    owner_id: UUID,
    request: Request,
    response: Response,
    page: Optional[int] = Query(None, ge=0),
    size: Optional[int] = Query(None, ge=1),
    sort: Optional[str] = None,
    direction: Optional[str] = None,
    db: Session = Depends(get_db),
):
    page_request = page_request_for("projects", page, size, sort, direction)
    result = ProjectService(db).get_projects_by_owner_id(owner_id, page_request)
    set_pagination_headers(response, request, result)
    return [project_to_dto(project) for project in result.items]


@router.get("/user/{user_id}", response_model=List[ProjectDto], summary="Projects a user builds or owns")
def get_combined_projects(
    user_id: UUID,
    request: Request,
    response: Response,
    scope: str = Query("both", description="builder, owner or both"),
    page: Optional[int] = Query(None, ge=0),
    size: Optional[int] = Query(None, ge=1),
    sort: Optional[str] = None,
    direction: Optional[str] = None,
    date_filter: DateFilter = Depends(date_filter_params),
    db: Session = Depends(get_db),
):
    page_request = page_request_for("projects", page, size, sort, direction)
    result = ProjectService(db).get_combined_projects(user_id, scope, date_filter, page_request)
    set_pagination_headers(response, request, result)
    return [project_to_dto(project) for project in result.items]


@router.get("/{project_id}", response_model=ProjectDto, summary="Get a project")
def get_project(project_id: UUID, db: Session = Depends(get_db)):
    return project_to_dto(_get_or_404(ProjectService(db), project_id))


@router.patch("/{project_id}", response_model=ProjectDto, summary="Update a project location")
def update_project(project_id: UUID, request: UpdateProjectRequest, db: Session = Depends(get_db)):
    service = ProjectService(db)
    project = _get_or_404(service, project_id)
    project.location = address_from_dto(request.location)
    return project_to_dto(service.update(project))


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a project")
def delete_project(project_id: UUID, db: Session = Depends(get_db)):
    service = ProjectService(db)
    service.delete(_get_or_404(service, project_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
