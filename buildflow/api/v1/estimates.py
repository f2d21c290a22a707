"""
Estimate API Endpoints.

Implements:
- POST /api/v1/estimates - Create an estimate for a project
- GET /api/v1/estimates/{id} - Get an estimate with groups and lines
- PATCH /api/v1/estimates/{id} - Change the overall multiplier
- DELETE /api/v1/estimates/{id} - Delete an estimate, its groups and lines
- POST /api/v1/estimates/{id}/recompute - Reprice every line
- GET /api/v1/estimates/project/{project_id} - Paginated estimates of a project
- GET /api/v1/estimates/project/{project_id}/count - Count estimates of a project
- POST /api/v1/estimates/{id}/groups - Add a group
- PATCH/DELETE /api/v1/estimates/groups/{group_id} - Update / remove a group
- POST /api/v1/estimates/groups/{group_id}/lines - Add a line
- PATCH/DELETE /api/v1/estimates/lines/{line_id} - Update / remove a line
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from buildflow.models import get_db
from buildflow.domain.dto import (
    CreateEstimateGroupRequest,
    CreateEstimateLineRequest,
    CreateEstimateRequest,
    EstimateDto,
    EstimateGroupDto,
    EstimateLineDto,
    UpdateEstimateGroupRequest,
    UpdateEstimateLineRequest,
    UpdateEstimateRequest,
    estimate_group_to_dto,
    estimate_line_to_dto,
    estimate_to_dto,
)
from buildflow.domain.services import EstimateService
from .pagination import page_request_for, set_pagination_headers

router = APIRouter()


# =============================================================================
# Estimates
# =============================================================================

@router.post(
    "",
    response_model=EstimateDto,
    status_code=status.HTTP_201_CREATED,
    summary="Create an estimate",
)
def create_estimate(request: CreateEstimateRequest, db: Session = Depends(get_db)):
    estimate = EstimateService(db).create_estimate(request.project_id, request.overall_multiplier)
    return estimate_to_dto(estimate)


@router.get("/project/{project_id}", response_model=List[EstimateDto], summary="Estimates of a project")
def get_estimates_by_project(
    project_id: UUID,
    request: Request,
    response: Response,
    page: Optional[int] = Query(None, ge=0),
    size: Optional[int] = Query(None, ge=1),
    sort: Optional[str] = None,
    direction: Optional[str] = None,
    db: Session = Depends(get_db),
):
    page_request = page_request_for("estimates", page, size, sort, direction)
    result = EstimateService(db).get_estimates_by_project_id(project_id, page_request)
    set_pagination_headers(response, request, result)
    return [estimate_to_dto(estimate) for estimate in result.items]


@router.get("/project/{project_id}/count", summary="Count estimates of a project")
def count_estimates_by_project(project_id: UUID, db: Session = Depends(get_db)):
    return {"project_id": str(project_id), "count": EstimateService(db).count_by_project_id(project_id)}


@router.get("/{estimate_id}", response_model=EstimateDto, summary="Get an estimate")
def get_estimate(estimate_id: UUID, db: Session = Depends(get_db)):
    return estimate_to_dto(EstimateService(db).get_estimate(estimate_id))


@router.patch("/{estimate_id}", response_model=EstimateDto, summary="Update an estimate")
def update_estimate(estimate_id: UUID, request: UpdateEstimateRequest, db: Session = Depends(get_db)):
    estimate = EstimateService(db).update_estimate(estimate_id, request.overall_multiplier)
    return estimate_to_dto(estimate)


@router.delete("/{estimate_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete an estimate")
def delete_estimate(estimate_id: UUID, db: Session = Depends(get_db)):
    EstimateService(db).delete_estimate(estimate_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{estimate_id}/recompute", response_model=EstimateDto, summary="Reprice every line")
def recompute_estimate(estimate_id: UUID, db: Session = Depends(get_db)):
    return estimate_to_dto(EstimateService(db).recompute_estimate(estimate_id))


# =============================================================================
# Groups
# =============================================================================

@router.post(
    "/{estimate_id}/groups",
    response_model=EstimateGroupDto,
    status_code=status.HTTP_201_CREATED,
    summary="Add a group to an estimate",
)
def add_group(estimate_id: UUID, request: CreateEstimateGroupRequest, db: Session = Depends(get_db)):
    group = EstimateService(db).add_group(estimate_id, request.name, request.description)
    return estimate_group_to_dto(group)


@router.patch("/groups/{group_id}", response_model=EstimateGroupDto, summary="Update a group")
def update_group(group_id: UUID, request: UpdateEstimateGroupRequest, db: Session = Depends(get_db)):
    service = EstimateService(db)
    group = service.get_group(group_id)
    for field, value in request.model_dump(exclude_unset=True).items():
        setattr(group, field, value)
    return estimate_group_to_dto(service.update_group(group))


@router.delete("/groups/{group_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Remove a group")
def remove_group(group_id: UUID, db: Session = Depends(get_db)):
    EstimateService(db).remove_group(group_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Lines
# =============================================================================

@router.post(
    "/groups/{group_id}/lines",
    response_model=EstimateLineDto,
    status_code=status.HTTP_201_CREATED,
    summary="Add a line to a group",
)
def add_line(group_id: UUID, request: CreateEstimateLineRequest, db: Session = Depends(get_db)):
    line = EstimateService(db).add_line(
        group_id=group_id,
        work_item_id=request.work_item_id,
        quantity=request.quantity,
        multiplier=request.multiplier,
        strategy=request.strategy,
    )
    return estimate_line_to_dto(line)


@router.patch("/lines/{line_id}", response_model=EstimateLineDto, summary="Update a line")
def update_line(line_id: UUID, request: UpdateEstimateLineRequest, db: Session = Depends(get_db)):
    line = EstimateService(db).update_line(
        line_id,
        quantity=request.quantity,
        multiplier=request.multiplier,
        strategy=request.strategy,
    )
    return estimate_line_to_dto(line)


@router.delete("/lines/{line_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Remove a line")
def remove_line(line_id: UUID, db: Session = Depends(get_db)):
    EstimateService(db).remove_line(line_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
