"""
Work Item API Endpoints.

Implements:
- POST /api/v1/work-items - Create a work item
- GET /api/v1/work-items - List, optionally by user and/or domain
- GET /api/v1/work-items/{id} - Get a work item
- GET /api/v1/work-items/user/{user_id}/code/{code} - Lookup by (user, code)
- PATCH /api/v1/work-items/{id} - Update
- DELETE /api/v1/work-items/{id} - Delete
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from buildflow.models import Domain, get_db
from buildflow.domain.dto import (
    CreateWorkItemRequest,
    CreateWorkItemResponse,
    UpdateWorkItemRequest,
    WorkItemDto,
    work_item_to_dto,
)
from buildflow.domain.enum_parsing import from_string_or_default
from buildflow.domain.exceptions import WorkItemNotFoundError
from buildflow.domain.services import WorkItemService

router = APIRouter()


def _get_or_404(service: WorkItemService, work_item_id: UUID):
    work_item = service.find_by_id(work_item_id)
    if work_item is None:
        raise WorkItemNotFoundError(work_item_id)
    return work_item


@router.post(
    "",
    response_model=CreateWorkItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a work item",
)
def create_work_item(request: CreateWorkItemRequest, db: Session = Depends(get_db)):
    return WorkItemService(db).create_work_item(request)


@router.get("", response_model=List[WorkItemDto], summary="List work items")
def list_work_items(
    user_id: Optional[UUID] = Query(None, description="Owning user"),
    domain: Optional[str] = Query(None, description="PUBLIC or PRIVATE"),
    db: Session = Depends(get_db),
):
    service = WorkItemService(db)
    if user_id is not None and domain is not None:
        items = service.get_by_user_id_and_domain(user_id, domain)
    elif user_id is not None:
        items = service.get_by_user_id(user_id)
    elif domain is not None:
        items = service.get_by_domain(domain)
    else:
        items = service.find_all()
    return [work_item_to_dto(item) for item in items]


@router.get(
    "/user/{user_id}/code/{code}",
    response_model=WorkItemDto,
    summary="Get a user's work item by code",
)
def get_by_user_and_code(user_id: UUID, code: str, db: Session = Depends(get_db)):
    work_item = WorkItemService(db).get_by_user_id_and_code(user_id, code)
    if work_item is None:
        raise WorkItemNotFoundError(f"{user_id}/{code}")
    return work_item_to_dto(work_item)


@router.get("/{work_item_id}", response_model=WorkItemDto, summary="Get a work item")
def get_work_item(work_item_id: UUID, db: Session = Depends(get_db)):
    return work_item_to_dto(_get_or_404(WorkItemService(db), work_item_id))


@router.patch("/{work_item_id}", response_model=WorkItemDto, summary="Update a work item")
def update_work_item(work_item_id: UUID, request: UpdateWorkItemRequest, db: Session = Depends(get_db)):
    service = WorkItemService(db)
    work_item = _get_or_404(service, work_item_id)
    changes = request.model_dump(exclude_unset=True)
    if "domain" in changes:
        changes["domain"] = from_string_or_default(Domain, changes["domain"], work_item.domain)
    for field, value in changes.items():
        if value is None and field != "description":
            continue
        setattr(work_item, field, value)
    return work_item_to_dto(service.update(work_item))


@router.delete("/{work_item_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a work item")
def delete_work_item(work_item_id: UUID, db: Session = Depends(get_db)):
    service = WorkItemService(db)
    service.delete(_get_or_404(service, work_item_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
