"""
Quote API Endpoints.

Implements:
- POST /api/v1/quotes - Create a quote
- GET /api/v1/quotes/{id} - Get a quote
- PATCH /api/v1/quotes/{id} - Update price, currency or validity
- DELETE /api/v1/quotes/{id} - Delete a quote
- GET /api/v1/quotes/creator/{user_id} - Paginated, date-filtered quotes a user created
- GET /api/v1/quotes/supplier/{user_id} - Paginated, date-filtered quotes a user supplied
- GET /api/v1/quotes/creator/{user_id}/count, /supplier/{user_id}/count
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from buildflow.models import get_db
from buildflow.domain.dto import CreateQuoteRequest, QuoteDto, UpdateQuoteRequest, quote_to_dto
from buildflow.domain.entities.pagination import DateFilter
from buildflow.domain.services import QuoteService
from .pagination import date_filter_params, page_request_for, set_pagination_headers

router = APIRouter()


@router.post(
    "",
    response_model=QuoteDto,
    status_code=status.HTTP_201_CREATED,
    summary="Create a quote",
)
def create_quote(request: CreateQuoteRequest, db: Session = Depends(get_db)):
    return quote_to_dto(QuoteService(db).create_quote(request))


@router.get("/creator/{user_id}", response_model=List[QuoteDto], summary="Quotes created by a user")
def get_quotes_by_creator(
    user_id: UUID,
    request: Request,
    response: Response,
    page: Optional[int] = Query(None, ge=0),
    size: Optional[int] = Query(None, ge=1),
    sort: Optional[str] = None,
    direction: Optional[str] = None,
    date_filter: DateFilter = Depends(date_filter_params),
    db: Session = Depends(get_db),
):
    page_request = page_request_for("quotes", page, size, sort, direction)
    result = QuoteService(db).get_quotes_by_creator(user_id, page_request, date_filter)
    set_pagination_headers(response, request, result)
    return [quote_to_dto(quote) for quote in result.items]


@router.get("/supplier/{user_id}", response_model=List[QuoteDto], summary="Quotes supplied by a user")
def get_quotes_by_supplier(
    user_id: UUID,
    request: Request,
    response: Response,
    page: Optional[int] = Query(None, ge=0),
    size: Optional[int] = Query(None, ge=1),
    sort: Optional[str] = None,
    direction: Optional[str] = None,
    date_filter: DateFilter = Depends(date_filter_params),
    db: Session = Depends(get_db),
):
    page_request = page_request_for("quotes", page, size, sort, direction)
    result = QuoteService(db).get_quotes_by_supplier(user_id, page_request, date_filter)
    set_pagination_headers(response, request, result)
    return [quote_to_dto(quote) for quote in result.items]


@router.get("/creator/{user_id}/count", summary="Count quotes created by a user")
def count_quotes_by_creator(user_id: UUID, db: Session = Depends(get_db)):
    return {"user_id": str(user_id), "count": QuoteService(db).count_quotes_by_creator(user_id)}


@router.get("/supplier/{user_id}/count", summary="Count quotes supplied by a user")
def count_quotes_by_supplier(user_id: UUID, db: Session = Depends(get_db)):
    return {"user_id": str(user_id), "count": QuoteService(db).count_quotes_by_supplier(user_id)}


@router.get("/{quote_id}", response_model=QuoteDto, summary="Get a quote")
def get_quote(quote_id: UUID, db: Session = Depends(get_db)):
    return quote_to_dto(QuoteService(db).get_quote(quote_id))


@router.patch("/{quote_id}", response_model=QuoteDto, summary="Update a quote")
def update_quote(quote_id: UUID, request: UpdateQuoteRequest, db: Session = Depends(get_db)):
    service = QuoteService(db)
    quote = service.get_quote(quote_id)
    changes = request.model_dump(exclude_unset=True, exclude_none=True)
    if "currency" in changes:
        changes["currency"] = changes["currency"].upper()
    for field, value in changes.items():
        setattr(quote, field, value)
    return quote_to_dto(service.update(quote))


@router.delete("/{quote_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a quote")
def delete_quote(quote_id: UUID, db: Session = Depends(get_db)):
    service = QuoteService(db)
    service.delete(service.get_quote(quote_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
