"""
Quote DTOs and mappers.

Units travel as enum names; the display symbol is included for clients.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from buildflow.models import Quote
from .contact import AddressDto, address_to_dto


class QuoteDto(BaseModel):
    id: UUID
    work_item_id: UUID
    created_by_id: UUID
    supplier_id: UUID
    unit: str
    unit_symbol: str
    unit_price: Decimal
    currency: str
    domain: str
    location: AddressDto
    valid: bool
    created_at: Optional[datetime] = None
    last_updated_at: Optional[datetime] = None


class CreateQuoteRequest(BaseModel):
    """Request model for creating a quote."""
    work_item_id: UUID
    created_by_id: UUID
    supplier_id: UUID
    unit: str = Field(..., description="QuoteUnit name, e.g. SQUARE_METER")
    unit_price: Decimal = Field(..., ge=0, max_digits=17, decimal_places=2)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    domain: Optional[str] = None
    location: AddressDto = Field(default_factory=AddressDto)
    valid: bool = True


class UpdateQuoteRequest(BaseModel):
    unit_price: Optional[Decimal] = Field(None, ge=0, max_digits=17, decimal_places=2)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    valid: Optional[bool] = None


def quote_to_dto(quote: Quote) -> QuoteDto:
    return QuoteDto(
        id=quote.id,
        work_item_id=quote.work_item_id,
        created_by_id=quote.created_by_id,
        supplier_id=quote.supplier_id,
        unit=quote.unit.name,
        unit_symbol=quote.unit.symbol,
        unit_price=quote.unit_price,
        currency=quote.currency,
        domain=quote.domain.name,
        location=address_to_dto(quote.location),
        valid=bool(quote.valid),
        created_at=quote.created_at,
        last_updated_at=quote.last_updated_at,
    )
