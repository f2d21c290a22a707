"""
Contact, Address and User DTOs with their entity mappers.

Labels travel as their enum names. Converting a DTO back into an entity
wraps any failure in DtoMappingError so malformed input is never dropped.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from buildflow.models import Contact, ContactLabel, User
from buildflow.domain.entities.address import Address
from buildflow.domain.enum_parsing import from_unique_strings
from buildflow.domain.exceptions import DtoMappingError


# =============================================================================
# Pydantic Models
# =============================================================================

class AddressDto(BaseModel):
    """Postal address on the wire."""
    unit_number: Optional[str] = Field(None, max_length=20)
    street_number: Optional[str] = Field(None, max_length=20)
    street_name: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, max_length=100)
    state_or_province: Optional[str] = Field(None, max_length=100)
    postal_or_zip_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=100)

    model_config = ConfigDict(from_attributes=True)


class ContactDto(BaseModel):
    """Contact as exchanged with clients."""
    id: Optional[UUID] = None
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    labels: List[str] = Field(default_factory=list)
    email: str = Field(..., max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    address: AddressDto = Field(default_factory=AddressDto)


class ContactRequestDto(BaseModel):
    """Contact part of a user creation request."""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    labels: List[str] = Field(default_factory=list)
    email: str = Field(..., min_length=3, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[AddressDto] = None


class UserDto(BaseModel):
    """User with its contact."""
    id: UUID
    username: str
    email: str
    registered: bool
    contact: ContactDto
    created_at: Optional[datetime] = None
    last_updated_at: Optional[datetime] = None


class CreateUserRequest(BaseModel):
    """Request model for creating a user. Username defaults to the contact email."""
    username: Optional[str] = Field(None, max_length=100)
    registered: bool = False
    contact: ContactRequestDto


class CreateUserResponse(BaseModel):
    user: UserDto


# =============================================================================
# Mappers
# =============================================================================

def address_to_dto(address: Optional[Address]) -> AddressDto:
    if address is None:
        return AddressDto()
    return AddressDto(**address.to_dict())


def address_from_dto(dto: Optional[AddressDto]) -> Address:
    if dto is None:
        return Address()
    return Address(**dto.model_dump())


def contact_to_dto(contact: Contact) -> ContactDto:
    """Convert a Contact entity into a ContactDto."""
    return ContactDto(
        id=contact.id,
        first_name=contact.first_name,
        last_name=contact.last_name,
        labels=[label.name for label in contact.labels],
        email=contact.email,
        phone=contact.phone,
        address=address_to_dto(contact.address),
    )


def contact_from_dto(dto) -> Contact:
    """
    Convert a ContactDto (or ContactRequestDto) into a Contact entity.

    Unknown label names are dropped; duplicates collapse.

    Raises:
        DtoMappingError: If the DTO cannot be converted
    """
    try:
        contact = Contact(
            first_name=dto.first_name,
            last_name=dto.last_name,
            email=dto.email,
            phone=dto.phone,
            address=address_from_dto(dto.address),
            labels=from_unique_strings(ContactLabel, dto.labels),
        )
        dto_id = getattr(dto, "id", None)
        if dto_id is not None:
            contact.id = dto_id
        return contact
    except Exception as e:
        raise DtoMappingError(f"Invalid ContactDto: {e}", e) from e


def user_to_dto(user: User) -> UserDto:
    """Convert a User entity into a UserDto."""
    return UserDto(
        id=user.id,
        username=user.username,
        email=user.email,
        registered=bool(user.registered),
        contact=contact_to_dto(user.contact),
        created_at=user.created_at,
        last_updated_at=user.last_updated_at,
    )


def apply_contact_dto(contact: Contact, dto) -> Contact:
    """
    Copy the fields of a ContactRequestDto onto an existing contact.

    Labels are replaced; the contact keeps its id.

    Raises:
        DtoMappingError: If the DTO cannot be applied
    """
    try:
        contact.first_name = dto.first_name
        contact.last_name = dto.last_name
        contact.email = dto.email
        contact.phone = dto.phone
        contact.address = address_from_dto(dto.address)
        contact.set_labels(from_unique_strings(ContactLabel, dto.labels))
        return contact
    except Exception as e:
        raise DtoMappingError(f"Invalid ContactDto: {e}", e) from e
