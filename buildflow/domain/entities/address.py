"""
Address Value - Embedded postal address.

One canonical shape is used everywhere an address is embedded:
Contact.address, Project.location and Quote.location.
"""
from dataclasses import dataclass, fields, replace
from typing import Optional


@dataclass(frozen=True)
class Address:
    """
    Immutable postal address value.

    Has no identity of its own; two addresses are equal when every
    field is equal. Mapped onto owner rows via SQLAlchemy composite().

    Attributes:
        unit_number: Apartment / suite / unit
        street_number: Civic number
        street_name: Street name
        city: City or municipality
        state_or_province: State, province or region
        postal_or_zip_code: Postal or ZIP code
        country: Country name or code
    """

    unit_number: Optional[str] = None
    street_number: Optional[str] = None
    street_name: Optional[str] = None
    city: Optional[str] = None
    state_or_province: Optional[str] = None
    postal_or_zip_code: Optional[str] = None
    country: Optional[str] = None

    def __composite_values__(self):
        return tuple(getattr(self, f.name) for f in fields(self))

    @property
    def is_empty(self) -> bool:
        """True when no field carries a value."""
        return all(value is None for value in self.__composite_values__())

    def with_changes(self, **changes) -> "Address":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]


# Column lengths shared by every table that embeds an Address
ADDRESS_COLUMN_LENGTHS = {
    "unit_number": 20,
    "street_number": 20,
    "street_name": 200,
    "city": 100,
    "state_or_province": 100,
    "postal_or_zip_code": 20,
    "country": 100,
}
