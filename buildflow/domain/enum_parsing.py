"""
Lenient parsing of enum members from strings.

Two policies are used at call sites:
- strict: from_string returns None for unknown input and the caller decides
  (e.g. the domain filter of a work item query raises ValidationError)
- fallback: from_string_or_default substitutes a default
  (e.g. an invalid work item domain on create becomes PUBLIC)

Collections (contact labels) drop unknown members silently.
"""
import logging
from enum import Enum
from typing import Iterable, List, Optional, Type, TypeVar

logger = logging.getLogger(__name__)

E = TypeVar('E', bound=Enum)


def from_string(enum_class: Type[E], value: Optional[str]) -> Optional[E]:
    """Case-insensitive lookup by member name. None when blank or unknown."""
    if isinstance(value, enum_class):
        return value
    if value is None or not str(value).strip():
        return None
    try:
        return enum_class[str(value).strip().upper()]
    except KeyError:
        return None


def from_string_or_default(enum_class: Type[E], value: Optional[str], default: E) -> E:
    """Like from_string, but unknown or blank input yields the default."""
    parsed = from_string(enum_class, value)
    if parsed is None:
        if value is not None and str(value).strip():
            logger.warning(
                f"Unknown {enum_class.__name__} value '{value}', defaulting to {default.name}"
            )
        return default
    return parsed


def from_strings(enum_class: Type[E], values: Optional[Iterable[str]]) -> List[E]:
    """Parse every value, dropping unknown ones. Order is kept."""
    if not values:
        return []
    parsed = []
    for value in values:
        member = from_string(enum_class, value)
        if member is None:
            logger.debug(f"Dropping unknown {enum_class.__name__} value '{value}'")
            continue
        parsed.append(member)
    return parsed


def from_unique_strings(enum_class: Type[E], values: Optional[Iterable[str]]) -> List[E]:
    """Parse, drop unknown values and collapse duplicates, keeping first occurrence."""
    unique: List[E] = []
    for member in from_strings(enum_class, values):
        if member not in unique:
            unique.append(member)
    return unique
