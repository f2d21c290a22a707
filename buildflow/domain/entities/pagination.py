"""
Pagination primitives shared by repositories, services and the API.

- PageRequest: zero-based page, size and a single sort order
- Page: one slice of results plus the totals needed for navigation
- DateFilter: created/updated timestamp ranges
- PaginationHelper: parses raw query parameters against allowed sort fields
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Generic, List, Optional, TypeVar

from buildflow.config import get_config

logger = logging.getLogger(__name__)

T = TypeVar('T')

ASC = "asc"
DESC = "desc"


@dataclass(frozen=True)
class PageRequest:
    """Zero-based page request with one sort order."""

    page: int = 0
    size: int = 25
    sort: Optional[str] = None
    direction: str = ASC

    def __post_init__(self):
        if self.page < 0:
            raise ValueError("Page index must not be negative")
        if self.size < 1:
            raise ValueError("Page size must be at least 1")
        if self.direction not in (ASC, DESC):
            raise ValueError(f"Invalid sort direction: {self.direction}")

    @property
    def offset(self) -> int:
        return self.page * self.size


@dataclass
class Page(Generic[T]):
    """A page of results."""

    items: List[T]
    total: int
    page: int
    size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.size) if self.size else 0

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 0

    @property
    def is_first(self) -> bool:
        return self.page == 0

    @property
    def is_last(self) -> bool:
        return not self.has_next

    def map(self, func) -> "Page":
        """Return a page with the same metadata and transformed items."""
        return Page(items=[func(item) for item in self.items], total=self.total,
                    page=self.page, size=self.size)


@dataclass(frozen=True)
class DateFilter:
    """Inclusive created/updated timestamp bounds. Unset bounds are ignored."""

    created_after: Optional[datetime] = None
    created_before: Optional[datetime] = None
    updated_after: Optional[datetime] = None
    updated_before: Optional[datetime] = None

    @property
    def is_empty(self) -> bool:
        return not any((self.created_after, self.created_before,
                        self.updated_after, self.updated_before))

    @classmethod
    def from_strings(
        cls,
        created_after: Optional[str] = None,
        created_before: Optional[str] = None,
        updated_after: Optional[str] = None,
        updated_before: Optional[str] = None,
    ) -> "DateFilter":
        """Build a filter from ISO-8601 strings; unparseable values are dropped."""
        return cls(
            created_after=parse_timestamp(created_after, "created_after"),
            created_before=parse_timestamp(created_before, "created_before"),
            updated_after=parse_timestamp(updated_after, "updated_after"),
            updated_before=parse_timestamp(updated_before, "updated_before"),
        )


def parse_timestamp(value: Optional[str], name: str = "timestamp") -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp leniently.

    Returns None for blank or invalid input; invalid input is logged.
    Timezone-aware values are normalized to naive UTC to match stored columns.
    """
    if value is None or not str(value).strip():
        return None
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.warning(f"Ignoring invalid {name} filter value: '{value}'")
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


@dataclass
class PaginationHelper:
    """
    Builds PageRequests for one resource from raw query parameters.

    Unknown sort fields and directions fall back to the resource defaults
    and are logged rather than rejected.
    """

    resource: str
    allowed_sort_fields: List[str] = field(default_factory=list)
    default_sort: str = "id"
    default_direction: str = ASC
    default_page_size: int = 25
    max_page_size: int = 200

    @classmethod
    def for_resource(cls, resource: str) -> "PaginationHelper":
        """Create a helper from the configured settings of a resource."""
        config = get_config()
        settings = config.get_pagination_settings(resource)
        return cls(
            resource=resource,
            allowed_sort_fields=list(settings.get("sort_fields", ["id"])),
            default_sort=settings.get("default_sort", "id"),
            default_direction=str(settings.get("default_direction", ASC)).lower(),
            default_page_size=config.default_page_size,
            max_page_size=config.max_page_size,
        )

    def resolve_sort(self, sort: Optional[str]) -> str:
        if not sort:
            return self.default_sort
        if sort not in self.allowed_sort_fields:
            logger.warning(
                f"Invalid sort field '{sort}' for {self.resource}; "
                f"using default '{self.default_sort}'"
            )
            return self.default_sort
        return sort

    def resolve_direction(self, direction: Optional[str]) -> str:
        if not direction:
            return self.default_direction
        normalized = direction.strip().lower()
        if normalized not in (ASC, DESC):
            logger.warning(
                f"Invalid sort direction '{direction}' for {self.resource}; "
                f"using default '{self.default_direction}'"
            )
            return self.default_direction
        return normalized

    def build(
        self,
        page: Optional[int] = None,
        size: Optional[int] = None,
        sort: Optional[str] = None,
        direction: Optional[str] = None,
    ) -> PageRequest:
        """Build a PageRequest, clamping page and size into valid ranges."""
        page_index = max(page or 0, 0)
        page_size = size if size and size > 0 else self.default_page_size
        page_size = min(page_size, self.max_page_size)
        return PageRequest(
            page=page_index,
            size=page_size,
            sort=self.resolve_sort(sort),
            direction=self.resolve_direction(direction),
        )
