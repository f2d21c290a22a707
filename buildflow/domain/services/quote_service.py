"""
Quote Service - Persistence and paginated queries for quotes.

Saving a quote stamps created_at on first save and last_updated_at on every
save. Any change to a quote recomputes the estimate lines priced from its
work item, and from the work item it priced before when that changed.
"""
import logging
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from buildflow.config import get_config
from buildflow.models import Domain, Quote, QuoteUnit
from buildflow.infrastructure.repositories import QuoteRepository, UserRepository, WorkItemRepository
from buildflow.infrastructure.repositories.base_repository import Clock
from buildflow.domain.dto import CreateQuoteRequest, address_from_dto
from buildflow.domain.entities.pagination import DateFilter, Page, PageRequest, PaginationHelper
from buildflow.domain.enum_parsing import from_string, from_string_or_default
from buildflow.domain.exceptions import (
    NotPersistedError,
    QuoteNotFoundError,
    UserNotFoundError,
    ValidationError,
    WorkItemNotFoundError,
)
from .estimate_service import EstimateService

logger = logging.getLogger(__name__)


class QuoteService:
    """Service for quotes."""

    def __init__(self, session: Session, clock: Optional[Clock] = None):
        self.session = session
        self.quote_repo = QuoteRepository(session, clock)
        self.user_repo = UserRepository(session, clock)
        self.work_item_repo = WorkItemRepository(session, clock)
        self.estimate_service = EstimateService(session, clock)

    # =========================================================================
    # Persistence
    # =========================================================================

    def save(self, quote: Quote) -> Quote:
        """Persist a new or changed quote and reprice dependent estimate lines."""
        if quote.unit_price is None or Decimal(quote.unit_price) < 0:
            raise ValidationError("unit_price", "Unit price must be zero or positive.")
        work_item_ids = self._stored_work_item_ids(quote)
        saved = self.quote_repo.save(quote)
        logger.info(f"Saved quote {saved.id} ({saved.unit_price} {saved.currency} per {saved.unit.symbol})")
        work_item_ids.add(saved.work_item_id)
        for work_item_id in work_item_ids:
            self.estimate_service.recompute_for_work_item(work_item_id)
        return saved

    @staticmethod
    def _stored_work_item_ids(quote: Quote) -> set:
        """
        Work items the quote priced before this save.

        work_item_id still holds the stored value when only the work_item
        relationship was reassigned; a directly assigned id shows up in the
        attribute history instead.
        """
        ids = {quote.work_item_id}
        ids.update(inspect(quote).attrs.work_item_id.history.deleted)
        ids.discard(None)
        return ids

    def create_quote(self, request: CreateQuoteRequest) -> Quote:
        """
        Create a quote from a request.

        Raises:
            WorkItemNotFoundError: If the work item does not exist
            UserNotFoundError: If the creator or supplier does not exist
            ValidationError: If the unit is unknown
        """
        work_item = self.work_item_repo.get_by_id(request.work_item_id)
        if work_item is None:
            raise WorkItemNotFoundError(request.work_item_id)
        created_by = self.user_repo.get_by_id(request.created_by_id)
        if created_by is None:
            raise UserNotFoundError(request.created_by_id)
        supplier = self.user_repo.get_by_id(request.supplier_id)
        if supplier is None:
            raise UserNotFoundError(request.supplier_id, role="Supplier")
        unit = from_string(QuoteUnit, request.unit)
        if unit is None:
            raise ValidationError("unit", f"Unknown quote unit: '{request.unit}'")

        quote = Quote(
            work_item=work_item,
            created_by=created_by,
            supplier=supplier,
            unit=unit,
            unit_price=request.unit_price,
            currency=(request.currency or get_config().default_currency).upper(),
            domain=from_string_or_default(Domain, request.domain, Domain.PUBLIC),
            location=address_from_dto(request.location),
            valid=request.valid,
        )
        return self.save(quote)

    def is_persisted(self, quote: Quote) -> bool:
        return quote.id is not None and self.quote_repo.exists_by_id(quote.id)

    def update(self, quote: Quote) -> Quote:
        """
        Persist changes to a stored quote.

        Raises:
            NotPersistedError: If the quote is not stored
        """
        with self.session.no_autoflush:
            if not self.is_persisted(quote):
                raise NotPersistedError("Quote")
        return self.save(quote)

    def delete(self, quote: Quote) -> None:
        """
        Delete a stored quote and reprice dependent estimate lines.

        Raises:
            NotPersistedError: If the quote is not stored
        """
        if not self.is_persisted(quote):
            raise NotPersistedError("Quote")
        quote_id, work_item_id = quote.id, quote.work_item_id
        self.quote_repo.delete(quote)
        logger.info(f"Deleted quote {quote_id}")
        self.estimate_service.recompute_for_work_item(work_item_id)

    # =========================================================================
    # Queries
    # =========================================================================

    def find_by_id(self, quote_id: UUID) -> Optional[Quote]:
        return self.quote_repo.get_by_id(quote_id)

    def get_quote(self, quote_id: UUID) -> Quote:
        quote = self.quote_repo.get_by_id(quote_id)
        if quote is None:
            raise QuoteNotFoundError(quote_id)
        return quote

    def find_by_work_item_id(self, work_item_id: UUID) -> List[Quote]:
        return self.quote_repo.find_by_work_item_id(work_item_id)

    def get_quotes_by_creator(
        self,
        user_id: UUID,
        page_request: Optional[PageRequest] = None,
        date_filter: Optional[DateFilter] = None,
    ) -> Page[Quote]:
        """
        One page of the quotes a user created, newest first by default.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        self._require_user(user_id)
        page_request = page_request or PaginationHelper.for_resource("quotes").build()
        return self.quote_repo.paginate_by_creator(user_id, page_request, date_filter)

    def get_quotes_by_supplier(
        self,
        user_id: UUID,
        page_request: Optional[PageRequest] = None,
        date_filter: Optional[DateFilter] = None,
    ) -> Page[Quote]:
        """
        One page of the quotes a user supplied, newest first by default.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        self._require_user(user_id, role="Supplier")
        page_request = page_request or PaginationHelper.for_resource("quotes").build()
        return self.quote_repo.paginate_by_supplier(user_id, page_request, date_filter)

    def count_quotes_by_creator(self, user_id: UUID) -> int:
        return self.quote_repo.count_by_creator(user_id)

    def count_quotes_by_supplier(self, user_id: UUID) -> int:
        return self.quote_repo.count_by_supplier(user_id)

    def _require_user(self, user_id: UUID, role: str = "User") -> None:
        if not self.user_repo.exists_by_id(user_id):
            raise UserNotFoundError(user_id, role=role)
