"""
Cost Computation Service - Derives estimate line costs from quotes.

computed_cost = unit_cost(strategy) x quantity x line.multiplier x estimate.overall_multiplier

All arithmetic is Decimal; floats are converted through str() so the result
is reproducible from stored values. The result is rounded half-up to cents.

AVERAGE: arithmetic mean of the unit prices of applicable quotes for the
line's work item. Applicable quotes are valid, and either PUBLIC or created
by the builder of the estimate's project. With no applicable quote the
configured default unit cost is used.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from buildflow.config import BuildFlowConfig, get_config
from buildflow.models import EstimateLine, EstimateLineStrategy
from buildflow.infrastructure.repositories import QuoteRepository
from buildflow.domain.exceptions import InvariantViolationError

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Convert a float/int/str to Decimal without binary float drift."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class CostComputationService:
    """Computes unit costs and line costs for estimate lines."""

    def __init__(self, session: Session, config: Optional[BuildFlowConfig] = None):
        self.session = session
        self.quote_repo = QuoteRepository(session)
        self.config = config or get_config()
        self._strategies = {
            EstimateLineStrategy.AVERAGE: self.average_unit_cost,
        }

    def average_unit_cost(self, work_item_id: UUID, builder_id: Optional[UUID]) -> Decimal:
        """Mean unit price of the applicable quotes, or the default unit cost."""
        quotes = self.quote_repo.find_applicable(work_item_id, builder_id)
        if not quotes:
            return self.config.default_unit_cost
        total = sum((to_decimal(q.unit_price) for q in quotes), Decimal("0"))
        return total / Decimal(len(quotes))

    def unit_cost(
        self,
        strategy: EstimateLineStrategy,
        work_item_id: UUID,
        builder_id: Optional[UUID],
    ) -> Decimal:
        compute = self._strategies.get(strategy)
        if compute is None:
            raise InvariantViolationError(
                invariant_name="supported_strategy",
                expected=", ".join(s.name for s in self._strategies),
                actual=str(strategy),
            )
        return compute(work_item_id, builder_id)

    def compute_cost(
        self,
        strategy: EstimateLineStrategy,
        work_item_id: UUID,
        builder_id: Optional[UUID],
        quantity: float,
        multiplier: float,
        overall_multiplier: float,
    ) -> Decimal:
        """
        Compute a line cost from explicit inputs.

        Returns:
            Cost rounded half-up to two decimal places
        """
        unit_cost = self.unit_cost(strategy, work_item_id, builder_id)
        cost = (
            to_decimal(unit_cost)
            * to_decimal(quantity)
            * to_decimal(multiplier)
            * to_decimal(overall_multiplier)
        )
        return cost.quantize(CENT, rounding=ROUND_HALF_UP)

    def apply(self, line: EstimateLine) -> Decimal:
        """Recompute and store a line's computed_cost from its current fields."""
        with self.session.no_autoflush:
            estimate = line.estimate
            if estimate is None:
                raise InvariantViolationError(
                    invariant_name="line_attached",
                    expected="line attached to an estimate",
                    actual="no estimate",
                )
            work_item_id = line.work_item.id if line.work_item is not None else line.work_item_id
            builder_id = estimate.project.builder_id if estimate.project is not None else None
            cost = self.compute_cost(
                strategy=line.strategy,
                work_item_id=work_item_id,
                builder_id=builder_id,
                quantity=line.quantity,
                multiplier=line.multiplier,
                overall_multiplier=estimate.overall_multiplier,
            )
        line.computed_cost = cost
        logger.debug(f"Line {line.id} cost recomputed: {cost}")
        return cost
