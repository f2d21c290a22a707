"""
Domain Event Handlers for the estimation model.

SQLAlchemy event listeners that run before every insert and update:
- WorkItem: code and name must be non-blank; default group name normalized
- EstimateLine: quantity, multiplier and computed cost are non-negative and
  the line's group belongs to the line's estimate

These handlers keep invalid rows out of storage even when an entity is
persisted without going through a service.
"""
from decimal import Decimal

from sqlalchemy import event

from buildflow.models import WorkItem, EstimateLine, UNASSIGNED_GROUP_NAME
from buildflow.domain.exceptions import ValidationError, InvariantViolationError


# =============================================================================
# WorkItem Validation
# =============================================================================

def validate_work_item(target: WorkItem) -> None:
    """Reject blank code or name and normalize the default group name."""
    if target.code is None or not target.code.strip():
        raise ValidationError("code", "WorkItem code must not be blank.")
    if target.name is None or not target.name.strip():
        raise ValidationError("name", "WorkItem name must not be blank.")
    if target.default_group_name is None or not target.default_group_name.strip():
        target.default_group_name = UNASSIGNED_GROUP_NAME


@event.listens_for(WorkItem, 'before_insert')
def work_item_before_insert(mapper, connection, target):
    validate_work_item(target)


@event.listens_for(WorkItem, 'before_update')
def work_item_before_update(mapper, connection, target):
    validate_work_item(target)


# =============================================================================
# EstimateLine Validation
# =============================================================================

def validate_estimate_line(target: EstimateLine) -> None:
    """Enforce non-negative numbers and group/estimate consistency."""
    if target.quantity is None or target.quantity < 0:
        raise ValidationError("quantity", "Quantity must be zero or positive.")
    if target.multiplier is None or target.multiplier < 0:
        raise ValidationError("multiplier", "Multiplier must be zero or positive.")
    if target.computed_cost is None or Decimal(target.computed_cost) < 0:
        raise ValidationError("computed_cost", "Computed cost must be zero or positive.")

    # Only relationships already loaded are checked; nothing is lazy-loaded mid-flush
    loaded = target.__dict__
    if "group" not in loaded or "estimate" not in loaded:
        return
    group, estimate = loaded["group"], loaded["estimate"]
    if group is None or estimate is None:
        raise InvariantViolationError(
            invariant_name="line_attached",
            expected="line attached to a group and an estimate",
            actual=f"group={group}, estimate={estimate}",
        )
    if "estimate" in group.__dict__:
        consistent = group.__dict__["estimate"] is estimate
    else:
        consistent = group.estimate_id == estimate.id
    if not consistent:
        raise InvariantViolationError(
            invariant_name="line_group_estimate",
            expected=f"estimate {estimate.id}",
            actual=f"group {group.id} belongs to estimate {group.estimate_id}",
        )


@event.listens_for(EstimateLine, 'before_insert')
def estimate_line_before_insert(mapper, connection, target):
    validate_estimate_line(target)


@event.listens_for(EstimateLine, 'before_update')
def estimate_line_before_update(mapper, connection, target):
    validate_estimate_line(target)
