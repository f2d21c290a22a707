"""
Estimate Service - Lifecycle of the estimate aggregate.

Estimate -> EstimateGroup -> EstimateLine

Rules:
- groups and lines are attached through Estimate.add_group and
  EstimateGroup.add_line so both sides of each relationship change together
- removing a group or line detaches it and deletes it (and, for a group,
  all of its lines) explicitly in the same transaction
- every change to quantity, multiplier, strategy or overall multiplier
  recomputes the affected line costs
- update/delete require the entity to be stored already
"""
import logging
from typing import List, Optional, Union
from uuid import UUID

from sqlalchemy.orm import Session

from buildflow.config import BuildFlowConfig, get_config
from buildflow.models import Estimate, EstimateGroup, EstimateLine, EstimateLineStrategy
from buildflow.infrastructure.repositories import (
    EstimateRepository,
    EstimateGroupRepository,
    EstimateLineRepository,
    ProjectRepository,
    WorkItemRepository,
)
from buildflow.infrastructure.repositories.base_repository import BaseRepository, Clock
from buildflow.domain.entities.pagination import Page, PageRequest, PaginationHelper
from buildflow.domain.enum_parsing import from_string, from_string_or_default
from buildflow.domain.exceptions import (
    EstimateGroupNotFoundError,
    EstimateLineNotFoundError,
    EstimateNotFoundError,
    NotPersistedError,
    ProjectNotFoundError,
    ValidationError,
    WorkItemNotFoundError,
)
from .cost_computation_service import CostComputationService

logger = logging.getLogger(__name__)


class EstimateService:
    """
    Service for estimates, their groups and their lines.

    All mutations flush but never commit; the caller owns the transaction.
    """

    def __init__(
        self,
        session: Session,
        clock: Optional[Clock] = None,
        config: Optional[BuildFlowConfig] = None,
    ):
        self.session = session
        self.config = config or get_config()
        self.estimate_repo = EstimateRepository(session, clock)
        self.group_repo = EstimateGroupRepository(session, clock)
        self.line_repo = EstimateLineRepository(session, clock)
        self.project_repo = ProjectRepository(session, clock)
        self.work_item_repo = WorkItemRepository(session, clock)
        self.cost_service = CostComputationService(session, self.config)

    # =========================================================================
    # Estimate Queries
    # =========================================================================

    def find_by_id(self, estimate_id: UUID) -> Optional[Estimate]:
        return self.estimate_repo.get_by_id(estimate_id)

    def get_estimate(self, estimate_id: UUID) -> Estimate:
        """
        Get an estimate by id.

        Raises:
            EstimateNotFoundError: If the estimate does not exist
        """
        estimate = self.estimate_repo.get_by_id(estimate_id)
        if estimate is None:
            raise EstimateNotFoundError(estimate_id)
        return estimate

    def find_by_project_id(self, project_id: UUID) -> List[Estimate]:
        self._require_project(project_id)
        return self.estimate_repo.find_by_project_id(project_id)

    def get_estimates_by_project_id(
        self,
        project_id: UUID,
        page_request: Optional[PageRequest] = None,
    ) -> Page[Estimate]:
        """
        One page of a project's estimates, most recently updated first by default.

        Raises:
            ProjectNotFoundError: If the project does not exist
        """
        self._require_project(project_id)
        page_request = page_request or PaginationHelper.for_resource("estimates").build()
        return self.estimate_repo.paginate_by_project_id(project_id, page_request)

    def count_by_project_id(self, project_id: UUID) -> int:
        return self.estimate_repo.count_by_project_id(project_id)

    def is_persisted(self, entity: Union[Estimate, EstimateGroup, EstimateLine]) -> bool:
        """True when the estimate, group or line is already stored."""
        return self._is_persisted(self._repo_for(entity), entity)

    # =========================================================================
    # Estimate Mutations
    # =========================================================================

    def create_estimate(self, project_id: UUID, overall_multiplier: Optional[float] = None) -> Estimate:
        """
        Create an empty estimate for a project.

        Args:
            project_id: Owning project
            overall_multiplier: Global scaling factor (config default when None)

        Raises:
            ProjectNotFoundError: If the project does not exist
            ValidationError: If the multiplier is negative
        """
        project = self._require_project(project_id)
        if overall_multiplier is None:
            overall_multiplier = self.config.default_overall_multiplier
        self._validate_non_negative("overall_multiplier", overall_multiplier)

        estimate = Estimate(project=project, overall_multiplier=overall_multiplier)
        self.estimate_repo.save(estimate)
        logger.info(
            f"Created estimate {estimate.id} for project {project.id} "
            f"(overall multiplier {overall_multiplier})"
        )
        return estimate

    def update_estimate(self, estimate_id: UUID, overall_multiplier: float) -> Estimate:
        """Change an estimate's overall multiplier and recompute every line."""
        estimate = self.get_estimate(estimate_id)
        self._validate_non_negative("overall_multiplier", overall_multiplier)
        estimate.overall_multiplier = overall_multiplier
        self._recompute_lines(estimate)
        self.estimate_repo.save(estimate)
        logger.info(f"Updated estimate {estimate.id}: overall multiplier {overall_multiplier}")
        return estimate

    def update(self, estimate: Estimate) -> Estimate:
        """
        Persist changes to a stored estimate, recomputing its lines.

        Raises:
            NotPersistedError: If the estimate is not stored
        """
        if not self._is_persisted(self.estimate_repo, estimate):
            raise NotPersistedError("Estimate")
        self._validate_non_negative("overall_multiplier", estimate.overall_multiplier)
        self._recompute_lines(estimate)
        return self.estimate_repo.save(estimate)

    def delete_estimate(self, estimate_id: UUID) -> None:
        """
        Delete an estimate with all of its groups and lines.

        Raises:
            EstimateNotFoundError: If the estimate does not exist
        """
        estimate = self.get_estimate(estimate_id)
        self.delete_estimate_tree(estimate)

    def delete(self, estimate: Estimate) -> None:
        if not self._is_persisted(self.estimate_repo, estimate):
            raise NotPersistedError("Estimate")
        self.delete_estimate_tree(estimate)

    def delete_estimate_tree(self, estimate: Estimate) -> None:
        """Detach and delete an estimate, its groups and its lines."""
        estimate_id = estimate.id
        for group in list(estimate.groups):
            self._delete_group_tree(estimate, group)
        for line in list(estimate.lines):
            estimate.lines.remove(line)
            self.session.delete(line)
        project = estimate.project
        if project is not None and estimate in project.estimates:
            project.estimates.remove(estimate)
        self.session.delete(estimate)
        self.session.flush()
        logger.info(f"Deleted estimate {estimate_id}")

    def recompute_estimate(self, estimate_id: UUID) -> Estimate:
        """Re-derive every line cost of an estimate from current quotes."""
        estimate = self.get_estimate(estimate_id)
        self._recompute_lines(estimate)
        self.estimate_repo.save(estimate)
        logger.info(f"Recomputed estimate {estimate.id}: total {estimate.total_cost}")
        return estimate

    def recompute_for_work_item(self, work_item_id: UUID) -> int:
        """
        Recompute every line priced from a work item's quotes.

        Returns:
            Number of lines recomputed
        """
        lines = self.line_repo.find_by_work_item_id(work_item_id)
        for line in lines:
            self.cost_service.apply(line)
            self.line_repo.touch(line)
        if lines:
            self.session.flush()
            logger.info(f"Recomputed {len(lines)} estimate lines for work item {work_item_id}")
        return len(lines)

    # =========================================================================
    # Groups
    # =========================================================================

    def get_group(self, group_id: UUID) -> EstimateGroup:
        group = self.group_repo.get_by_id(group_id)
        if group is None:
            raise EstimateGroupNotFoundError(group_id)
        return group

    def add_group(self, estimate_id: UUID, name: str, description: Optional[str] = None) -> EstimateGroup:
        """
        Create a group inside an estimate.

        Raises:
            EstimateNotFoundError: If the estimate does not exist
            ValidationError: If the name is blank
        """
        estimate = self.get_estimate(estimate_id)
        self._validate_group_name(name)

        group = EstimateGroup(name=name, description=description)
        estimate.add_group(group)
        self.estimate_repo.touch(estimate)
        self.group_repo.save(group)
        logger.info(f"Added group {group.id} '{name}' to estimate {estimate.id}")
        return group

    def update_group(self, group: EstimateGroup) -> EstimateGroup:
        """
        Persist changes to a stored group.

        Raises:
            NotPersistedError: If the group is not stored
        """
        if not self._is_persisted(self.group_repo, group):
            raise NotPersistedError("EstimateGroup")
        self._validate_group_name(group.name)
        return self.group_repo.save(group)

    def remove_group(self, group_id: UUID) -> None:
        """Detach a group from its estimate and delete it with all of its lines."""
        group = self.get_group(group_id)
        estimate = group.estimate
        self._delete_group_tree(estimate, group)
        if estimate is not None:
            self.estimate_repo.touch(estimate)
        self.session.flush()
        logger.info(f"Removed group {group_id}")

    def delete_group(self, group: EstimateGroup) -> None:
        if not self._is_persisted(self.group_repo, group):
            raise NotPersistedError("EstimateGroup")
        self.remove_group(group.id)

    def _delete_group_tree(self, estimate: Optional[Estimate], group: EstimateGroup) -> None:
        lines = list(group.lines)
        if estimate is not None:
            estimate.remove_group(group)
        else:
            for line in lines:
                group.remove_line(line)
        for line in lines:
            self.session.delete(line)
        self.session.delete(group)

    # =========================================================================
    # Lines
    # =========================================================================

    def get_line(self, line_id: UUID) -> EstimateLine:
        line = self.line_repo.get_by_id(line_id)
        if line is None:
            raise EstimateLineNotFoundError(line_id)
        return line

    def add_line(
        self,
        group_id: UUID,
        work_item_id: UUID,
        quantity: float,
        multiplier: Optional[float] = None,
        strategy: Union[str, EstimateLineStrategy, None] = None,
    ) -> EstimateLine:
        """
        Add a priced line to a group. The line joins the group's estimate.

        Raises:
            EstimateGroupNotFoundError: If the group does not exist
            WorkItemNotFoundError: If the work item does not exist
            ValidationError: If quantity or multiplier is negative, or the strategy is unknown
        """
        group = self.get_group(group_id)
        work_item = self.work_item_repo.get_by_id(work_item_id)
        if work_item is None:
            raise WorkItemNotFoundError(work_item_id)
        if multiplier is None:
            multiplier = self.config.default_line_multiplier
        self._validate_non_negative("quantity", quantity)
        self._validate_non_negative("multiplier", multiplier)

        line = EstimateLine(
            work_item=work_item,
            quantity=quantity,
            multiplier=multiplier,
            strategy=self._parse_strategy(strategy),
        )
        group.add_line(line)
        self.cost_service.apply(line)
        self.estimate_repo.touch(group.estimate)
        self.line_repo.save(line)
        logger.info(
            f"Added line {line.id} to group {group.id}: {quantity} x work item "
            f"{work_item.code}, cost {line.computed_cost}"
        )
        return line

    def update_line(
        self,
        line_id: UUID,
        quantity: Optional[float] = None,
        multiplier: Optional[float] = None,
        strategy: Union[str, EstimateLineStrategy, None] = None,
    ) -> EstimateLine:
        """Change a line's inputs and recompute its cost. None leaves a field unchanged."""
        line = self.get_line(line_id)
        if quantity is not None:
            self._validate_non_negative("quantity", quantity)
            line.quantity = quantity
        if multiplier is not None:
            self._validate_non_negative("multiplier", multiplier)
            line.multiplier = multiplier
        if strategy is not None:
            line.strategy = self._parse_strategy(strategy)
        return self._save_line(line)

    def update_line_entity(self, line: EstimateLine) -> EstimateLine:
        """
        Persist changes made directly to a stored line, recomputing its cost.

        Raises:
            NotPersistedError: If the line is not stored
        """
        if not self._is_persisted(self.line_repo, line):
            raise NotPersistedError("EstimateLine")
        self._validate_non_negative("quantity", line.quantity)
        self._validate_non_negative("multiplier", line.multiplier)
        return self._save_line(line)

    def remove_line(self, line_id: UUID) -> None:
        """Detach a line from its group and estimate and delete it."""
        line = self.get_line(line_id)
        estimate = line.estimate
        if line.group is not None:
            line.group.remove_line(line)
        elif estimate is not None:
            estimate.lines.remove(line)
        self.session.delete(line)
        if estimate is not None:
            self.estimate_repo.touch(estimate)
        self.session.flush()
        logger.info(f"Removed line {line_id}")

    def delete_line(self, line: EstimateLine) -> None:
        if not self._is_persisted(self.line_repo, line):
            raise NotPersistedError("EstimateLine")
        self.remove_line(line.id)

    def _save_line(self, line: EstimateLine) -> EstimateLine:
        self.cost_service.apply(line)
        if line.estimate is not None:
            self.estimate_repo.touch(line.estimate)
        self.line_repo.save(line)
        logger.info(f"Updated line {line.id}: cost {line.computed_cost}")
        return line

    # =========================================================================
    # Helpers
    # =========================================================================

    def _recompute_lines(self, estimate: Estimate) -> None:
        for line in estimate.lines:
            self.cost_service.apply(line)
            self.line_repo.touch(line)

    def _require_project(self, project_id: UUID):
        project = self.project_repo.get_by_id(project_id)
        if project is None:
            logger.warning(f"Project {project_id} not found")
            raise ProjectNotFoundError(project_id)
        return project

    def _parse_strategy(self, strategy: Union[str, EstimateLineStrategy, None]) -> EstimateLineStrategy:
        if strategy is None:
            return from_string_or_default(
                EstimateLineStrategy, self.config.default_strategy, EstimateLineStrategy.AVERAGE
            )
        parsed = from_string(EstimateLineStrategy, strategy)
        if parsed is None:
            raise ValidationError("strategy", f"Unknown estimate line strategy: '{strategy}'")
        return parsed

    def _repo_for(self, entity) -> BaseRepository:
        if isinstance(entity, Estimate):
            return self.estimate_repo
        if isinstance(entity, EstimateGroup):
            return self.group_repo
        return self.line_repo

    @staticmethod
    def _is_persisted(repo: BaseRepository, entity) -> bool:
        return entity is not None and entity.id is not None and repo.exists_by_id(entity.id)

    @staticmethod
    def _validate_non_negative(field: str, value) -> None:
        if value is None or value < 0:
            raise ValidationError(field, f"{field} must be zero or positive.")

    @staticmethod
    def _validate_group_name(name: Optional[str]) -> None:
        if name is None or not name.strip():
            raise ValidationError("name", "EstimateGroup name must not be blank.")
