"""
Estimate Repositories - Data access layer for the estimate aggregate.

Implements repository pattern for:
- Estimate (per-project listing, paging and counting)
- EstimateGroup
- EstimateLine (lookup by estimate and by work item for recomputation)
"""
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from buildflow.models import Estimate, EstimateGroup, EstimateLine
from buildflow.domain.entities.pagination import Page, PageRequest
from .base_repository import BaseRepository, Clock


class EstimateRepository(BaseRepository[Estimate]):
    """Repository for Estimate entities."""

    def __init__(self, session: Session, clock: Optional[Clock] = None):
        super().__init__(session, Estimate, clock)

    def find_by_project_id(self, project_id: UUID) -> List[Estimate]:
        """
        Get all estimates of a project.

        Args:
            project_id: Owning project identifier

        Returns:
            Estimates, most recently updated first
        """
        return self.session.query(Estimate).filter(
            Estimate.project_id == project_id
        ).order_by(Estimate.last_updated_at.desc(), Estimate.id).all()

    def paginate_by_project_id(self, project_id: UUID, page_request: PageRequest) -> Page[Estimate]:
        query = self.session.query(Estimate).filter(Estimate.project_id == project_id)
        return self.paginate(query, page_request)

    def count_by_project_id(self, project_id: UUID) -> int:
        return self.session.query(Estimate).filter(Estimate.project_id == project_id).count()


class EstimateGroupRepository(BaseRepository[EstimateGroup]):
    """Repository for EstimateGroup entities."""

    def __init__(self, session: Session, clock: Optional[Clock] = None):
        super().__init__(session, EstimateGroup, clock)

    def find_by_estimate_id(self, estimate_id: UUID) -> List[EstimateGroup]:
        return self.session.query(EstimateGroup).filter(
            EstimateGroup.estimate_id == estimate_id
        ).order_by(EstimateGroup.created_at, EstimateGroup.id).all()


class EstimateLineRepository(BaseRepository[EstimateLine]):
    """Repository for EstimateLine entities."""

    def __init__(self, session: Session, clock: Optional[Clock] = None):
        super().__init__(session, EstimateLine, clock)

    def find_by_estimate_id(self, estimate_id: UUID) -> List[EstimateLine]:
        return self.session.query(EstimateLine).filter(
            EstimateLine.estimate_id == estimate_id
        ).all()

    def find_by_work_item_id(self, work_item_id: UUID) -> List[EstimateLine]:
        """Lines whose cost depends on this work item's quotes."""
        return self.session.query(EstimateLine).filter(
            EstimateLine.work_item_id == work_item_id
        ).all()
