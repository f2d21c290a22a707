"""
Estimate aggregate DTOs and mappers.

An EstimateDto nests its groups, and each group nests its lines.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from buildflow.models import Estimate, EstimateGroup, EstimateLine


class EstimateLineDto(BaseModel):
    id: UUID
    estimate_id: UUID
    group_id: UUID
    work_item_id: UUID
    quantity: float
    strategy: str
    multiplier: float
    computed_cost: Decimal
    created_at: Optional[datetime] = None
    last_updated_at: Optional[datetime] = None


class EstimateGroupDto(BaseModel):
    id: UUID
    estimate_id: UUID
    name: str
    description: Optional[str] = None
    total_cost: Decimal
    lines: List[EstimateLineDto] = Field(default_factory=list)


class EstimateDto(BaseModel):
    id: UUID
    project_id: UUID
    overall_multiplier: float
    total_cost: Decimal
    groups: List[EstimateGroupDto] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    last_updated_at: Optional[datetime] = None


class CreateEstimateRequest(BaseModel):
    """Request model for creating an estimate. Multiplier defaults from config."""
    project_id: UUID
    overall_multiplier: Optional[float] = Field(None, ge=0)


class UpdateEstimateRequest(BaseModel):
    overall_multiplier: float = Field(..., ge=0)


class CreateEstimateGroupRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)


class UpdateEstimateGroupRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)


class CreateEstimateLineRequest(BaseModel):
    work_item_id: UUID
    quantity: float = Field(..., ge=0)
    multiplier: Optional[float] = Field(None, ge=0)
    strategy: Optional[str] = None


class UpdateEstimateLineRequest(BaseModel):
    quantity: Optional[float] = Field(None, ge=0)
    multiplier: Optional[float] = Field(None, ge=0)
    strategy: Optional[str] = None


def estimate_line_to_dto(line: EstimateLine) -> EstimateLineDto:
    return EstimateLineDto(
        id=line.id,
        estimate_id=line.estimate_id,
        group_id=line.group_id,
        work_item_id=line.work_item_id,
        quantity=line.quantity,
        strategy=line.strategy.name,
        multiplier=line.multiplier,
        computed_cost=line.computed_cost,
        created_at=line.created_at,
        last_updated_at=line.last_updated_at,
    )


def estimate_group_to_dto(group: EstimateGroup) -> EstimateGroupDto:
    return EstimateGroupDto(
        id=group.id,
        estimate_id=group.estimate_id,
        name=group.name,
        description=group.description,
        total_cost=group.total_cost,
        lines=[estimate_line_to_dto(line) for line in group.lines],
    )


def estimate_to_dto(estimate: Estimate) -> EstimateDto:
    return EstimateDto(
        id=estimate.id,
        project_id=estimate.project_id,
        overall_multiplier=estimate.overall_multiplier,
        total_cost=estimate.total_cost,
        groups=[estimate_group_to_dto(group) for group in estimate.groups],
        created_at=estimate.created_at,
        last_updated_at=estimate.last_updated_at,
    )
