"""
Shared fixtures: an in-memory database per test, a deterministic clock
and a small graph of users, work items and projects.
"""
import os

# Must be set before buildflow builds its engine
os.environ.setdefault("BUILDFLOW_DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from buildflow.models import Base, Contact, ContactLabel
from buildflow.domain.dto import CreateQuoteRequest, CreateWorkItemRequest
from buildflow.domain.services import (
    EstimateService,
    ProjectParticipantService,
    ProjectService,
    QuoteService,
    UserService,
    WorkItemService,
)


class FakeClock:
    """Returns strictly increasing timestamps, one step per call."""

    def __init__(self, start=datetime(2026, 1, 5, 8, 0, 0), step=timedelta(minutes=1)):
        self.now = start
        self.step = step

    def __call__(self):
        self.now = self.now + self.step
        return self.now


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """Session configured like SessionLocal."""
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_contact():
    """Factory for unsaved contacts with unique emails."""
    counter = {"n": 0}

    def _make(email=None, first_name="Test", last_name="Person", labels=None, **kwargs):
        counter["n"] += 1
        return Contact(
            first_name=first_name,
            last_name=last_name,
            email=email or f"person{counter['n']}@example.com",
            labels=labels,
            **kwargs,
        )

    return _make


# =============================================================================
# Services
# =============================================================================

@pytest.fixture
def user_service(db_session, clock):
    return UserService(db_session, clock)


@pytest.fixture
def work_item_service(db_session, clock):
    return WorkItemService(db_session, clock)


@pytest.fixture
def project_service(db_session, clock):
    return ProjectService(db_session, clock)


@pytest.fixture
def participant_service(db_session, clock):
    return ProjectParticipantService(db_session, clock)


@pytest.fixture
def estimate_service(db_session, clock):
    return EstimateService(db_session, clock)


@pytest.fixture
def quote_service(db_session, clock):
    return QuoteService(db_session, clock)


# =============================================================================
# Sample Data
# =============================================================================

@pytest.fixture
def builder(user_service, make_contact):
    return user_service.new_registered_builder(
        make_contact(email="builder@example.com", first_name="Bea", last_name="Builder")
    )


@pytest.fixture
def owner(user_service, make_contact):
    return user_service.new_unregistered_owner(
        make_contact(email="owner@example.com", first_name="Otto", last_name="Owner")
    )


@pytest.fixture
def supplier(user_service, make_contact):
    return user_service.new_unregistered_user(
        make_contact(email="supplier@example.com", first_name="Sam", last_name="Supplier"),
        ContactLabel.SUPPLIER,
    )


@pytest.fixture
def work_item(work_item_service, builder):
    response = work_item_service.create_work_item(CreateWorkItemRequest(
        code="CONC-01",
        name="Concrete slab",
        user_id=builder.id,
        default_group_name="Foundations",
    ))
    return work_item_service.find_by_id(response.work_item.id)


@pytest.fixture
def project(project_service, builder, owner):
    return project_service.create_project(builder.id, owner.id)


@pytest.fixture
def make_quote(quote_service):
    """Factory creating quotes through QuoteService."""

    def _make(work_item, created_by, supplier, unit_price, unit="SQUARE_METER", **kwargs):
        request = CreateQuoteRequest(
            work_item_id=work_item.id,
            created_by_id=created_by.id,
            supplier_id=supplier.id,
            unit=unit,
            unit_price=Decimal(str(unit_price)),
            **kwargs,
        )
        return quote_service.create_quote(request)

    return _make
