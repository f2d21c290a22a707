"""
Database models and SQLAlchemy setup for BuildFlow.

Monetary values are stored as Numeric(17, 2) and handled as Decimal.
Enum columns store the member name, never the ordinal.
"""
import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    create_engine, Column, Integer, String, Float, Boolean, DateTime,
    ForeignKey, Numeric, Enum, Uuid
)
from sqlalchemy.ext.associationproxy import association_proxy
from sqlalchemy.orm import declarative_base, sessionmaker, relationship, composite, validates

from buildflow.config import get_config
from buildflow.domain.entities.address import Address, ADDRESS_COLUMN_LENGTHS

_config = get_config()
DATABASE_URL = _config.database_url
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, echo=_config.database_echo, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

UNASSIGNED_GROUP_NAME = "Unassigned"
MONEY = Numeric(17, 2)
ZERO_MONEY = Decimal("0.00")


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _enum_column(enum_class, length: int = 30):
    """Enum stored by member name as a plain string column."""
    return Enum(enum_class, native_enum=False, length=length, validate_strings=True)


# =============================================================================
# Enums
# =============================================================================

class ContactLabel(enum.Enum):
    """Role a contact plays for the business."""
    SUPPLIER = "SUPPLIER"
    SUBCONTRACTOR = "SUBCONTRACTOR"
    LENDER = "LENDER"
    PERMIT_AUTHORITY = "PERMIT_AUTHORITY"
    OTHER = "OTHER"
    BUILDER = "BUILDER"
    OWNER = "OWNER"
    ADMINISTRATOR = "ADMINISTRATOR"


class Domain(enum.Enum):
    """Visibility scope of work items and quotes."""
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


class QuoteUnit(enum.Enum):
    """Unit of measure a quote is priced in. The value is the display symbol."""
    SQUARE_METER = "m²"
    SQUARE_FOOT = "ft²"
    CUBIC_METER = "m³"
    CUBIC_FOOT = "ft³"
    METER = "m"
    FOOT = "ft"
    EACH = "each"
    KILOGRAM = "kg"
    TON = "ton"
    LITER = "L"
    MILLILITER = "mL"
    HOUR = "hr"
    DAY = "day"

    @property
    def symbol(self) -> str:
        return self.value


class EstimateLineStrategy(enum.Enum):
    """How an estimate line derives its unit cost from quotes."""
    AVERAGE = "AVERAGE"


class ProjectRole(enum.Enum):
    """Role a participant plays in a project."""
    BUILDER = "BUILDER"
    OWNER = "OWNER"


# =============================================================================
# Shared Columns
# =============================================================================

class TimestampMixin:
    """Audit timestamps. Services refresh last_updated_at on every save."""
    created_at = Column(DateTime, default=utcnow, nullable=False)
    last_updated_at = Column(DateTime, default=utcnow, nullable=False, index=True)


def _address_column(name: str) -> Column:
    return Column(String(ADDRESS_COLUMN_LENGTHS[name]), nullable=True)


# =============================================================================
# Contact & User
# =============================================================================

class ContactLabelEntry(Base):
    """One label of a contact (element collection row)."""
    __tablename__ = "contact_labels"

    id = Column(Integer, primary_key=True, autoincrement=True)
    contact_id = Column(Uuid, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True)
    label = Column(_enum_column(ContactLabel, 50), nullable=False)

    def __init__(self, label: ContactLabel):
        self.label = label


class Contact(TimestampMixin, Base):
    """
    A person or organisation the business deals with.

    Labels keep insertion order and collapse duplicates. The address is an
    embedded value stored on the contact row.
    """
    __tablename__ = "contacts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(100), nullable=False, unique=True, index=True)
    phone = Column(String(30), nullable=True)

    unit_number = _address_column("unit_number")
    street_number = _address_column("street_number")
    street_name = _address_column("street_name")
    city = _address_column("city")
    state_or_province = _address_column("state_or_province")
    postal_or_zip_code = _address_column("postal_or_zip_code")
    country = _address_column("country")
    address = composite(
        Address, unit_number, street_number, street_name, city,
        state_or_province, postal_or_zip_code, country
    )

    label_entries = relationship(
        "ContactLabelEntry",
        cascade="all, delete-orphan",
        order_by="ContactLabelEntry.id",
        lazy="selectin",
    )
    labels = association_proxy("label_entries", "label")

    def __init__(self, labels=None, **kwargs):
        super().__init__(**kwargs)
        if labels:
            self.add_labels(*labels)

    def add_label(self, label: ContactLabel) -> bool:
        """Add a label unless already present. Returns True when added."""
        if label in self.labels:
            return False
        self.labels.append(label)
        return True

    def add_labels(self, *labels: ContactLabel) -> None:
        for label in labels:
            self.add_label(label)

    def set_labels(self, labels) -> None:
        """Replace all labels, collapsing duplicates."""
        self.label_entries.clear()
        self.add_labels(*labels)

    def __repr__(self):
        return f"<Contact id={self.id} email={self.email!r}>"


class User(TimestampMixin, Base):
    """
    An account. Always backed by exactly one Contact.

    Projects and quotes reference users; those back-references are read-only
    and never cascade writes.
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(100), nullable=False, unique=True, index=True)
    email = Column(String(100), nullable=False, unique=True, index=True)
    registered = Column(Boolean, nullable=False, default=False)
    contact_id = Column(Uuid, ForeignKey("contacts.id"), nullable=False, unique=True)

    contact = relationship("Contact", lazy="joined", cascade="save-update, merge")
    built_projects = relationship("Project", foreign_keys="Project.builder_id", viewonly=True)
    owned_projects = relationship("Project", foreign_keys="Project.owner_id", viewonly=True)
    created_quotes = relationship("Quote", foreign_keys="Quote.created_by_id", viewonly=True)
    supplied_quotes = relationship("Quote", foreign_keys="Quote.supplier_id", viewonly=True)

    def __init__(self, **kwargs):
        kwargs.setdefault("registered", False)
        super().__init__(**kwargs)

    def __repr__(self):
        return f"<User id={self.id} username={self.username!r}>"


# =============================================================================
# Work Items
# =============================================================================

class WorkItem(TimestampMixin, Base):
    """A unit of work a user prices through quotes and uses in estimates."""
    __tablename__ = "work_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    code = Column(String(50), nullable=False, index=True)
    name = Column(String(250), nullable=False)
    description = Column(String(1000), nullable=True)
    optional = Column(Boolean, nullable=False, default=False)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    default_group_name = Column(String(100), nullable=False, default=UNASSIGNED_GROUP_NAME)
    domain = Column(_enum_column(Domain), nullable=False, default=Domain.PUBLIC)

    user = relationship("User")

    def __init__(self, **kwargs):
        kwargs.setdefault("optional", False)
        kwargs.setdefault("domain", Domain.PUBLIC)
        kwargs.setdefault("default_group_name", None)
        super().__init__(**kwargs)

    @validates("default_group_name")
    def _normalize_group_name(self, key, value):
        if value is None or not str(value).strip():
            return UNASSIGNED_GROUP_NAME
        return value

    def __repr__(self):
        return f"<WorkItem id={self.id} code={self.code!r}>"


# =============================================================================
# Projects
# =============================================================================

class Project(TimestampMixin, Base):
    """
    A construction project between a builder and an owner.

    Estimates and participants are created by their own services; project
    writes never cascade into them.
    """
    __tablename__ = "projects"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    builder_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    owner_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    unit_number = _address_column("unit_number")
    street_number = _address_column("street_number")
    street_name = _address_column("street_name")
    city = _address_column("city")
    state_or_province = _address_column("state_or_province")
    postal_or_zip_code = _address_column("postal_or_zip_code")
    country = _address_column("country")
    location = composite(
        Address, unit_number, street_number, street_name, city,
        state_or_province, postal_or_zip_code, country
    )

    builder = relationship("User", foreign_keys=[builder_id])
    owner = relationship("User", foreign_keys=[owner_id])
    estimates = relationship("Estimate", back_populates="project", order_by="Estimate.created_at")
    participants = relationship("ProjectParticipant", back_populates="project")

    def __repr__(self):
        return f"<Project id={self.id}>"


class ProjectParticipant(Base):
    """
    A contact taking part in a project in a given role.

    The contact is stored on its own and outlives the participant.
    """
    __tablename__ = "project_participants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)
    role = Column(_enum_column(ProjectRole, 50), nullable=False)
    contact_id = Column(Uuid, ForeignKey("contacts.id"), nullable=False, index=True)

    project = relationship("Project", back_populates="participants")
    contact = relationship("Contact", lazy="joined")

    def __repr__(self):
        return f"<ProjectParticipant id={self.id} role={self.role} contact_id={self.contact_id}>"


# =============================================================================
# Estimate Aggregate (Estimate -> EstimateGroup -> EstimateLine)
# =============================================================================

class Estimate(TimestampMixin, Base):
    """
    A costed proposal for a project.

    Groups and lines are attached and detached only through add_group /
    remove_group and EstimateGroup.add_line / remove_line so both sides of
    every relationship change together. Deleting detached children is the
    estimate service's job.
    """
    __tablename__ = "estimates"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid, ForeignKey("projects.id"), nullable=False, index=True)
    overall_multiplier = Column(Float, nullable=False, default=1.0)

    project = relationship("Project", back_populates="estimates")
    groups = relationship("EstimateGroup", back_populates="estimate", order_by="EstimateGroup.created_at")
    lines = relationship("EstimateLine", back_populates="estimate", order_by="EstimateLine.created_at")

    def __init__(self, **kwargs):
        kwargs.setdefault("overall_multiplier", 1.0)
        super().__init__(**kwargs)

    def add_group(self, group: "EstimateGroup") -> "EstimateGroup":
        """Attach a group, moving it (and its lines) from any other estimate."""
        if group.estimate is not None and group.estimate is not self:
            group.estimate.remove_group(group, detach_lines=False)
        if group not in self.groups:
            self.groups.append(group)
        for line in group.lines:
            line.estimate = self
        return group

    def remove_group(self, group: "EstimateGroup", detach_lines: bool = True) -> "EstimateGroup":
        """Detach a group; its lines are detached from this estimate too."""
        for line in list(group.lines):
            if line in self.lines:
                self.lines.remove(line)
            if detach_lines:
                group.lines.remove(line)
        if group in self.groups:
            self.groups.remove(group)
        return group

    @property
    def total_cost(self) -> Decimal:
        """Sum of the computed costs of every line."""
        return sum((line.computed_cost or ZERO_MONEY for line in self.lines), ZERO_MONEY)

    def __repr__(self):
        return f"<Estimate id={self.id} project_id={self.project_id}>"


class EstimateGroup(TimestampMixin, Base):
    """A named section of an estimate holding lines."""
    __tablename__ = "estimate_groups"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    estimate_id = Column(Uuid, ForeignKey("estimates.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)

    estimate = relationship("Estimate", back_populates="groups")
    lines = relationship("EstimateLine", back_populates="group", order_by="EstimateLine.created_at")

    def add_line(self, line: "EstimateLine") -> "EstimateLine":
        """Attach a line; the line's estimate is always this group's estimate."""
        if line.group is not None and line.group is not self:
            line.group.remove_line(line)
        if line not in self.lines:
            self.lines.append(line)
        if self.estimate is not None and line not in self.estimate.lines:
            self.estimate.lines.append(line)
        return line

    def remove_line(self, line: "EstimateLine") -> "EstimateLine":
        """Detach a line from this group and from its estimate."""
        if line in self.lines:
            self.lines.remove(line)
        if line.estimate is not None:
            line.estimate.lines.remove(line)
        return line

    @property
    def total_cost(self) -> Decimal:
        return sum((line.computed_cost or ZERO_MONEY for line in self.lines), ZERO_MONEY)

    def __repr__(self):
        return f"<EstimateGroup id={self.id} name={self.name!r}>"


class EstimateLine(TimestampMixin, Base):
    """
    A priced quantity of one work item inside a group.

    computed_cost is derived by CostComputationService and is never set
    independently of quantity, multipliers and strategy.
    """
    __tablename__ = "estimate_lines"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    estimate_id = Column(Uuid, ForeignKey("estimates.id"), nullable=False, index=True)
    group_id = Column(Uuid, ForeignKey("estimate_groups.id"), nullable=False, index=True)
    work_item_id = Column(Uuid, ForeignKey("work_items.id"), nullable=False, index=True)
    quantity = Column(Float, nullable=False, default=0.0)
    strategy = Column(_enum_column(EstimateLineStrategy), nullable=False, default=EstimateLineStrategy.AVERAGE)
    multiplier = Column(Float, nullable=False, default=1.0)
    computed_cost = Column(MONEY, nullable=False, default=ZERO_MONEY)

    estimate = relationship("Estimate", back_populates="lines")
    group = relationship("EstimateGroup", back_populates="lines")
    work_item = relationship("WorkItem")

    def __init__(self, **kwargs):
        kwargs.setdefault("quantity", 0.0)
        kwargs.setdefault("multiplier", 1.0)
        kwargs.setdefault("strategy", EstimateLineStrategy.AVERAGE)
        kwargs.setdefault("computed_cost", ZERO_MONEY)
        super().__init__(**kwargs)

    def __repr__(self):
        return f"<EstimateLine id={self.id} quantity={self.quantity} cost={self.computed_cost}>"


# =============================================================================
# Quotes
# =============================================================================

class Quote(TimestampMixin, Base):
    """A supplier's unit price for a work item."""
    __tablename__ = "quotes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    work_item_id = Column(Uuid, ForeignKey("work_items.id"), nullable=False, index=True)
    created_by_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    supplier_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    unit = Column(_enum_column(QuoteUnit), nullable=False)
    unit_price = Column(MONEY, nullable=False)
    currency = Column(String(3), nullable=False)
    domain = Column(_enum_column(Domain), nullable=False, default=Domain.PUBLIC)
    valid = Column(Boolean, nullable=False, default=True)

    unit_number = _address_column("unit_number")
    street_number = _address_column("street_number")
    street_name = _address_column("street_name")
    city = _address_column("city")
    state_or_province = _address_column("state_or_province")
    postal_or_zip_code = _address_column("postal_or_zip_code")
    country = _address_column("country")
    location = composite(
        Address, unit_number, street_number, street_name, city,
        state_or_province, postal_or_zip_code, country
    )

    work_item = relationship("WorkItem")
    created_by = relationship("User", foreign_keys=[created_by_id])
    supplier = relationship("User", foreign_keys=[supplier_id])

    def __init__(self, **kwargs):
        kwargs.setdefault("domain", Domain.PUBLIC)
        kwargs.setdefault("valid", True)
        kwargs.setdefault("currency", get_config().default_currency)
        super().__init__(**kwargs)

    def __repr__(self):
        return f"<Quote id={self.id} unit_price={self.unit_price} {self.currency}>"


def init_db():
    """Initialize the database and create all tables."""
    Base.metadata.create_all(bind=engine)


def get_db():
    """
    Database session dependency for FastAPI.

    One session per request: committed when the request succeeds,
    rolled back when anything raises.
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# Flush-time validation listeners for the models above
from buildflow.domain.events import handlers  # noqa: E402,F401
