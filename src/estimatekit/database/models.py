"""SQLAlchemy models for estimatekit database."""

import uuid
from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

MONEY = Numeric(14, 2)
QUANTITY = Numeric(14, 3)
# price x quantity keeps 5 decimals; amounts derived from totals use the same scale
AMOUNT = Numeric(18, 5)


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(UTC)


class Project(Base):
    """Estimate project model."""

    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String, nullable=False)
    last_synced_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    views = relationship("View", back_populates="project", cascade="all, delete-orphan")
    sections = relationship("Section", back_populates="project", cascade="all, delete-orphan")
    versions = relationship("Version", back_populates="project", cascade="all, delete-orphan")
    acts = relationship("Act", back_populates="project", cascade="all, delete-orphan")
    act_images = relationship("ActImage", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="project", cascade="all, delete-orphan")
    completions = relationship("Completion", cascade="all, delete-orphan")
    materials = relationship("Material", cascade="all, delete-orphan")


class View(Base):
    """Estimate view model."""

    __tablename__ = "views"

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False)
    name = Column(String, nullable=False)
    access_token = Column(String(36), unique=True, nullable=False, default=new_id)
    access_secret = Column(String, nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)
    is_customer_view = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="views")
    section_settings = relationship(
        "ViewSectionSetting", back_populates="view", cascade="all, delete-orphan"
    )
    item_settings = relationship("ViewItemSetting", back_populates="view", cascade="all, delete-orphan")


class Section(Base):
    """Estimate section model."""

    __tablename__ = "sections"

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False)
    name = Column(String, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="sections")
    items = relationship(
        "Item", back_populates="section", cascade="all, delete-orphan", order_by="Item.sort_order"
    )
    view_settings = relationship(
        "ViewSectionSetting", back_populates="section", cascade="all, delete-orphan"
    )


class Item(Base):
    """Estimate item model."""

    __tablename__ = "items"

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False)
    section_id = Column(String(36), ForeignKey("sections.id"), nullable=False)
    number = Column(String, default="", nullable=False)
    name = Column(String, nullable=False)
    unit = Column(String, default="", nullable=False)
    quantity = Column(QUANTITY, default=0, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    section = relationship("Section", back_populates="items")
    view_settings = relationship("ViewItemSetting", back_populates="item", cascade="all, delete-orphan")


class ViewSectionSetting(Base):
    """Visibility of a section in a view."""

    __tablename__ = "view_section_settings"

    id = Column(String(36), primary_key=True, default=new_id)
    view_id = Column(String(36), ForeignKey("views.id"), nullable=False)
    section_id = Column(String(36), ForeignKey("sections.id"), nullable=False)
    visible = Column(Boolean, default=True, nullable=False)

    __table_args__ = (UniqueConstraint("view_id", "section_id", name="uq_view_section"),)

    # Relationships
    view = relationship("View", back_populates="section_settings")
    section = relationship("Section", back_populates="view_settings")


class ViewItemSetting(Base):
    """Price, cached total and visibility of an item in a view."""

    __tablename__ = "view_item_settings"

    id = Column(String(36), primary_key=True, default=new_id)
    view_id = Column(String(36), ForeignKey("views.id"), nullable=False)
    item_id = Column(String(36), ForeignKey("items.id"), nullable=False)
    price = Column(MONEY, default=0, nullable=False)
    total = Column(AMOUNT, default=0, nullable=False)
    visible = Column(Boolean, default=True, nullable=False)

    __table_args__ = (UniqueConstraint("view_id", "item_id", name="uq_view_item"),)

    # Relationships
    view = relationship("View", back_populates="item_settings")
    item = relationship("Item", back_populates="view_settings")


class Version(Base):
    """Estimate version header model."""

    __tablename__ = "versions"

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False)
    version_number = Column(Integer, nullable=False)
    name = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("project_id", "version_number", name="uq_project_version"),)

    # Relationships
    project = relationship("Project", back_populates="versions")
    views = relationship("VersionView", cascade="all, delete-orphan", order_by="VersionView.sort_order")
    sections = relationship(
        "VersionSection", cascade="all, delete-orphan", order_by="VersionSection.sort_order"
    )


class VersionView(Base):
    """View copy inside a version."""

    __tablename__ = "version_views"

    id = Column(String(36), primary_key=True, default=new_id)
    version_id = Column(String(36), ForeignKey("versions.id"), nullable=False)
    original_view_id = Column(String(36), nullable=False)
    name = Column(String, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    is_customer_view = Column(Boolean, default=False, nullable=False)


class VersionSection(Base):
    """Section copy inside a version."""

    __tablename__ = "version_sections"

    id = Column(String(36), primary_key=True, default=new_id)
    version_id = Column(String(36), ForeignKey("versions.id"), nullable=False)
    original_section_id = Column(String(36), nullable=False)
    name = Column(String, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)

    # Relationships
    items = relationship("VersionItem", cascade="all, delete-orphan", order_by="VersionItem.sort_order")
    view_settings = relationship("VersionViewSectionSetting", cascade="all, delete-orphan")


class VersionItem(Base):
    """Item copy inside a version."""

    __tablename__ = "version_items"

    id = Column(String(36), primary_key=True, default=new_id)
    version_id = Column(String(36), ForeignKey("versions.id"), nullable=False)
    version_section_id = Column(String(36), ForeignKey("version_sections.id"), nullable=False)
    original_item_id = Column(String(36), nullable=False)
    number = Column(String, default="", nullable=False)
    name = Column(String, nullable=False)
    unit = Column(String, default="", nullable=False)
    quantity = Column(QUANTITY, default=0, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)

    # Relationships
    view_settings = relationship("VersionViewItemSetting", cascade="all, delete-orphan")


class VersionViewSectionSetting(Base):
    """Section visibility copy inside a version."""

    __tablename__ = "version_view_section_settings"

    id = Column(String(36), primary_key=True, default=new_id)
    version_id = Column(String(36), ForeignKey("versions.id"), nullable=False)
    version_view_id = Column(String(36), ForeignKey("version_views.id"), nullable=False)
    version_section_id = Column(String(36), ForeignKey("version_sections.id"), nullable=False)
    visible = Column(Boolean, default=True, nullable=False)


class VersionViewItemSetting(Base):
    """Item price/visibility copy inside a version."""

    __tablename__ = "version_view_item_settings"

    id = Column(String(36), primary_key=True, default=new_id)
    version_id = Column(String(36), ForeignKey("versions.id"), nullable=False)
    version_view_id = Column(String(36), ForeignKey("version_views.id"), nullable=False)
    version_item_id = Column(String(36), ForeignKey("version_items.id"), nullable=False)
    price = Column(MONEY, default=0, nullable=False)
    total = Column(AMOUNT, default=0, nullable=False)
    visible = Column(Boolean, default=True, nullable=False)


class Act(Base):
    """Saved act model."""

    __tablename__ = "acts"

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False)
    # Non-owning: the view may be deleted later
    view_id = Column(String(36), nullable=True)
    number = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    executor_name = Column(String, default="", nullable=False)
    executor_details = Column(String, default="", nullable=False)
    customer_name = Column(String, default="", nullable=False)
    director_name = Column(String, default="", nullable=False)
    service_name = Column(String, default="", nullable=False)
    selection_mode = Column(String, nullable=False)
    grand_total = Column(AMOUNT, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="acts")
    items = relationship("ActItem", cascade="all, delete-orphan", order_by="ActItem.sort_order")


class ActItem(Base):
    """Saved act line, copied by value."""

    __tablename__ = "act_items"

    id = Column(String(36), primary_key=True, default=new_id)
    act_id = Column(String(36), ForeignKey("acts.id"), nullable=False)
    kind = Column(String, nullable=False)
    # Non-owning lookups into the live tree
    item_id = Column(String(36), nullable=True)
    section_id = Column(String(36), nullable=True)
    name = Column(String, nullable=False)
    unit = Column(String, default="", nullable=False)
    quantity = Column(QUANTITY, default=0, nullable=False)
    price = Column(MONEY, default=0, nullable=False)
    total = Column(AMOUNT, default=0, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)


class ActImage(Base):
    """Logo, stamp or signature image used on acts."""

    __tablename__ = "act_images"

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False)
    image_type = Column(String, nullable=False)
    data = Column(Text, nullable=False)

    __table_args__ = (UniqueConstraint("project_id", "image_type", name="uq_project_image_type"),)


class Payment(Base):
    """Payment model."""

    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False)
    amount = Column(AMOUNT, nullable=False)
    payment_date = Column(Date, nullable=False)
    notes = Column(String, default="", nullable=False)
    method = Column(String, nullable=False)
    status = Column(String, nullable=False)
    provider_invoice_id = Column(String, nullable=True)
    provider_payment_id = Column(String, nullable=True)
    payment_url = Column(String, nullable=True)
    paid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="payments")
    items = relationship("PaymentItem", cascade="all, delete-orphan")


class PaymentItem(Base):
    """Share of a payment assigned to an item."""

    __tablename__ = "payment_items"

    id = Column(String(36), primary_key=True, default=new_id)
    payment_id = Column(String(36), ForeignKey("payments.id"), nullable=False)
    # Non-owning: ledger history outlives the item
    item_id = Column(String(36), nullable=False)
    amount = Column(AMOUNT, nullable=False)


class Completion(Base):
    """Completed quantity of work on an item."""

    __tablename__ = "completions"

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False)
    item_id = Column(String(36), nullable=False)
    quantity = Column(QUANTITY, nullable=False)
    completion_date = Column(Date, nullable=False)
    notes = Column(String, default="", nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Material(Base):
    """Material list line model."""

    __tablename__ = "materials"

    id = Column(String(36), primary_key=True, default=new_id)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False)
    name = Column(String, nullable=False)
    article = Column(String, default="", nullable=False)
    brand = Column(String, default="", nullable=False)
    unit = Column(String, default="", nullable=False)
    price = Column(MONEY, default=0, nullable=False)
    quantity = Column(QUANTITY, default=1, nullable=False)
    total = Column(AMOUNT, default=0, nullable=False)
    url = Column(String, default="", nullable=False)
    description = Column(String, default="", nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
