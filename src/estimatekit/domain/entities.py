"""Domain model entities for estimatekit.

These are pure data classes representing business concepts, independent of
database schema. Live tree entities (views, sections, items) are read models
rebuilt from the store on every query; versions and acts hold value copies
that never point back at live rows except through non-owning ids.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Mapping, Optional


@dataclass(frozen=True)
class Project:
    """Estimate project domain entity."""

    id: str
    title: str
    created_at: datetime
    last_synced_at: Optional[datetime] = None


@dataclass(frozen=True)
class View:
    """Named pricing and visibility lens over a project's estimate."""

    id: str
    project_id: str
    name: str
    access_token: str
    access_secret: Optional[str]
    sort_order: int
    is_customer_view: bool
    created_at: datetime


@dataclass(frozen=True)
class SectionViewSetting:
    """Visibility of a section in one view."""

    visible: bool = True


@dataclass(frozen=True)
class ItemViewSetting:
    """Price, cached total and visibility of an item in one view."""

    price: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    visible: bool = True


@dataclass(frozen=True)
class Section:
    """Section (work group) domain entity."""

    id: str
    project_id: str
    name: str
    sort_order: int
    view_settings: Mapping[str, SectionViewSetting] = field(default_factory=dict)


@dataclass(frozen=True)
class Item:
    """Priced estimate line domain entity.

    ``quantity`` is shared by all views; price, total and visibility live in
    ``view_settings`` keyed by view id.
    """

    id: str
    section_id: str
    project_id: str
    number: str
    name: str
    unit: str
    quantity: Decimal
    sort_order: int
    view_settings: Mapping[str, ItemViewSetting] = field(default_factory=dict)


@dataclass(frozen=True)
class SectionNode:
    """A section together with its items, in sort order."""

    section: Section
    items: tuple[Item, ...] = ()


@dataclass(frozen=True)
class EstimateTree:
    """Read model of the whole live estimate of a project."""

    project: Project
    views: tuple[View, ...]
    sections: tuple[SectionNode, ...]

    def find_item(self, item_id: str) -> Optional[Item]:
        for node in self.sections:
            for item in node.items:
                if item.id == item_id:
                    return item
        return None

    def find_section(self, section_id: str) -> Optional[SectionNode]:
        for node in self.sections:
            if node.section.id == section_id:
                return node
        return None


@dataclass(frozen=True)
class SuppliedItem:
    """Item description supplied from outside the store (sync or restore).

    ``prices`` and ``visibility`` are keyed by view id of the target project.
    """

    name: str
    unit: str = ""
    quantity: Decimal = Decimal("0")
    number: str = ""
    prices: Mapping[str, Decimal] = field(default_factory=dict)
    visibility: Mapping[str, bool] = field(default_factory=dict)


@dataclass(frozen=True)
class SuppliedSection:
    """Section description supplied from outside the store."""

    name: str
    items: tuple[SuppliedItem, ...] = ()
    visibility: Mapping[str, bool] = field(default_factory=dict)


# Versions


@dataclass(frozen=True)
class Version:
    """Header of an immutable, numbered estimate snapshot."""

    id: str
    project_id: str
    version_number: int
    name: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class VersionView:
    id: str
    original_view_id: str
    name: str
    sort_order: int
    is_customer_view: bool


@dataclass(frozen=True)
class VersionItem:
    id: str
    original_item_id: str
    number: str
    name: str
    unit: str
    quantity: Decimal
    sort_order: int
    view_settings: Mapping[str, ItemViewSetting] = field(default_factory=dict)


@dataclass(frozen=True)
class VersionSection:
    id: str
    original_section_id: str
    name: str
    sort_order: int
    view_settings: Mapping[str, SectionViewSetting] = field(default_factory=dict)
    items: tuple[VersionItem, ...] = ()


@dataclass(frozen=True)
class VersionSnapshot:
    """Full content of a version.

    View settings inside the snapshot are keyed by ``VersionView.id``.
    """

    version: Version
    views: tuple[VersionView, ...]
    sections: tuple[VersionSection, ...]


# Acts


class SelectionMode(str, Enum):
    """How lines were picked for an act."""

    SECTIONS = "sections"
    ITEMS = "items"


class ActLineKind(str, Enum):
    """Kind of a stored act line."""

    ITEM = "item"
    SECTION_TOTAL = "section_total"


@dataclass(frozen=True)
class ActFields:
    """Descriptive fields of an act certificate."""

    number: str
    date: date
    executor_name: str = ""
    executor_details: str = ""
    customer_name: str = ""
    director_name: str = ""
    service_name: str = ""


@dataclass(frozen=True)
class ActSelection:
    """Sections or items picked for an act.

    In ``SECTIONS`` mode ``item_ids`` narrows the items of the selected
    sections; a selected section with none of its items listed contributes all
    of its items visible in the view.
    """

    mode: SelectionMode
    section_ids: tuple[str, ...] = ()
    item_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class ActLine:
    """Line computed from the live tree, before it is stored."""

    kind: ActLineKind
    item_id: Optional[str]
    section_id: Optional[str]
    name: str
    unit: str
    quantity: Decimal
    price: Decimal
    total: Decimal


@dataclass(frozen=True)
class ActItem:
    """Stored act line, copied by value from the estimate."""

    id: str
    act_id: str
    kind: ActLineKind
    item_id: Optional[str]
    section_id: Optional[str]
    name: str
    unit: str
    quantity: Decimal
    price: Decimal
    total: Decimal
    sort_order: int


@dataclass(frozen=True)
class Act:
    """Immutable certificate of completed work."""

    id: str
    project_id: str
    view_id: Optional[str]
    number: str
    date: date
    executor_name: str
    executor_details: str
    customer_name: str
    director_name: str
    service_name: str
    selection_mode: SelectionMode
    grand_total: Decimal
    created_at: datetime
    items: tuple[ActItem, ...] = ()


@dataclass(frozen=True)
class ActUsage:
    """One act that included an estimate item."""

    act_id: str
    act_number: str
    act_date: date


UsedItemsMap = dict[str, list[ActUsage]]


class ActImageType(str, Enum):
    LOGO = "logo"
    STAMP = "stamp"
    SIGNATURE = "signature"


# Payments


class PaymentMethod(str, Enum):
    MANUAL = "manual"
    PROVIDER = "provider"


class PaymentStatus(str, Enum):
    MANUAL = "manual"
    DRAFT = "draft"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    CANCELED = "canceled"

    @property
    def is_settled(self) -> bool:
        """Whether the money counts as paid."""
        return self in (PaymentStatus.MANUAL, PaymentStatus.SUCCEEDED)

    @property
    def reserves_items(self) -> bool:
        """Whether the payment still holds its items against new selections."""
        return self is not PaymentStatus.CANCELED


@dataclass(frozen=True)
class PaymentItem:
    """Share of a payment assigned to one estimate item."""

    id: str
    payment_id: str
    item_id: str
    amount: Decimal


@dataclass(frozen=True)
class Payment:
    """Payment domain entity."""

    id: str
    project_id: str
    amount: Decimal
    payment_date: date
    notes: str
    method: PaymentMethod
    status: PaymentStatus
    created_at: datetime
    provider_invoice_id: Optional[str] = None
    provider_payment_id: Optional[str] = None
    payment_url: Optional[str] = None
    paid_at: Optional[datetime] = None
    items: tuple[PaymentItem, ...] = ()


@dataclass(frozen=True)
class Completion:
    """Recorded quantity of work done on an item."""

    id: str
    project_id: str
    item_id: str
    quantity: Decimal
    completion_date: date
    notes: str
    created_at: datetime


@dataclass(frozen=True)
class ItemStatus:
    """Derived paid and completed amounts of one item."""

    item_id: str
    paid_amount: Decimal = Decimal("0")
    completed_amount: Decimal = Decimal("0")

    @property
    def is_locked(self) -> bool:
        return self.paid_amount > 0 or self.completed_amount > 0


# Materials


@dataclass(frozen=True)
class Material:
    """Priced material line of a project's separate materials list."""

    id: str
    project_id: str
    name: str
    article: str
    brand: str
    unit: str
    price: Decimal
    quantity: Decimal
    total: Decimal
    url: str
    description: str
    sort_order: int
    created_at: datetime


@dataclass(frozen=True)
class ParsedProduct:
    """Product returned by a product-page parser."""

    name: str
    price: Decimal
    url: str
    article: str = ""
    brand: str = ""
    unit: str = ""
    description: str = ""


# Public projection


@dataclass(frozen=True)
class PublicLine:
    number: str
    name: str
    unit: str
    quantity: Decimal
    price: Decimal
    total: Decimal


@dataclass(frozen=True)
class PublicSection:
    name: str
    lines: tuple[PublicLine, ...]
    subtotal: Decimal


@dataclass(frozen=True)
class PublicView:
    """What a customer sees when opening a published view link.

    Only visible sections and items are present; lines are renumbered from 1
    inside each section and empty sections are dropped.
    """

    project_title: str
    view_name: str
    sections: tuple[PublicSection, ...]
    total: Decimal
