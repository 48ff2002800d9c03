"""Interfaces of the external systems the accounting core talks to.

Only contracts live here. The core never depends on a concrete renderer,
spreadsheet or product-page parser; a payment provider client over HTTP is
provided in ``estimatekit.integrations``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Mapping, Optional, Sequence

from estimatekit.domain.entities import (
    ActFields,
    ActLine,
    ParsedProduct,
    PaymentStatus,
    Project,
    SuppliedSection,
    View,
)


@dataclass(frozen=True)
class RenderedArtifact:
    """Binary document produced by a renderer."""

    content: bytes
    filename: str
    media_type: str = "application/pdf"


@dataclass(frozen=True)
class ActDocument:
    """Everything a renderer needs to lay out an act."""

    project_title: str
    view_name: str
    fields: ActFields
    lines: tuple[ActLine, ...]
    grand_total: Decimal
    images: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SuppliedTree:
    """Sections and items pulled from an external source."""

    sections: tuple[SuppliedSection, ...] = ()


@dataclass(frozen=True)
class InvoiceLine:
    description: str
    amount: Decimal


@dataclass(frozen=True)
class InvoiceRequest:
    """Invoice to be issued by a payment provider."""

    amount: Decimal
    description: str
    lines: tuple[InvoiceLine, ...] = ()
    customer: Optional[Mapping[str, str]] = None
    metadata: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class InvoiceResponse:
    """Provider view of an invoice."""

    invoice_id: str
    status: PaymentStatus
    payment_url: Optional[str] = None
    payment_id: Optional[str] = None
    paid_at: Optional[datetime] = None


class DocumentRenderer(ABC):
    @abstractmethod
    def render(self, document: ActDocument) -> RenderedArtifact:
        """Render an act document into a deliverable artifact."""


class SpreadsheetSource(ABC):
    @abstractmethod
    def fetch_tree(self, project: Project, views: Sequence[View]) -> SuppliedTree:
        """Fetch the estimate tree of a project.

        Prices and visibility of the returned items are keyed by ids of ``views``.
        """


class ProductParser(ABC):
    @abstractmethod
    def parse(self, urls: Sequence[str]) -> list[ParsedProduct]:
        """Parse product pages into products; unparseable pages are omitted."""


class InvoiceProvider(ABC):
    @abstractmethod
    def create_invoice(self, request: InvoiceRequest) -> InvoiceResponse:
        """Issue an invoice and return its id and confirmation URL."""

    @abstractmethod
    def get_status(self, invoice_id: str) -> InvoiceResponse:
        """Fetch the current status of an invoice."""
