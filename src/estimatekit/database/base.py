"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Optional, Sequence, Mapping
from datetime import date, datetime
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from estimatekit.domain.entities import (
    Act,
    ActFields,
    ActLine,
    ActUsage,
    Completion,
    EstimateTree,
    Item,
    Material,
    Payment,
    PaymentMethod,
    PaymentStatus,
    Project,
    Section,
    SelectionMode,
    SuppliedSection,
    Version,
    VersionSnapshot,
    View,
)


class Database(ABC):
    """Abstract database interface for estimatekit.

    Every write method is one unit of work: it either commits completely or
    rolls back and raises.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Project operations
    @abstractmethod
    def create_project(self, title: str, view_names: Sequence[str] = ()) -> str:
        """Create a project with the given views. Returns project ID.

        The first view is flagged as the customer view.
        """
        pass

    @abstractmethod
    def get_project(self, project_id: str) -> Optional[Project]:
        """Get project by ID."""
        pass

    @abstractmethod
    def list_projects(self) -> list[Project]:
        """List all projects."""
        pass

    @abstractmethod
    def update_project(
        self, project_id: str, title: Optional[str] = None, last_synced_at: Optional[datetime] = None
    ) -> None:
        """Update project title and/or last sync time."""
        pass

    @abstractmethod
    def delete_project(self, project_id: str) -> None:
        """Delete a project and everything it owns."""
        pass

    # View operations
    @abstractmethod
    def create_view(
        self,
        project_id: str,
        name: str,
        sort_order: int,
        is_customer_view: bool = False,
        copy_settings_from: Optional[str] = None,
    ) -> str:
        """Create a view with settings for every section and item. Returns view ID.

        Settings are copied from ``copy_settings_from`` when given, otherwise
        every section and item is visible with price 0.
        """
        pass

    @abstractmethod
    def get_view(self, view_id: str) -> Optional[View]:
        """Get view by ID."""
        pass

    @abstractmethod
    def get_view_by_token(self, access_token: str) -> Optional[View]:
        """Get view by its public access token."""
        pass

    @abstractmethod
    def list_views(self, project_id: str) -> list[View]:
        """List views of a project in sort order."""
        pass

    @abstractmethod
    def get_max_view_sort_order(self, project_id: str) -> int:
        """Highest view sort order of a project, -1 when there are none."""
        pass

    @abstractmethod
    def update_view(
        self,
        view_id: str,
        name: Optional[str] = None,
        access_secret: Optional[str] = None,
        update_secret: bool = False,
    ) -> None:
        """Update view fields.

        Args:
            update_secret: If True, set access_secret even if it's None (to clear it)
        """
        pass

    @abstractmethod
    def set_customer_view(self, project_id: str, view_id: Optional[str]) -> None:
        """Flag one view as the customer view and clear the flag on the others."""
        pass

    @abstractmethod
    def delete_view(self, view_id: str) -> None:
        """Delete a view and its settings.

        A deleted customer view hands its flag to the first remaining view.
        """
        pass

    # Section operations
    @abstractmethod
    def create_section(self, project_id: str, name: str, sort_order: int) -> str:
        """Create a section visible in every view. Returns section ID."""
        pass

    @abstractmethod
    def get_section(self, section_id: str) -> Optional[Section]:
        """Get section by ID."""
        pass

    @abstractmethod
    def list_sections(self, project_id: str) -> list[Section]:
        """List sections of a project in sort order."""
        pass

    @abstractmethod
    def get_max_section_sort_order(self, project_id: str) -> int:
        """Highest section sort order of a project, -1 when there are none."""
        pass

    @abstractmethod
    def rename_section(self, section_id: str, name: str) -> None:
        """Rename a section."""
        pass

    @abstractmethod
    def delete_section(self, section_id: str) -> None:
        """Delete a section with its items and settings."""
        pass

    @abstractmethod
    def set_section_visibility(self, section_id: str, view_id: str, visible: bool) -> None:
        """Create or update the visibility setting of a section in a view."""
        pass

    # Item operations
    @abstractmethod
    def create_item(
        self,
        section_id: str,
        name: str,
        unit: str,
        quantity: Decimal,
        sort_order: int,
        number: str = "",
    ) -> str:
        """Create an item priced 0 and visible in every view. Returns item ID."""
        pass

    @abstractmethod
    def get_item(self, item_id: str) -> Optional[Item]:
        """Get item by ID."""
        pass

    @abstractmethod
    def list_items(self, project_id: Optional[str] = None, section_id: Optional[str] = None) -> list[Item]:
        """List items of a project or a section in sort order."""
        pass

    @abstractmethod
    def get_max_item_sort_order(self, section_id: str) -> int:
        """Highest item sort order of a section, -1 when there are none."""
        pass

    @abstractmethod
    def update_item(
        self,
        item_id: str,
        name: Optional[str] = None,
        unit: Optional[str] = None,
        quantity: Optional[Decimal] = None,
        view_settings: Optional[Mapping[str, tuple[Optional[Decimal], Optional[bool]]]] = None,
    ) -> None:
        """Update item fields and per-view (price, visible) pairs in one unit of work.

        Totals of every view are recomputed from the resulting price and quantity.
        """
        pass

    @abstractmethod
    def delete_item(self, item_id: str) -> None:
        """Delete an item and its settings."""
        pass

    # Tree operations
    @abstractmethod
    def get_tree(self, project_id: str) -> Optional[EstimateTree]:
        """Get the live estimate tree of a project."""
        pass

    @abstractmethod
    def replace_tree(
        self,
        project_id: str,
        sections: Sequence[SuppliedSection],
        last_synced_at: Optional[datetime] = None,
    ) -> None:
        """Replace all sections and items of a project with the supplied tree.

        When ``last_synced_at`` is given it is stored in the same transaction.
        """
        pass

    # Version operations
    @abstractmethod
    def create_version(self, project_id: str, name: Optional[str] = None) -> str:
        """Snapshot the live tree under the next version number. Returns version ID."""
        pass

    @abstractmethod
    def get_version(self, version_id: str) -> Optional[Version]:
        """Get version header by ID."""
        pass

    @abstractmethod
    def get_version_snapshot(self, version_id: str) -> Optional[VersionSnapshot]:
        """Get full version content by ID."""
        pass

    @abstractmethod
    def list_versions(self, project_id: str) -> list[Version]:
        """List versions of a project, newest first."""
        pass

    @abstractmethod
    def restore_version(self, version_id: str) -> None:
        """Replace views, sections and items of the version's project with the snapshot."""
        pass

    # Act operations
    @abstractmethod
    def create_act(
        self,
        project_id: str,
        view_id: Optional[str],
        fields: ActFields,
        selection_mode: SelectionMode,
        grand_total: Decimal,
        lines: Sequence[ActLine],
    ) -> str:
        """Store an act with its value-copied lines. Returns act ID."""
        pass

    @abstractmethod
    def get_act(self, act_id: str) -> Optional[Act]:
        """Get act by ID."""
        pass

    @abstractmethod
    def list_acts(self, project_id: str) -> list[Act]:
        """List acts of a project, newest first."""
        pass

    @abstractmethod
    def delete_act(self, act_id: str) -> None:
        """Delete an act and its lines."""
        pass

    @abstractmethod
    def list_act_usages(self, project_id: str) -> list[tuple[str, ActUsage]]:
        """List (item_id, usage) pairs for every act line that references an item."""
        pass

    @abstractmethod
    def set_act_image(self, project_id: str, image_type: str, data: str) -> None:
        """Create or replace an act image of a project."""
        pass

    @abstractmethod
    def get_act_images(self, project_id: str) -> dict[str, str]:
        """Get act images of a project keyed by image type."""
        pass

    @abstractmethod
    def delete_act_image(self, project_id: str, image_type: str) -> None:
        """Delete an act image."""
        pass

    # Payment operations
    @abstractmethod
    def create_payment(
        self,
        project_id: str,
        amount: Decimal,
        payment_date: date,
        notes: str,
        method: PaymentMethod,
        status: PaymentStatus,
        items: Sequence[tuple[str, Decimal]],
        provider_invoice_id: Optional[str] = None,
        payment_url: Optional[str] = None,
    ) -> str:
        """Create a payment with its item shares. Returns payment ID."""
        pass

    @abstractmethod
    def get_payment(self, payment_id: str) -> Optional[Payment]:
        """Get payment by ID."""
        pass

    @abstractmethod
    def list_payments(self, project_id: str) -> list[Payment]:
        """List payments of a project, newest first."""
        pass

    @abstractmethod
    def update_payment_status(
        self,
        payment_id: str,
        status: PaymentStatus,
        provider_payment_id: Optional[str] = None,
        paid_at: Optional[datetime] = None,
    ) -> None:
        """Update payment status and provider fields."""
        pass

    @abstractmethod
    def find_payment_by_provider_id(self, provider_id: str) -> Optional[Payment]:
        """Find a payment by provider payment ID or invoice ID."""
        pass

    @abstractmethod
    def delete_payment(self, payment_id: str) -> None:
        """Delete a payment and its item shares."""
        pass

    # Completion operations
    @abstractmethod
    def create_completion(
        self, project_id: str, item_id: str, quantity: Decimal, completion_date: date, notes: str = ""
    ) -> str:
        """Record completed work on an item. Returns completion ID."""
        pass

    @abstractmethod
    def get_completion(self, completion_id: str) -> Optional[Completion]:
        """Get completion by ID."""
        pass

    @abstractmethod
    def list_completions(self, project_id: str, item_id: Optional[str] = None) -> list[Completion]:
        """List completions of a project, optionally for one item."""
        pass

    @abstractmethod
    def delete_completion(self, completion_id: str) -> None:
        """Delete a completion."""
        pass

    # Material operations
    @abstractmethod
    def create_material(
        self,
        project_id: str,
        name: str,
        price: Decimal,
        quantity: Decimal,
        sort_order: int,
        article: str = "",
        brand: str = "",
        unit: str = "",
        url: str = "",
        description: str = "",
    ) -> str:
        """Create a material line. Returns material ID."""
        pass

    @abstractmethod
    def get_material(self, material_id: str) -> Optional[Material]:
        """Get material by ID."""
        pass

    @abstractmethod
    def list_materials(self, project_id: str) -> list[Material]:
        """List materials of a project in sort order."""
        pass

    @abstractmethod
    def get_max_material_sort_order(self, project_id: str) -> int:
        """Highest material sort order of a project, -1 when there are none."""
        pass

    @abstractmethod
    def update_material(self, material_id: str, **fields) -> None:
        """Update material fields; the total is recomputed."""
        pass

    @abstractmethod
    def delete_material(self, material_id: str) -> None:
        """Delete a material line."""
        pass
