"""Estimate tree domain service."""

from datetime import datetime, UTC
from decimal import Decimal
from typing import Mapping, Optional, Sequence

import structlog

from estimatekit.database.base import Database
from estimatekit.domain.collaborators import SpreadsheetSource
from estimatekit.domain.entities import (
    Item as ItemEntity,
    Section as SectionEntity,
    SuppliedSection,
    View as ViewEntity,
)
from estimatekit.domain.errors import (
    ExternalServiceError,
    NotFoundError,
    ValidationError,
    empty_name,
    item_not_found,
    project_not_found,
    section_not_found,
    view_not_found,
    view_not_in_project,
)
from estimatekit.domain.payment import PaymentService

logger = structlog.get_logger(__name__)

ViewSettingChanges = Mapping[str, tuple[Optional[Decimal], Optional[bool]]]


class EstimateService:
    """Service for structural edits of sections and items.

    Items that were paid for or completed are locked; the lock is consulted
    from the payment ledger before every item mutation.
    """

    def __init__(self, db: Database):
        """Initialize estimate service.

        Args:
            db: Database instance
        """
        self.db = db
        self.ledger = PaymentService(db)

    def _require_project(self, project_id: str) -> None:
        if self.db.get_project(project_id) is None:
            raise NotFoundError(project_not_found(project_id))

    def _require_section(self, section_id: str) -> SectionEntity:
        section = self.db.get_section(section_id)
        if section is None:
            raise NotFoundError(section_not_found(section_id))
        return section

    def _require_item(self, item_id: str) -> ItemEntity:
        item = self.db.get_item(item_id)
        if item is None:
            raise NotFoundError(item_not_found(item_id))
        return item

    def _require_view_in_project(self, project_id: str, view_id: str) -> ViewEntity:
        view = self.db.get_view(view_id)
        if view is None:
            raise NotFoundError(view_not_found(view_id))
        if view.project_id != project_id:
            raise ValidationError(view_not_in_project(view_id, project_id))
        return view

    @staticmethod
    def _clean_name(name: str, what: str) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError(empty_name(what))
        return name

    @staticmethod
    def _check_quantity(quantity) -> Decimal:
        quantity = Decimal(quantity)
        if quantity < 0:
            raise ValidationError("Quantity must not be negative")
        return quantity

    @staticmethod
    def _check_price(price) -> Decimal:
        price = Decimal(price)
        if price < 0:
            raise ValidationError("Price must not be negative")
        return price

    # Sections

    def add_section(self, project_id: str, name: str) -> str:
        """Append a section, visible in every view.

        Returns:
            Section ID

        Raises:
            NotFoundError: If project doesn't exist
            ValidationError: If name is empty
        """
        self._require_project(project_id)
        name = self._clean_name(name, "Section")
        sort_order = self.db.get_max_section_sort_order(project_id) + 1
        section_id = self.db.create_section(project_id, name, sort_order)
        logger.info("section_added", project_id=project_id, section_id=section_id)
        return section_id

    def get_section(self, section_id: str) -> Optional[SectionEntity]:
        return self.db.get_section(section_id)

    def rename_section(self, section_id: str, name: str) -> None:
        self._require_section(section_id)
        self.db.rename_section(section_id, self._clean_name(name, "Section"))

    def delete_section(self, section_id: str) -> None:
        """Delete a section with all of its items.

        Paid or completed items do not protect their section. Ledger rows keep
        their item ids and still count towards the balance.
        """
        section = self._require_section(section_id)
        self.db.delete_section(section_id)
        logger.info("section_deleted", project_id=section.project_id, section_id=section_id)

    def set_section_visibility(self, section_id: str, view_id: str, visible: bool) -> None:
        section = self._require_section(section_id)
        self._require_view_in_project(section.project_id, view_id)
        self.db.set_section_visibility(section_id, view_id, bool(visible))

    # Items

    def add_item(
        self,
        section_id: str,
        name: str,
        unit: str = "",
        quantity: Decimal = Decimal("0"),
        number: str = "",
    ) -> str:
        """Append an item to a section, priced 0 and visible in every view.

        Returns:
            Item ID

        Raises:
            NotFoundError: If section doesn't exist
            ValidationError: If name is empty or quantity is negative
        """
        self._require_section(section_id)
        name = self._clean_name(name, "Item")
        quantity = self._check_quantity(quantity)
        sort_order = self.db.get_max_item_sort_order(section_id) + 1
        item_id = self.db.create_item(
            section_id, name, (unit or "").strip(), quantity, sort_order, number=(number or "").strip()
        )
        logger.info("item_added", section_id=section_id, item_id=item_id)
        return item_id

    def get_item(self, item_id: str) -> Optional[ItemEntity]:
        return self.db.get_item(item_id)

    def update_item(
        self,
        item_id: str,
        name: Optional[str] = None,
        unit: Optional[str] = None,
        quantity: Optional[Decimal] = None,
        view_settings: Optional[ViewSettingChanges] = None,
    ) -> None:
        """Update item fields and, optionally, per-view settings together.

        Args:
            item_id: Item ID
            name: New name
            unit: New unit
            quantity: New quantity; totals of every view follow it
            view_settings: view_id -> (price, visible); None leaves a field as is

        Raises:
            NotFoundError: If item or a view doesn't exist
            ValidationError: If a value is invalid or a view belongs to another project
            ItemLockedError: If the item has been paid for or completed
        """
        item = self._require_item(item_id)
        self.ledger.ensure_item_unlocked(item)

        if name is not None:
            name = self._clean_name(name, "Item")
        if quantity is not None:
            quantity = self._check_quantity(quantity)
        changes = {}
        for view_id, (price, visible) in (view_settings or {}).items():
            self._require_view_in_project(item.project_id, view_id)
            changes[view_id] = (
                self._check_price(price) if price is not None else None,
                bool(visible) if visible is not None else None,
            )

        self.db.update_item(
            item_id,
            name=name,
            unit=unit.strip() if unit is not None else None,
            quantity=quantity,
            view_settings=changes,
        )
        logger.info("item_updated", item_id=item_id)

    def delete_item(self, item_id: str) -> None:
        """Delete an item.

        Raises:
            NotFoundError: If item doesn't exist
            ItemLockedError: If the item has been paid for or completed
        """
        item = self._require_item(item_id)
        self.ledger.ensure_item_unlocked(item)
        self.db.delete_item(item_id)
        logger.info("item_deleted", item_id=item_id)

    def set_view_item_setting(
        self,
        item_id: str,
        view_id: str,
        price: Optional[Decimal] = None,
        visible: Optional[bool] = None,
    ) -> None:
        """Set price and/or visibility of an item in one view; the total follows.

        Raises:
            ItemLockedError: If the item has been paid for or completed
        """
        item = self._require_item(item_id)
        self._require_view_in_project(item.project_id, view_id)
        if price is not None:
            price = self._check_price(price)
        self.ledger.ensure_item_unlocked(item)

        self.db.update_item(item_id, view_settings={view_id: (price, visible)})

    # Whole tree

    def replace_tree(self, project_id: str, sections: Sequence[SuppliedSection]) -> None:
        """Replace every section and item of a project with a supplied tree.

        Views are kept. Every price and visibility key must be a view of the
        project.

        Raises:
            NotFoundError: If project doesn't exist
            ValidationError: If a key is not a view of the project, or a value is invalid
        """
        self._validate_supplied(project_id, sections)
        self.db.replace_tree(project_id, sections)
        logger.info("tree_replaced", project_id=project_id, sections=len(sections))

    def _validate_supplied(self, project_id: str, sections: Sequence[SuppliedSection]) -> None:
        self._require_project(project_id)
        view_ids = {v.id for v in self.db.list_views(project_id)}

        def check_keys(keys) -> None:
            for view_id in keys:
                if view_id not in view_ids:
                    raise ValidationError(view_not_in_project(view_id, project_id))

        for section in sections:
            self._clean_name(section.name, "Section")
            check_keys(section.visibility)
            for item in section.items:
                self._clean_name(item.name, "Item")
                self._check_quantity(item.quantity)
                check_keys(item.prices)
                check_keys(item.visibility)
                for price in item.prices.values():
                    self._check_price(price)

    def sync_from_source(self, project_id: str, source: SpreadsheetSource) -> None:
        """Refresh the tree from an external spreadsheet.

        Raises:
            ExternalServiceError: If the source fails; the tree is left unchanged
        """
        project = self.db.get_project(project_id)
        if project is None:
            raise NotFoundError(project_not_found(project_id))
        views = self.db.list_views(project_id)

        try:
            supplied = source.fetch_tree(project, views)
        except ExternalServiceError:
            raise
        except Exception as exc:
            logger.error("spreadsheet_sync_failed", project_id=project_id, error=str(exc))
            raise ExternalServiceError(f"Spreadsheet synchronisation failed: {exc}") from exc

        self._validate_supplied(project_id, supplied.sections)
        self.db.replace_tree(project_id, supplied.sections, last_synced_at=datetime.now(UTC))
        logger.info("tree_synced", project_id=project_id, sections=len(supplied.sections))
