"""Act domain service.

An act copies the selected estimate lines by value at the moment it is
created. Later edits of the estimate never reach a stored act; the item and
section ids kept on act lines are only used to tell which items have already
been included in an act.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional

import structlog

from estimatekit.database.base import Database
from estimatekit.domain.collaborators import ActDocument, DocumentRenderer, RenderedArtifact
from estimatekit.domain.entities import (
    Act as ActEntity,
    ActFields,
    ActImageType,
    ActLine,
    ActLineKind,
    ActSelection,
    EstimateTree,
    Item,
    SelectionMode,
    UsedItemsMap,
)
from estimatekit.domain.errors import (
    ExternalServiceError,
    NotFoundError,
    ValidationError,
    act_not_found,
    item_not_found,
    project_not_found,
    section_not_found,
    view_not_found,
    view_not_in_project,
)
from estimatekit.domain.pricing import ZERO, is_visible, resolve_price, resolve_total

logger = structlog.get_logger(__name__)

DEFAULT_UNIT = "-"


@dataclass(frozen=True)
class ActPreview:
    lines: tuple[ActLine, ...]
    grand_total: Decimal


@dataclass(frozen=True)
class ActGenerationResult:
    """Rendered act artifact and the stored act, if recording succeeded."""

    artifact: RenderedArtifact
    act: Optional[ActEntity]


def _item_line(item: Item, section_id: str, view_id: str) -> ActLine:
    return ActLine(
        kind=ActLineKind.ITEM,
        item_id=item.id,
        section_id=section_id,
        name=item.name,
        unit=item.unit or DEFAULT_UNIT,
        quantity=item.quantity,
        price=resolve_price(item, view_id),
        total=resolve_total(item, view_id),
    )


def build_act_lines(tree: EstimateTree, view_id: str, selection: ActSelection) -> ActPreview:
    """Compute act lines for a selection, in tree order.

    In ``ITEMS`` mode every selected item visible in the view gives one line.

    In ``SECTIONS`` mode every selected section visible in the view gives a
    ``SECTION_TOTAL`` line followed by one line per contributing item. Items of
    the section listed in ``selection.item_ids`` contribute; when none are
    listed, all items visible in the view do. The section line is only added
    when its subtotal is positive.

    The grand total is the sum of item lines; section lines repeat their
    items' totals and are not added again.

    Raises:
        NotFoundError: If a selected section or item is not in the tree
    """
    item_ids = set(selection.item_ids)
    lines: list[ActLine] = []

    if selection.mode is SelectionMode.ITEMS:
        known = {item.id for node in tree.sections for item in node.items}
        for item_id in item_ids:
            if item_id not in known:
                raise NotFoundError(item_not_found(item_id))
        for node in tree.sections:
            if not is_visible(node, view_id):
                continue
            for item in node.items:
                if item.id in item_ids and is_visible(item, view_id):
                    lines.append(_item_line(item, node.section.id, view_id))
    else:
        section_ids = set(selection.section_ids)
        for section_id in section_ids:
            if tree.find_section(section_id) is None:
                raise NotFoundError(section_not_found(section_id))
        for node in tree.sections:
            if node.section.id not in section_ids or not is_visible(node, view_id):
                continue
            visible = [item for item in node.items if is_visible(item, view_id)]
            listed = [item for item in visible if item.id in item_ids]
            if not any(item.id in item_ids for item in node.items):
                listed = visible
            subtotal = sum((resolve_total(item, view_id) for item in listed), ZERO)
            if subtotal > 0:
                lines.append(
                    ActLine(
                        kind=ActLineKind.SECTION_TOTAL,
                        item_id=None,
                        section_id=node.section.id,
                        name=node.section.name,
                        unit=DEFAULT_UNIT,
                        quantity=Decimal("1"),
                        price=subtotal,
                        total=subtotal,
                    )
                )
            lines.extend(_item_line(item, node.section.id, view_id) for item in listed)

    grand_total = sum((line.total for line in lines if line.kind is ActLineKind.ITEM), ZERO)
    return ActPreview(lines=tuple(lines), grand_total=grand_total)


class ActService:
    """Service for creating and querying acts."""

    def __init__(self, db: Database):
        """Initialize act service.

        Args:
            db: Database instance
        """
        self.db = db

    def _require_tree(self, project_id: str) -> EstimateTree:
        tree = self.db.get_tree(project_id)
        if tree is None:
            raise NotFoundError(project_not_found(project_id))
        return tree

    def _check_view(self, tree: EstimateTree, view_id: str) -> None:
        if any(view.id == view_id for view in tree.views):
            return
        if self.db.get_view(view_id) is None:
            raise NotFoundError(view_not_found(view_id))
        raise ValidationError(view_not_in_project(view_id, tree.project.id))

    @staticmethod
    def _check_selection(selection: ActSelection) -> None:
        if not selection.section_ids and not selection.item_ids:
            raise ValidationError("Select at least one section or item")
        if selection.mode is SelectionMode.ITEMS and not selection.item_ids:
            raise ValidationError("Select at least one item")
        if selection.mode is SelectionMode.SECTIONS and not selection.section_ids:
            raise ValidationError("Select at least one section")

    def preview_lines(self, project_id: str, view_id: str, selection: ActSelection) -> ActPreview:
        """Compute the lines and grand total an act would get, without storing it."""
        tree = self._require_tree(project_id)
        self._check_view(tree, view_id)
        self._check_selection(selection)
        preview = build_act_lines(tree, view_id, selection)
        if not preview.lines:
            raise ValidationError("Selection contains no visible lines")
        return preview

    def create_act(
        self, project_id: str, view_id: str, selection: ActSelection, fields: ActFields
    ) -> ActEntity:
        """Create an immutable act from the current estimate.

        Args:
            project_id: Project ID
            view_id: View whose prices are copied into the act
            selection: Selected sections or items
            fields: Act number, date and counterparties

        Returns:
            The stored act

        Raises:
            NotFoundError: If project, view, a section or an item doesn't exist
            ValidationError: If the number is empty or the selection has no lines
        """
        if not (fields.number or "").strip():
            raise ValidationError("Act number is required")
        preview = self.preview_lines(project_id, view_id, selection)

        act_id = self.db.create_act(
            project_id=project_id,
            view_id=view_id,
            fields=fields,
            selection_mode=selection.mode,
            grand_total=preview.grand_total,
            lines=preview.lines,
        )
        logger.info(
            "act_recorded",
            project_id=project_id,
            act_id=act_id,
            number=fields.number,
            grand_total=str(preview.grand_total),
        )
        return self.db.get_act(act_id)

    def generate_act(
        self,
        project_id: str,
        view_id: str,
        selection: ActSelection,
        fields: ActFields,
        renderer: DocumentRenderer,
        images: Optional[Mapping[str, str]] = None,
    ) -> ActGenerationResult:
        """Render an act document, then record the act.

        The artifact comes first. If rendering fails nothing is stored. If
        recording fails after a successful render, the failure is logged and
        the artifact is still returned with ``act`` set to None.

        Args:
            images: Logo, stamp and signature; defaults to the stored act images

        Raises:
            ExternalServiceError: If the renderer fails
        """
        if not (fields.number or "").strip():
            raise ValidationError("Act number is required")
        preview = self.preview_lines(project_id, view_id, selection)
        tree = self._require_tree(project_id)
        view_name = next(v.name for v in tree.views if v.id == view_id)
        document = ActDocument(
            project_title=tree.project.title,
            view_name=view_name,
            fields=fields,
            lines=preview.lines,
            grand_total=preview.grand_total,
            images=dict(images) if images is not None else self.db.get_act_images(project_id),
        )

        try:
            artifact = renderer.render(document)
        except Exception as exc:
            logger.error("act_render_failed", project_id=project_id, error=str(exc))
            raise ExternalServiceError(f"Act rendering failed: {exc}") from exc

        try:
            act = self.create_act(project_id, view_id, selection, fields)
        except Exception as exc:
            logger.error("act_record_failed", project_id=project_id, number=fields.number, error=str(exc))
            act = None
        return ActGenerationResult(artifact=artifact, act=act)

    def get_act(self, act_id: str) -> Optional[ActEntity]:
        return self.db.get_act(act_id)

    def list_acts(self, project_id: str) -> list[ActEntity]:
        """List acts of a project, newest first."""
        if self.db.get_project(project_id) is None:
            raise NotFoundError(project_not_found(project_id))
        return self.db.list_acts(project_id)

    def delete_act(self, act_id: str) -> None:
        """Delete an act.

        Its items drop out of the used-items map; payment locks are unaffected.
        """
        act = self.db.get_act(act_id)
        if act is None:
            raise NotFoundError(act_not_found(act_id))
        self.db.delete_act(act_id)
        logger.info("act_deleted", project_id=act.project_id, act_id=act_id)

    def get_used_items(self, project_id: str) -> UsedItemsMap:
        """Map item ids to the acts that included them, one entry per act."""
        if self.db.get_project(project_id) is None:
            raise NotFoundError(project_not_found(project_id))
        used: UsedItemsMap = {}
        for item_id, usage in self.db.list_act_usages(project_id):
            usages = used.setdefault(item_id, [])
            if all(u.act_id != usage.act_id for u in usages):
                usages.append(usage)
        return used

    # Images

    @staticmethod
    def _image_type(image_type: str) -> ActImageType:
        try:
            return ActImageType(image_type)
        except ValueError:
            allowed = ", ".join(t.value for t in ActImageType)
            raise ValidationError(f"Unknown act image type '{image_type}'. Use one of: {allowed}")

    def set_act_image(self, project_id: str, image_type: str, data: str) -> None:
        """Store a logo, stamp or signature (as a data URL) for a project's acts."""
        kind = self._image_type(image_type)
        if self.db.get_project(project_id) is None:
            raise NotFoundError(project_not_found(project_id))
        if not data:
            raise ValidationError("Image data must not be empty")
        self.db.set_act_image(project_id, kind.value, data)

    def get_act_images(self, project_id: str) -> dict[str, str]:
        return self.db.get_act_images(project_id)

    def delete_act_image(self, project_id: str, image_type: str) -> None:
        kind = self._image_type(image_type)
        self.db.delete_act_image(project_id, kind.value)
