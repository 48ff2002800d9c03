"""Per-view price, total and visibility resolution.

Pure functions over the current tree state. A missing view setting means
price 0 and visible; totals are always ``price * quantity`` computed at read
time, never taken from the cached column.
"""

from decimal import Decimal
from typing import Iterable, Mapping, Optional, Sequence, Union

from estimatekit.domain.entities import (
    EstimateTree,
    Item,
    ItemViewSetting,
    Section,
    SectionNode,
    View,
)

ZERO = Decimal("0")


def resolve_price(item: Item, view_id: str) -> Decimal:
    """Return the item price in a view, 0 when unset."""
    setting = item.view_settings.get(view_id)
    if setting is None:
        return ZERO
    return setting.price


def resolve_total(item: Item, view_id: str) -> Decimal:
    """Return ``price * quantity`` for the item in a view."""
    return resolve_price(item, view_id) * item.quantity


def is_visible(entity: Union[Item, Section, SectionNode], view_id: str) -> bool:
    """Return visibility of an item or section in a view.

    Absence of a setting means visible.
    """
    if isinstance(entity, SectionNode):
        entity = entity.section
    setting = entity.view_settings.get(view_id)
    if setting is None:
        return True
    return setting.visible


def compute_total(price: Decimal, quantity: Decimal) -> Decimal:
    return price * quantity


def recompute_totals(
    quantity: Decimal, settings: Mapping[str, ItemViewSetting]
) -> dict[str, ItemViewSetting]:
    """Return settings with every view total recomputed for ``quantity``."""
    return {
        view_id: ItemViewSetting(
            price=setting.price,
            total=compute_total(setting.price, quantity),
            visible=setting.visible,
        )
        for view_id, setting in settings.items()
    }


def section_subtotal(
    node: SectionNode, view_id: str, item_ids: Optional[Iterable[str]] = None
) -> Decimal:
    """Sum of visible item totals of a section in a view.

    Args:
        node: Section with its items
        view_id: View to price in
        item_ids: Optional subset of item ids to include

    Returns:
        Subtotal, 0 when the section itself is hidden
    """
    if not is_visible(node, view_id):
        return ZERO
    wanted = set(item_ids) if item_ids is not None else None
    total = ZERO
    for item in node.items:
        if wanted is not None and item.id not in wanted:
            continue
        if is_visible(item, view_id):
            total += resolve_total(item, view_id)
    return total


def view_total(tree: EstimateTree, view_id: str) -> Decimal:
    """Total of the estimate as seen through one view."""
    return sum((section_subtotal(node, view_id) for node in tree.sections), ZERO)


def customer_view(views: Sequence[View]) -> Optional[View]:
    """Return the customer view, falling back to the first view by sort order."""
    if not views:
        return None
    for view in views:
        if view.is_customer_view:
            return view
    return sorted(views, key=lambda v: (v.sort_order, v.created_at))[0]
