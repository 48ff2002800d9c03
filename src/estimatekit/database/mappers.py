"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic. Item totals are recomputed from
price and quantity here, so a stale cached column can never leak into the
domain.
"""

from decimal import Decimal

from estimatekit.domain import entities as domain
from estimatekit.domain.pricing import compute_total
from estimatekit.database.models import (
    Project as ORMProject,
    View as ORMView,
    Section as ORMSection,
    Item as ORMItem,
    Version as ORMVersion,
    VersionView as ORMVersionView,
    VersionSection as ORMVersionSection,
    VersionItem as ORMVersionItem,
    Act as ORMAct,
    ActItem as ORMActItem,
    Payment as ORMPayment,
    PaymentItem as ORMPaymentItem,
    Completion as ORMCompletion,
    Material as ORMMaterial,
)


def _decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def project_to_domain(orm_project: ORMProject) -> domain.Project:
    """Convert SQLAlchemy Project model to domain Project entity."""
    return domain.Project(
        id=orm_project.id,
        title=orm_project.title,
        created_at=orm_project.created_at,
        last_synced_at=orm_project.last_synced_at,
    )


def view_to_domain(orm_view: ORMView) -> domain.View:
    """Convert SQLAlchemy View model to domain View entity."""
    return domain.View(
        id=orm_view.id,
        project_id=orm_view.project_id,
        name=orm_view.name,
        access_token=orm_view.access_token,
        access_secret=orm_view.access_secret,
        sort_order=orm_view.sort_order,
        is_customer_view=bool(orm_view.is_customer_view),
        created_at=orm_view.created_at,
    )


def section_to_domain(orm_section: ORMSection) -> domain.Section:
    """Convert SQLAlchemy Section model to domain Section entity."""
    return domain.Section(
        id=orm_section.id,
        project_id=orm_section.project_id,
        name=orm_section.name,
        sort_order=orm_section.sort_order,
        view_settings={
            s.view_id: domain.SectionViewSetting(visible=bool(s.visible))
            for s in orm_section.view_settings
        },
    )


def item_to_domain(orm_item: ORMItem) -> domain.Item:
    """Convert SQLAlchemy Item model to domain Item entity."""
    quantity = _decimal(orm_item.quantity)
    settings = {}
    for s in orm_item.view_settings:
        price = _decimal(s.price)
        settings[s.view_id] = domain.ItemViewSetting(
            price=price,
            total=compute_total(price, quantity),
            visible=bool(s.visible),
        )
    return domain.Item(
        id=orm_item.id,
        section_id=orm_item.section_id,
        project_id=orm_item.project_id,
        number=orm_item.number or "",
        name=orm_item.name,
        unit=orm_item.unit or "",
        quantity=quantity,
        sort_order=orm_item.sort_order,
        view_settings=settings,
    )


def section_node_to_domain(orm_section: ORMSection) -> domain.SectionNode:
    """Convert a section with its items into a tree node."""
    items = sorted(orm_section.items, key=lambda i: (i.sort_order, i.created_at))
    return domain.SectionNode(
        section=section_to_domain(orm_section),
        items=tuple(item_to_domain(i) for i in items),
    )


def version_to_domain(orm_version: ORMVersion) -> domain.Version:
    """Convert SQLAlchemy Version model to domain Version entity."""
    return domain.Version(
        id=orm_version.id,
        project_id=orm_version.project_id,
        version_number=orm_version.version_number,
        name=orm_version.name,
        created_at=orm_version.created_at,
    )


def version_view_to_domain(orm_view: ORMVersionView) -> domain.VersionView:
    return domain.VersionView(
        id=orm_view.id,
        original_view_id=orm_view.original_view_id,
        name=orm_view.name,
        sort_order=orm_view.sort_order,
        is_customer_view=bool(orm_view.is_customer_view),
    )


def version_item_to_domain(orm_item: ORMVersionItem) -> domain.VersionItem:
    quantity = _decimal(orm_item.quantity)
    settings = {}
    for s in orm_item.view_settings:
        price = _decimal(s.price)
        settings[s.version_view_id] = domain.ItemViewSetting(
            price=price,
            total=compute_total(price, quantity),
            visible=bool(s.visible),
        )
    return domain.VersionItem(
        id=orm_item.id,
        original_item_id=orm_item.original_item_id,
        number=orm_item.number or "",
        name=orm_item.name,
        unit=orm_item.unit or "",
        quantity=quantity,
        sort_order=orm_item.sort_order,
        view_settings=settings,
    )


def version_section_to_domain(orm_section: ORMVersionSection) -> domain.VersionSection:
    return domain.VersionSection(
        id=orm_section.id,
        original_section_id=orm_section.original_section_id,
        name=orm_section.name,
        sort_order=orm_section.sort_order,
        view_settings={
            s.version_view_id: domain.SectionViewSetting(visible=bool(s.visible))
            for s in orm_section.view_settings
        },
        items=tuple(version_item_to_domain(i) for i in orm_section.items),
    )


def version_snapshot_to_domain(orm_version: ORMVersion) -> domain.VersionSnapshot:
    """Convert a version with all of its copies into a snapshot."""
    return domain.VersionSnapshot(
        version=version_to_domain(orm_version),
        views=tuple(version_view_to_domain(v) for v in orm_version.views),
        sections=tuple(version_section_to_domain(s) for s in orm_version.sections),
    )


def act_item_to_domain(orm_item: ORMActItem) -> domain.ActItem:
    """Convert SQLAlchemy ActItem model to domain ActItem entity."""
    return domain.ActItem(
        id=orm_item.id,
        act_id=orm_item.act_id,
        kind=domain.ActLineKind(orm_item.kind),
        item_id=orm_item.item_id,
        section_id=orm_item.section_id,
        name=orm_item.name,
        unit=orm_item.unit or "",
        quantity=_decimal(orm_item.quantity),
        price=_decimal(orm_item.price),
        total=_decimal(orm_item.total),
        sort_order=orm_item.sort_order,
    )


def act_to_domain(orm_act: ORMAct) -> domain.Act:
    """Convert SQLAlchemy Act model to domain Act entity."""
    return domain.Act(
        id=orm_act.id,
        project_id=orm_act.project_id,
        view_id=orm_act.view_id,
        number=orm_act.number,
        date=orm_act.date,
        executor_name=orm_act.executor_name,
        executor_details=orm_act.executor_details,
        customer_name=orm_act.customer_name,
        director_name=orm_act.director_name,
        service_name=orm_act.service_name,
        selection_mode=domain.SelectionMode(orm_act.selection_mode),
        grand_total=_decimal(orm_act.grand_total),
        created_at=orm_act.created_at,
        items=tuple(act_item_to_domain(i) for i in orm_act.items),
    )


def payment_item_to_domain(orm_item: ORMPaymentItem) -> domain.PaymentItem:
    return domain.PaymentItem(
        id=orm_item.id,
        payment_id=orm_item.payment_id,
        item_id=orm_item.item_id,
        amount=_decimal(orm_item.amount),
    )


def payment_to_domain(orm_payment: ORMPayment) -> domain.Payment:
    """Convert SQLAlchemy Payment model to domain Payment entity."""
    return domain.Payment(
        id=orm_payment.id,
        project_id=orm_payment.project_id,
        amount=_decimal(orm_payment.amount),
        payment_date=orm_payment.payment_date,
        notes=orm_payment.notes or "",
        method=domain.PaymentMethod(orm_payment.method),
        status=domain.PaymentStatus(orm_payment.status),
        created_at=orm_payment.created_at,
        provider_invoice_id=orm_payment.provider_invoice_id,
        provider_payment_id=orm_payment.provider_payment_id,
        payment_url=orm_payment.payment_url,
        paid_at=orm_payment.paid_at,
        items=tuple(payment_item_to_domain(i) for i in orm_payment.items),
    )


def completion_to_domain(orm_completion: ORMCompletion) -> domain.Completion:
    return domain.Completion(
        id=orm_completion.id,
        project_id=orm_completion.project_id,
        item_id=orm_completion.item_id,
        quantity=_decimal(orm_completion.quantity),
        completion_date=orm_completion.completion_date,
        notes=orm_completion.notes or "",
        created_at=orm_completion.created_at,
    )


def material_to_domain(orm_material: ORMMaterial) -> domain.Material:
    price = _decimal(orm_material.price)
    quantity = _decimal(orm_material.quantity)
    return domain.Material(
        id=orm_material.id,
        project_id=orm_material.project_id,
        name=orm_material.name,
        article=orm_material.article or "",
        brand=orm_material.brand or "",
        unit=orm_material.unit or "",
        price=price,
        quantity=quantity,
        total=compute_total(price, quantity),
        url=orm_material.url or "",
        description=orm_material.description or "",
        sort_order=orm_material.sort_order,
        created_at=orm_material.created_at,
    )
