"""Tests for database mappers."""

import pytest
from datetime import datetime, date, UTC
from decimal import Decimal

from estimatekit.database.models import (
    Act as ORMAct,
    ActItem as ORMActItem,
    Item as ORMItem,
    Material as ORMMaterial,
    Payment as ORMPayment,
    PaymentItem as ORMPaymentItem,
    Project as ORMProject,
    Section as ORMSection,
    View as ORMView,
    ViewItemSetting as ORMViewItemSetting,
    ViewSectionSetting as ORMViewSectionSetting,
)
from estimatekit.database.mappers import (
    act_to_domain,
    item_to_domain,
    material_to_domain,
    payment_to_domain,
    project_to_domain,
    section_to_domain,
    view_to_domain,
)
from estimatekit.domain.entities import (
    Act,
    ActLineKind,
    Item,
    PaymentMethod,
    PaymentStatus,
    Project,
    SelectionMode,
    View,
)

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


class TestProjectAndViewMappers:
    """Tests for Project and View mappers."""

    def test_project_to_domain(self):
        orm_project = ORMProject(id="p1", title="Apartment", created_at=NOW, last_synced_at=None)
        project = project_to_domain(orm_project)
        assert isinstance(project, Project)
        assert project.title == "Apartment"
        assert project.last_synced_at is None

    def test_view_to_domain(self):
        orm_view = ORMView(
            id="v1",
            project_id="p1",
            name="Customer",
            access_token="token",
            access_secret=None,
            sort_order=0,
            is_customer_view=1,
            created_at=NOW,
        )
        view = view_to_domain(orm_view)
        assert isinstance(view, View)
        assert view.is_customer_view is True
        assert view.access_token == "token"


class TestTreeMappers:
    """Tests for Section and Item mappers."""

    def test_section_settings_keyed_by_view(self):
        orm_section = ORMSection(
            id="s1",
            project_id="p1",
            name="Demolition",
            sort_order=0,
            view_settings=[ORMViewSectionSetting(view_id="v1", visible=False)],
        )
        section = section_to_domain(orm_section)
        assert section.view_settings["v1"].visible is False
        assert "v2" not in section.view_settings

    def test_item_total_recomputed_from_price(self):
        """Test the cached total column is not trusted."""
        orm_item = ORMItem(
            id="i1",
            project_id="p1",
            section_id="s1",
            number=None,
            name="Plastering",
            unit="m2",
            quantity=Decimal("4"),
            sort_order=0,
            view_settings=[
                ORMViewItemSetting(view_id="v1", price=Decimal("650"), total=Decimal("1"), visible=True),
                ORMViewItemSetting(view_id="v2", price=Decimal("400"), total=Decimal("1600"), visible=False),
            ],
        )
        item = item_to_domain(orm_item)
        assert isinstance(item, Item)
        assert item.number == ""
        assert item.view_settings["v1"].total == Decimal("2600")
        assert item.view_settings["v2"].visible is False


class TestLedgerMappers:
    """Tests for Act, Payment and Material mappers."""

    def test_act_to_domain(self):
        orm_act = ORMAct(
            id="a1",
            project_id="p1",
            view_id="v1",
            number="7",
            date=date(2024, 3, 15),
            executor_name="Builder",
            executor_details="",
            customer_name="",
            director_name="",
            service_name="",
            selection_mode="sections",
            grand_total=Decimal("2000"),
            created_at=NOW,
            items=[
                ORMActItem(
                    id="l1", act_id="a1", kind="section_total", item_id=None, section_id="s1",
                    name="Demolition", unit="-", quantity=Decimal("1"), price=Decimal("2000"),
                    total=Decimal("2000"), sort_order=0,
                ),
            ],
        )
        act = act_to_domain(orm_act)
        assert isinstance(act, Act)
        assert act.selection_mode is SelectionMode.SECTIONS
        assert act.items[0].kind is ActLineKind.SECTION_TOTAL
        assert act.items[0].item_id is None

    def test_payment_to_domain(self):
        orm_payment = ORMPayment(
            id="pay1",
            project_id="p1",
            amount=Decimal("1000"),
            payment_date=date(2024, 3, 1),
            notes=None,
            method="provider",
            status="succeeded",
            created_at=NOW,
            items=[ORMPaymentItem(id="pi1", payment_id="pay1", item_id="i1", amount=Decimal("1000"))],
        )
        payment = payment_to_domain(orm_payment)
        assert payment.method is PaymentMethod.PROVIDER
        assert payment.status is PaymentStatus.SUCCEEDED
        assert payment.notes == ""
        assert payment.items[0].amount == Decimal("1000")

    def test_material_to_domain(self):
        orm_material = ORMMaterial(
            id="m1",
            project_id="p1",
            name="Drywall",
            price=Decimal("199.90"),
            quantity=Decimal("3"),
            total=Decimal("0"),
            sort_order=0,
            created_at=NOW,
        )
        material = material_to_domain(orm_material)
        assert material.total == Decimal("599.70")
        assert material.brand == ""
