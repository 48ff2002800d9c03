"""Tests for version snapshots."""

import pytest
from datetime import date
from decimal import Decimal

from estimatekit.domain.entities import ActFields, ActSelection, SelectionMode
from estimatekit.domain.errors import NotFoundError
from estimatekit.domain.pricing import is_visible, resolve_price


def tree_by_value(tree):
    """Project a live tree onto names, quantities and per-view-name settings."""
    view_names = {v.id: v.name for v in tree.views}
    return {
        "views": [(v.name, v.sort_order, v.is_customer_view) for v in tree.views],
        "sections": [
            (
                node.section.name,
                tuple(sorted((view_names[k], s.visible) for k, s in node.section.view_settings.items())),
                [
                    (
                        item.name,
                        item.unit,
                        item.quantity,
                        tuple(
                            sorted(
                                (view_names[k], s.price, s.total, s.visible)
                                for k, s in item.view_settings.items()
                            )
                        ),
                    )
                    for item in node.items
                ],
            )
            for node in tree.sections
        ],
    }


def test_version_numbers_increase(version_service, sample_project):
    first = version_service.create_version(sample_project.id)
    second = version_service.create_version(sample_project.id, name="After review")

    versions = version_service.list_versions(sample_project.id)
    assert [v.version_number for v in versions] == [2, 1]
    assert versions[0].id == second
    assert versions[0].name == "After review"
    assert versions[1].id == first
    assert versions[1].name is None


def test_version_numbers_are_per_project(version_service, project_service, sample_project):
    version_service.create_version(sample_project.id)
    other = project_service.create_project("Other")
    other_version = version_service.create_version(other)
    assert version_service.get_version(other_version).version.version_number == 1


def test_create_version_missing_project(version_service):
    with pytest.raises(NotFoundError):
        version_service.create_version("missing")


def test_snapshot_content(version_service, sample_project, sample_estimate):
    version_id = version_service.create_version(sample_project.id)

    snapshot = version_service.get_version(version_id)

    assert [v.name for v in snapshot.views] == ["Customer", "Team"]
    assert [s.name for s in snapshot.sections] == ["Demolition", "Finishing"]
    customer = snapshot.views[0]
    wall = snapshot.sections[0].items[0]
    assert wall.original_item_id == sample_estimate["wall"]
    assert wall.view_settings[customer.id].price == Decimal("100")
    assert wall.view_settings[customer.id].total == Decimal("1000")


def test_snapshot_is_not_affected_by_later_edits(version_service, estimate_service, sample_project, sample_estimate):
    version_id = version_service.create_version(sample_project.id)

    estimate_service.update_item(sample_estimate["wall"], name="Changed", quantity=Decimal("1"))
    estimate_service.delete_item(sample_estimate["debris"])

    snapshot = version_service.get_version(version_id)
    items = snapshot.sections[0].items
    assert [i.name for i in items] == ["Wall removal", "Debris removal"]
    assert items[0].quantity == Decimal("10")


def test_get_missing_version(version_service):
    with pytest.raises(NotFoundError):
        version_service.get_version("missing")


def test_restore_round_trip(
    version_service, estimate_service, view_service, project_service, sample_project, sample_estimate, team_view
):
    """Test restore brings back the tree as it was when frozen."""
    estimate_service.set_view_item_setting(sample_estimate["debris"], team_view.id, visible=False)
    before = tree_by_value(project_service.get_tree(sample_project.id))
    version_id = version_service.create_version(sample_project.id)

    estimate_service.update_item(sample_estimate["plaster"], quantity=Decimal("1"))
    estimate_service.delete_section(sample_estimate["demolition"])
    estimate_service.add_section(sample_project.id, "Extra")
    view_service.create_view(sample_project.id, "Subcontractor")
    view_service.rename_view(team_view.id, "Crew")

    version_service.restore_version(version_id)

    after = tree_by_value(project_service.get_tree(sample_project.id))
    assert after == before


def test_restore_regenerates_ids(version_service, project_service, sample_project, sample_estimate, customer_view):
    version_id = version_service.create_version(sample_project.id)

    version_service.restore_version(version_id)

    tree = project_service.get_tree(sample_project.id)
    item_ids = {item.id for node in tree.sections for item in node.items}
    assert sample_estimate["wall"] not in item_ids
    assert customer_view.id not in {v.id for v in tree.views}
    restored_customer = next(v for v in tree.views if v.name == "Customer")
    assert restored_customer.is_customer_view
    assert restored_customer.access_token != customer_view.access_token


def test_restore_keeps_acts_payments_and_versions(
    version_service, act_service, payment_service, sample_project, sample_estimate, customer_view
):
    version_id = version_service.create_version(sample_project.id)
    act = act_service.create_act(
        sample_project.id,
        customer_view.id,
        ActSelection(mode=SelectionMode.ITEMS, item_ids=(sample_estimate["wall"],)),
        ActFields(number="1", date=date(2024, 3, 1)),
    )
    payment_service.record_payment(
        sample_project.id, Decimal("1000"), date(2024, 3, 1), [(sample_estimate["wall"], Decimal("1000"))]
    )

    version_service.restore_version(version_id)

    assert act_service.get_act(act.id).grand_total == Decimal("1000")
    assert len(payment_service.list_payments(sample_project.id)) == 1
    assert payment_service.get_balance(sample_project.id) == Decimal("1000")
    assert len(version_service.list_versions(sample_project.id)) == 1


def test_restore_missing_version(version_service):
    with pytest.raises(NotFoundError):
        version_service.restore_version("missing")


def test_restored_tree_is_priced(version_service, project_service, sample_project, sample_estimate):
    version_id = version_service.create_version(sample_project.id)
    version_service.restore_version(version_id)

    tree = project_service.get_tree(sample_project.id)
    customer = next(v for v in tree.views if v.is_customer_view)
    plaster = tree.sections[1].items[0]
    assert resolve_price(plaster, customer.id) == Decimal("650")
    assert is_visible(plaster, customer.id)
