"""Tests for view service."""

import pytest
from decimal import Decimal

from estimatekit.domain.errors import ConflictError, LastViewError, NotFoundError, ValidationError
from estimatekit.domain.pricing import is_visible, resolve_price


def test_create_view_prices_existing_items_at_zero(view_service, estimate_service, sample_project, sample_estimate):
    """Test a new view sees every line with price 0."""
    view_id = view_service.create_view(sample_project.id, "Subcontractor")

    item = estimate_service.get_item(sample_estimate["plaster"])
    assert resolve_price(item, view_id) == Decimal("0")
    assert is_visible(item, view_id)

    views = view_service.list_views(sample_project.id)
    assert views[-1].id == view_id
    assert views[-1].is_customer_view is False


def test_create_view_empty_name(view_service, sample_project):
    with pytest.raises(ValidationError):
        view_service.create_view(sample_project.id, "")


def test_create_view_missing_project(view_service):
    with pytest.raises(NotFoundError):
        view_service.create_view("missing", "View")


def test_rename_view(view_service, team_view):
    view_service.rename_view(team_view.id, "Crew")
    assert view_service.get_view(team_view.id).name == "Crew"


def test_set_and_clear_secret(view_service, customer_view):
    view_service.set_view_secret(customer_view.id, " pass ")
    assert view_service.get_view(customer_view.id).access_secret == "pass"

    view_service.set_view_secret(customer_view.id, "")
    assert view_service.get_view(customer_view.id).access_secret is None


def test_duplicate_view_copies_settings(view_service, estimate_service, sample_estimate, team_view):
    """Test a duplicated view carries prices and visibility of the source."""
    estimate_service.set_view_item_setting(sample_estimate["debris"], team_view.id, visible=False)

    copy_id = view_service.duplicate_view(team_view.id)

    copy = view_service.get_view(copy_id)
    assert copy.name == "Team (copy)"
    assert copy.access_token != team_view.access_token
    wall = estimate_service.get_item(sample_estimate["wall"])
    debris = estimate_service.get_item(sample_estimate["debris"])
    assert resolve_price(wall, copy_id) == Decimal("60")
    assert wall.view_settings[copy_id].total == Decimal("600")
    assert not is_visible(debris, copy_id)


def test_duplicate_view_with_name(view_service, team_view):
    copy_id = view_service.duplicate_view(team_view.id, name="Team 2025")
    assert view_service.get_view(copy_id).name == "Team 2025"


def test_delete_view_removes_settings(view_service, estimate_service, sample_estimate, team_view):
    view_service.delete_view(team_view.id)

    assert view_service.get_view(team_view.id) is None
    item = estimate_service.get_item(sample_estimate["wall"])
    assert team_view.id not in item.view_settings


def test_delete_last_view_rejected(view_service, sample_project, team_view, customer_view):
    """Test a project always keeps one view."""
    view_service.delete_view(team_view.id)

    with pytest.raises(LastViewError):
        view_service.delete_view(customer_view.id)
    with pytest.raises(ConflictError):
        view_service.delete_view(customer_view.id)
    assert len(view_service.list_views(sample_project.id)) == 1


def test_deleting_customer_view_moves_flag(view_service, sample_project, customer_view, team_view):
    view_service.delete_view(customer_view.id)
    assert view_service.get_view(team_view.id).is_customer_view is True


class TestCustomerFlag:
    """At most one view per project carries the customer flag."""

    def test_second_flag_demotes_previous_holder(self, view_service, sample_project, customer_view, team_view):
        view_service.set_customer_view(team_view.id)

        flagged = [v.id for v in view_service.list_views(sample_project.id) if v.is_customer_view]
        assert flagged == [team_view.id]

    def test_flag_is_per_project(self, view_service, project_service, sample_project, team_view):
        other_id = project_service.create_project("Other")

        view_service.set_customer_view(team_view.id)

        other_views = view_service.list_views(other_id)
        assert [v.is_customer_view for v in other_views] == [True, False]
