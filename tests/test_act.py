"""Tests for act recording."""

import pytest
from datetime import date
from decimal import Decimal

from estimatekit.domain.collaborators import DocumentRenderer, RenderedArtifact
from estimatekit.domain.entities import ActFields, ActLineKind, ActSelection, SelectionMode
from estimatekit.domain.errors import ExternalServiceError, NotFoundError, ValidationError

FIELDS = ActFields(
    number="7",
    date=date(2024, 3, 15),
    executor_name="Builder LLC",
    customer_name="I. Ivanov",
)


def by_items(*item_ids):
    return ActSelection(mode=SelectionMode.ITEMS, item_ids=tuple(item_ids))


def by_sections(section_ids, item_ids=()):
    return ActSelection(mode=SelectionMode.SECTIONS, section_ids=tuple(section_ids), item_ids=tuple(item_ids))


class RecordingRenderer(DocumentRenderer):
    def __init__(self, error=None):
        self.error = error
        self.documents = []

    def render(self, document):
        if self.error is not None:
            raise self.error
        self.documents.append(document)
        return RenderedArtifact(content=b"%PDF-1.4", filename=f"act-{document.fields.number}.pdf")


class TestItemsMode:
    """Acts built from single items."""

    def test_lines_copy_view_prices(self, act_service, sample_project, sample_estimate, team_view):
        act = act_service.create_act(
            sample_project.id, team_view.id, by_items(sample_estimate["plaster"], sample_estimate["wall"]), FIELDS
        )

        assert act.number == "7"
        assert act.view_id == team_view.id
        assert act.selection_mode is SelectionMode.ITEMS
        # Tree order, not selection order
        assert [line.name for line in act.items] == ["Wall removal", "Plastering"]
        assert [line.kind for line in act.items] == [ActLineKind.ITEM, ActLineKind.ITEM]
        assert act.items[1].price == Decimal("400")
        assert act.items[1].total == Decimal("16000")
        assert act.grand_total == Decimal("16600")

    def test_hidden_items_are_skipped(self, act_service, estimate_service, sample_project, sample_estimate, customer_view):
        estimate_service.set_view_item_setting(sample_estimate["wall"], customer_view.id, visible=False)

        act = act_service.create_act(
            sample_project.id, customer_view.id, by_items(sample_estimate["wall"], sample_estimate["debris"]), FIELDS
        )

        assert [line.name for line in act.items] == ["Debris removal"]

    def test_unknown_item(self, act_service, sample_project, sample_estimate, customer_view):
        with pytest.raises(NotFoundError):
            act_service.create_act(sample_project.id, customer_view.id, by_items("missing"), FIELDS)

    def test_only_hidden_items_rejected(self, act_service, estimate_service, sample_project, sample_estimate, customer_view):
        estimate_service.set_view_item_setting(sample_estimate["wall"], customer_view.id, visible=False)
        with pytest.raises(ValidationError):
            act_service.create_act(sample_project.id, customer_view.id, by_items(sample_estimate["wall"]), FIELDS)

    def test_fractional_quantity_keeps_line_total(
        self, act_service, estimate_service, sample_project, sample_estimate, customer_view
    ):
        estimate_service.update_item(
            sample_estimate["wall"], quantity=Decimal("2.5"), view_settings={customer_view.id: (Decimal("10.01"), None)}
        )

        act = act_service.create_act(sample_project.id, customer_view.id, by_items(sample_estimate["wall"]), FIELDS)

        line = act.items[0]
        assert line.total == Decimal("25.025")
        assert line.total == line.price * line.quantity
        assert act.grand_total == Decimal("25.025")

    def test_default_unit(self, act_service, estimate_service, sample_project, sample_estimate, customer_view):
        item_id = estimate_service.add_item(sample_estimate["finishing"], "Cleanup", quantity=Decimal("1"))
        act = act_service.create_act(sample_project.id, customer_view.id, by_items(item_id), FIELDS)
        assert act.items[0].unit == "-"


class TestSectionsMode:
    """Acts built from whole sections."""

    def test_section_line_precedes_items(self, act_service, sample_project, sample_estimate, customer_view):
        act = act_service.create_act(
            sample_project.id, customer_view.id, by_sections([sample_estimate["demolition"]]), FIELDS
        )

        kinds = [line.kind for line in act.items]
        assert kinds == [ActLineKind.SECTION_TOTAL, ActLineKind.ITEM, ActLineKind.ITEM]
        section_line = act.items[0]
        assert section_line.name == "Demolition"
        assert section_line.quantity == Decimal("1")
        assert section_line.total == Decimal("2000")
        assert section_line.item_id is None
        # Section lines repeat their items and are not counted twice
        assert act.grand_total == Decimal("2000")

    def test_narrowed_items(self, act_service, sample_project, sample_estimate, customer_view):
        act = act_service.create_act(
            sample_project.id,
            customer_view.id,
            by_sections([sample_estimate["demolition"]], [sample_estimate["debris"]]),
            FIELDS,
        )

        assert [line.name for line in act.items] == ["Demolition", "Debris removal"]
        assert act.items[0].total == Decimal("1000")
        assert act.grand_total == Decimal("1000")

    def test_zero_subtotal_has_no_section_line(self, act_service, estimate_service, sample_project, sample_estimate, customer_view):
        section_id = estimate_service.add_section(sample_project.id, "Unpriced")
        estimate_service.add_item(section_id, "Consultation", quantity=Decimal("1"))

        act = act_service.create_act(
            sample_project.id, customer_view.id, by_sections([section_id, sample_estimate["finishing"]]), FIELDS
        )

        assert [line.name for line in act.items] == ["Finishing", "Plastering", "Consultation"]

    def test_hidden_section_is_skipped(self, act_service, estimate_service, sample_project, sample_estimate, customer_view):
        estimate_service.set_section_visibility(sample_estimate["demolition"], customer_view.id, False)

        act = act_service.create_act(
            sample_project.id,
            customer_view.id,
            by_sections([sample_estimate["demolition"], sample_estimate["finishing"]]),
            FIELDS,
        )

        assert act.grand_total == Decimal("26000")

    def test_unknown_section(self, act_service, sample_project, customer_view):
        with pytest.raises(NotFoundError):
            act_service.create_act(sample_project.id, customer_view.id, by_sections(["missing"]), FIELDS)


class TestValidation:
    """Act input validation."""

    def test_number_required(self, act_service, sample_project, sample_estimate, customer_view):
        fields = ActFields(number=" ", date=date(2024, 3, 15))
        with pytest.raises(ValidationError, match="number"):
            act_service.create_act(sample_project.id, customer_view.id, by_items(sample_estimate["wall"]), fields)

    def test_empty_selection(self, act_service, sample_project, sample_estimate, customer_view):
        with pytest.raises(ValidationError):
            act_service.create_act(sample_project.id, customer_view.id, by_items(), FIELDS)

    def test_foreign_view(self, act_service, project_service, view_service, sample_project, sample_estimate):
        other_view = view_service.list_views(project_service.create_project("Other"))[0]
        with pytest.raises(ValidationError):
            act_service.create_act(sample_project.id, other_view.id, by_items(sample_estimate["wall"]), FIELDS)

    def test_missing_view(self, act_service, sample_project, sample_estimate):
        with pytest.raises(NotFoundError):
            act_service.create_act(sample_project.id, "missing", by_items(sample_estimate["wall"]), FIELDS)


def test_preview_does_not_store(act_service, sample_project, sample_estimate, customer_view):
    preview = act_service.preview_lines(sample_project.id, customer_view.id, by_sections([sample_estimate["finishing"]]))

    assert preview.grand_total == Decimal("26000")
    assert len(preview.lines) == 2
    assert act_service.list_acts(sample_project.id) == []


def test_act_is_immutable(act_service, estimate_service, sample_project, sample_estimate, customer_view):
    """Test editing or deleting source lines leaves the act as it was."""
    act = act_service.create_act(
        sample_project.id, customer_view.id, by_sections([sample_estimate["demolition"]]), FIELDS
    )

    estimate_service.update_item(
        sample_estimate["wall"], name="Renamed", quantity=Decimal("1"), view_settings={customer_view.id: (Decimal("5"), None)}
    )
    estimate_service.delete_item(sample_estimate["debris"])
    estimate_service.delete_section(sample_estimate["demolition"])

    stored = act_service.get_act(act.id)
    assert stored == act


def test_list_acts_newest_first(act_service, sample_project, sample_estimate, customer_view):
    older = act_service.create_act(
        sample_project.id, customer_view.id, by_items(sample_estimate["wall"]), ActFields(number="1", date=date(2024, 1, 10))
    )
    newer = act_service.create_act(
        sample_project.id, customer_view.id, by_items(sample_estimate["wall"]), ActFields(number="2", date=date(2024, 2, 10))
    )
    assert [a.id for a in act_service.list_acts(sample_project.id)] == [newer.id, older.id]


class TestUsedItems:
    """UsedItemsMap is a fold over stored acts."""

    def test_used_items(self, act_service, sample_project, sample_estimate, customer_view):
        first = act_service.create_act(
            sample_project.id, customer_view.id, by_sections([sample_estimate["demolition"]]),
            ActFields(number="1", date=date(2024, 1, 10)),
        )
        second = act_service.create_act(
            sample_project.id, customer_view.id, by_items(sample_estimate["wall"]),
            ActFields(number="2", date=date(2024, 2, 10)),
        )

        used = act_service.get_used_items(sample_project.id)

        assert set(used) == {sample_estimate["wall"], sample_estimate["debris"]}
        assert [u.act_id for u in used[sample_estimate["wall"]]] == [first.id, second.id]
        assert used[sample_estimate["wall"]][1].act_number == "2"
        assert used[sample_estimate["debris"]][0].act_date == date(2024, 1, 10)

    def test_delete_act_removes_usage(self, act_service, sample_project, sample_estimate, customer_view):
        act = act_service.create_act(sample_project.id, customer_view.id, by_items(sample_estimate["wall"]), FIELDS)

        act_service.delete_act(act.id)

        assert act_service.get_used_items(sample_project.id) == {}
        assert act_service.get_act(act.id) is None

    def test_delete_act_keeps_payment_lock(
        self, act_service, payment_service, estimate_service, sample_project, sample_estimate, customer_view
    ):
        act = act_service.create_act(sample_project.id, customer_view.id, by_items(sample_estimate["wall"]), FIELDS)
        payment_service.record_payment(
            sample_project.id, Decimal("1000"), date(2024, 3, 1), [(sample_estimate["wall"], Decimal("1000"))]
        )

        act_service.delete_act(act.id)

        assert payment_service.get_item_status(sample_project.id, sample_estimate["wall"]).is_locked

    def test_delete_missing_act(self, act_service):
        with pytest.raises(NotFoundError):
            act_service.delete_act("missing")


class TestGenerateAct:
    """Rendering first, recording best-effort."""

    def test_render_then_record(self, act_service, sample_project, sample_estimate, customer_view):
        act_service.set_act_image(sample_project.id, "stamp", "data:image/png;base64,AAAA")
        renderer = RecordingRenderer()

        result = act_service.generate_act(
            sample_project.id, customer_view.id, by_items(sample_estimate["plaster"]), FIELDS, renderer
        )

        assert result.artifact.filename == "act-7.pdf"
        assert result.act is not None
        assert result.act.grand_total == Decimal("26000")
        document = renderer.documents[0]
        assert document.view_name == "Customer"
        assert document.images == {"stamp": "data:image/png;base64,AAAA"}

    def test_render_failure_stores_nothing(self, act_service, sample_project, sample_estimate, customer_view):
        renderer = RecordingRenderer(error=RuntimeError("renderer down"))

        with pytest.raises(ExternalServiceError, match="renderer down"):
            act_service.generate_act(
                sample_project.id, customer_view.id, by_items(sample_estimate["plaster"]), FIELDS, renderer
            )

        assert act_service.list_acts(sample_project.id) == []

    def test_record_failure_still_returns_artifact(
        self, act_service, monkeypatch, sample_project, sample_estimate, customer_view
    ):
        def failing_create_act(*args, **kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(act_service.db, "create_act", failing_create_act)

        result = act_service.generate_act(
            sample_project.id, customer_view.id, by_items(sample_estimate["plaster"]), FIELDS, RecordingRenderer()
        )

        assert result.artifact.content == b"%PDF-1.4"
        assert result.act is None


class TestActImages:
    """Logo, stamp and signature images."""

    def test_set_replace_and_delete(self, act_service, sample_project):
        act_service.set_act_image(sample_project.id, "logo", "data:image/png;base64,AAA")
        act_service.set_act_image(sample_project.id, "logo", "data:image/png;base64,BBB")
        act_service.set_act_image(sample_project.id, "signature", "data:image/png;base64,CCC")

        assert act_service.get_act_images(sample_project.id) == {
            "logo": "data:image/png;base64,BBB",
            "signature": "data:image/png;base64,CCC",
        }

        act_service.delete_act_image(sample_project.id, "logo")
        assert set(act_service.get_act_images(sample_project.id)) == {"signature"}

    def test_unknown_image_type(self, act_service, sample_project):
        with pytest.raises(ValidationError, match="logo, stamp, signature"):
            act_service.set_act_image(sample_project.id, "watermark", "data:")
