"""Tests for the materials list."""

import pytest
from decimal import Decimal

from estimatekit.domain.collaborators import ProductParser
from estimatekit.domain.entities import ParsedProduct
from estimatekit.domain.errors import ExternalServiceError, NotFoundError, ValidationError
from estimatekit.domain.material import MAX_URLS, is_valid_url


class FakeParser(ProductParser):
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def parse(self, urls):
        if self.error is not None:
            raise self.error
        self.calls.append(list(urls))
        return [
            ParsedProduct(name=f"Product {n}", price=Decimal("199.90"), url=url, brand="Knauf", unit="pcs")
            for n, url in enumerate(urls, start=1)
        ]


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://shop.example.com/p/1", True),
        ("http://shop.example.com", True),
        ("ftp://shop.example.com/file", False),
        ("not a url", False),
        ("https://", False),
    ],
)
def test_is_valid_url(url, expected):
    assert is_valid_url(url) is expected


def test_parse_materials(material_service, sample_project):
    parser = FakeParser()

    ids = material_service.parse_materials(
        sample_project.id, ["https://shop.example.com/a", "garbage", " https://shop.example.com/b "], parser
    )

    assert parser.calls == [["https://shop.example.com/a", "https://shop.example.com/b"]]
    materials = material_service.list_materials(sample_project.id)
    assert [m.id for m in materials] == ids
    assert materials[0].quantity == Decimal("1")
    assert materials[0].total == Decimal("199.90")
    assert materials[1].sort_order == materials[0].sort_order + 1


def test_parse_materials_appends(material_service, sample_project):
    material_service.parse_materials(sample_project.id, ["https://shop.example.com/a"], FakeParser())
    material_service.parse_materials(sample_project.id, ["https://shop.example.com/b"], FakeParser())
    assert [m.url for m in material_service.list_materials(sample_project.id)] == [
        "https://shop.example.com/a",
        "https://shop.example.com/b",
    ]


def test_no_urls(material_service, sample_project):
    with pytest.raises(ValidationError):
        material_service.parse_materials(sample_project.id, [], FakeParser())


def test_too_many_urls(material_service, sample_project):
    urls = [f"https://shop.example.com/{n}" for n in range(MAX_URLS + 1)]
    with pytest.raises(ValidationError, match="20"):
        material_service.parse_materials(sample_project.id, urls, FakeParser())


def test_no_valid_urls(material_service, sample_project):
    with pytest.raises(ValidationError, match="valid"):
        material_service.parse_materials(sample_project.id, ["nope", "ftp://x"], FakeParser())


def test_parser_failure(material_service, sample_project):
    with pytest.raises(ExternalServiceError):
        material_service.parse_materials(
            sample_project.id, ["https://shop.example.com/a"], FakeParser(error=TimeoutError("slow shop"))
        )
    assert material_service.list_materials(sample_project.id) == []


def test_update_material_recomputes_total(material_service, sample_project):
    [material_id] = material_service.parse_materials(sample_project.id, ["https://shop.example.com/a"], FakeParser())

    material_service.update_material(material_id, quantity=Decimal("3"), name="Drywall sheet")

    material = material_service.get_material(material_id)
    assert material.name == "Drywall sheet"
    assert material.total == Decimal("599.70")


def test_update_material_unknown_field(material_service, sample_project):
    [material_id] = material_service.parse_materials(sample_project.id, ["https://shop.example.com/a"], FakeParser())
    with pytest.raises(ValidationError, match="Unknown"):
        material_service.update_material(material_id, colour="red")


def test_delete_material(material_service, sample_project):
    [material_id] = material_service.parse_materials(sample_project.id, ["https://shop.example.com/a"], FakeParser())
    material_service.delete_material(material_id)
    assert material_service.get_material(material_id) is None
    with pytest.raises(NotFoundError):
        material_service.delete_material(material_id)
