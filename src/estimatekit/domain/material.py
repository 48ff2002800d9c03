"""Materials list domain service.

Materials are a separate priced list per project, filled from product pages.
They are not part of the estimate tree and are not affected by views,
versions, acts or payments.
"""

from decimal import Decimal
from typing import Optional, Sequence

import httpx
import structlog

from estimatekit.database.base import Database
from estimatekit.domain.collaborators import ProductParser
from estimatekit.domain.entities import Material as MaterialEntity
from estimatekit.domain.errors import (
    ExternalServiceError,
    NotFoundError,
    ValidationError,
    empty_name,
    material_not_found,
    project_not_found,
)

logger = structlog.get_logger(__name__)

MAX_URLS = 20
EDITABLE_FIELDS = ("name", "article", "brand", "unit", "price", "quantity", "url", "description")


def is_valid_url(url: str) -> bool:
    """Return True for absolute http(s) URLs with a host."""
    try:
        parsed = httpx.URL(url.strip())
    except (httpx.InvalidURL, TypeError):
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.host)


class MaterialService:
    """Service for the materials list of a project."""

    def __init__(self, db: Database):
        """Initialize material service.

        Args:
            db: Database instance
        """
        self.db = db

    def _require_project(self, project_id: str) -> None:
        if self.db.get_project(project_id) is None:
            raise NotFoundError(project_not_found(project_id))

    def parse_materials(
        self, project_id: str, urls: Sequence[str], parser: ProductParser
    ) -> list[str]:
        """Parse product pages and append the products as materials.

        Args:
            project_id: Project ID
            urls: 1 to 20 product page URLs; invalid ones are skipped
            parser: Product-page parser

        Returns:
            IDs of the created materials

        Raises:
            ValidationError: If there are no URLs, too many, or none are valid
            ExternalServiceError: If the parser fails
        """
        self._require_project(project_id)
        if not urls:
            raise ValidationError("Provide at least one URL")
        if len(urls) > MAX_URLS:
            raise ValidationError(f"At most {MAX_URLS} URLs can be parsed at once")

        valid = [url.strip() for url in urls if is_valid_url(url)]
        if not valid:
            raise ValidationError("None of the given URLs is valid")
        skipped = len(urls) - len(valid)
        if skipped:
            logger.info("material_urls_skipped", project_id=project_id, skipped=skipped)

        try:
            products = parser.parse(valid)
        except Exception as exc:
            logger.error("material_parse_failed", project_id=project_id, error=str(exc))
            raise ExternalServiceError(f"Product parsing failed: {exc}") from exc

        sort_order = self.db.get_max_material_sort_order(project_id)
        material_ids = []
        for product in products:
            sort_order += 1
            material_ids.append(
                self.db.create_material(
                    project_id=project_id,
                    name=product.name,
                    price=Decimal(product.price),
                    quantity=Decimal("1"),
                    sort_order=sort_order,
                    article=product.article,
                    brand=product.brand,
                    unit=product.unit,
                    url=product.url,
                    description=product.description,
                )
            )
        logger.info("materials_parsed", project_id=project_id, count=len(material_ids))
        return material_ids

    def get_material(self, material_id: str) -> Optional[MaterialEntity]:
        return self.db.get_material(material_id)

    def list_materials(self, project_id: str) -> list[MaterialEntity]:
        self._require_project(project_id)
        return self.db.list_materials(project_id)

    def update_material(self, material_id: str, **fields) -> None:
        """Update material fields; the total follows price and quantity.

        Raises:
            NotFoundError: If material doesn't exist
            ValidationError: If a field is unknown or a value is invalid
        """
        if self.db.get_material(material_id) is None:
            raise NotFoundError(material_not_found(material_id))
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown material fields: {', '.join(sorted(unknown))}")
        if fields.get("name") is not None and not fields["name"].strip():
            raise ValidationError(empty_name("Material"))
        for key in ("price", "quantity"):
            if fields.get(key) is not None:
                fields[key] = Decimal(fields[key])
                if fields[key] < 0:
                    raise ValidationError(f"Material {key} must not be negative")
        self.db.update_material(material_id, **fields)

    def delete_material(self, material_id: str) -> None:
        if self.db.get_material(material_id) is None:
            raise NotFoundError(material_not_found(material_id))
        self.db.delete_material(material_id)
