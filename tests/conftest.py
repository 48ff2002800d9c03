"""Shared pytest fixtures for estimatekit tests."""

import tempfile
import os
from decimal import Decimal
import pytest

from estimatekit.database.factories import create_sqlite_database
from estimatekit.domain.act import ActService
from estimatekit.domain.estimate import EstimateService
from estimatekit.domain.material import MaterialService
from estimatekit.domain.payment import PaymentService
from estimatekit.domain.project import ProjectService
from estimatekit.domain.version import VersionService
from estimatekit.domain.view import ViewService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def project_service(temp_db):
    """Create a ProjectService with a temporary database."""
    return ProjectService(temp_db)


@pytest.fixture
def view_service(temp_db):
    """Create a ViewService with a temporary database."""
    return ViewService(temp_db)


@pytest.fixture
def estimate_service(temp_db):
    """Create an EstimateService with a temporary database."""
    return EstimateService(temp_db)


@pytest.fixture
def version_service(temp_db):
    """Create a VersionService with a temporary database."""
    return VersionService(temp_db)


@pytest.fixture
def act_service(temp_db):
    """Create an ActService with a temporary database."""
    return ActService(temp_db)


@pytest.fixture
def payment_service(temp_db):
    """Create a PaymentService with a temporary database."""
    return PaymentService(temp_db)


@pytest.fixture
def material_service(temp_db):
    """Create a MaterialService with a temporary database."""
    return MaterialService(temp_db)


@pytest.fixture
def sample_project(project_service):
    """Create a project with the default "Customer" and "Team" views."""
    project_id = project_service.create_project("Apartment")
    return project_service.get_project(project_id)


@pytest.fixture
def customer_view(view_service, sample_project):
    """Return the customer view of the sample project."""
    return next(v for v in view_service.list_views(sample_project.id) if v.name == "Customer")


@pytest.fixture
def team_view(view_service, sample_project):
    """Return the team view of the sample project."""
    return next(v for v in view_service.list_views(sample_project.id) if v.name == "Team")


@pytest.fixture
def sample_estimate(estimate_service, sample_project, customer_view, team_view):
    """Build a small priced estimate.

    Demolition:
        Wall removal     10 m2  x 100 / 60
        Debris removal    2 pcs x 500 / 300
    Finishing:
        Plastering       40 m2  x 650 / 400

    Customer total is 28000, Team total is 17200.
    """
    demolition = estimate_service.add_section(sample_project.id, "Demolition")
    finishing = estimate_service.add_section(sample_project.id, "Finishing")

    ids = {"demolition": demolition, "finishing": finishing}
    rows = [
        ("wall", demolition, "Wall removal", "m2", "10", "100", "60"),
        ("debris", demolition, "Debris removal", "pcs", "2", "500", "300"),
        ("plaster", finishing, "Plastering", "m2", "40", "650", "400"),
    ]
    for key, section_id, name, unit, quantity, customer_price, team_price in rows:
        item_id = estimate_service.add_item(section_id, name, unit=unit, quantity=Decimal(quantity))
        estimate_service.update_item(
            item_id,
            view_settings={
                customer_view.id: (Decimal(customer_price), None),
                team_view.id: (Decimal(team_price), None),
            },
        )
        ids[key] = item_id
    return ids


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
