"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Operation conflicts with the current state of the project."""


class ItemLockedError(ConflictError, ValidationError):
    """Item has paid or completed amounts and can no longer change.

    Raised for edits, deletes and for selecting the item in a new payment.
    """


class LastViewError(ConflictError):
    """A project must keep at least one view."""


class ExternalServiceError(DomainError):
    """A collaborator (renderer, spreadsheet, parser, payment provider) failed."""


def project_not_found(project_id: str) -> str:
    """Return message for missing project."""
    return f"Project {project_id} not found"


def view_not_found(view_id: str) -> str:
    """Return message for missing view."""
    return f"View {view_id} not found"


def view_not_in_project(view_id: str, project_id: str) -> str:
    """Return message for a view that belongs to another project."""
    return f"View {view_id} does not belong to project {project_id}"


def view_token_not_found(token: str) -> str:
    return f"No view is published under token '{token}'"


def section_not_found(section_id: str) -> str:
    """Return message for missing section."""
    return f"Section {section_id} not found"


def item_not_found(item_id: str) -> str:
    """Return message for missing item."""
    return f"Item {item_id} not found"


def version_not_found(version_id: str) -> str:
    """Return message for missing version."""
    return f"Version {version_id} not found"


def act_not_found(act_id: str) -> str:
    """Return message for missing act."""
    return f"Act {act_id} not found"


def payment_not_found(payment_id: str) -> str:
    """Return message for missing payment."""
    return f"Payment {payment_id} not found"


def completion_not_found(completion_id: str) -> str:
    return f"Completion {completion_id} not found"


def material_not_found(material_id: str) -> str:
    return f"Material {material_id} not found"


def empty_name(what: str) -> str:
    """Return message for an empty name field."""
    return f"{what} name must not be empty"


def item_locked(item_id: str, paid_amount, completed_amount) -> str:
    """Return message when a settled item is touched."""
    return (
        f"Item {item_id} is locked: paid {paid_amount}, completed {completed_amount}. "
        "Delete the related payments or completions first."
    )


def item_reserved(item_id: str) -> str:
    """Return message when an item is already part of a pending invoice."""
    return f"Item {item_id} is already included in a pending payment invoice"


def last_view(project_id: str) -> str:
    """Return message when deleting the only view of a project."""
    return f"Cannot delete the last view of project {project_id}"


def provider_cap_exceeded(amount, cap) -> str:
    """Return message when an invoice exceeds the provider maximum."""
    return (
        f"Provider invoices are limited to {cap:,}. Requested amount: {amount:,}. "
        "Split the payment into several parts or record it manually."
    )
