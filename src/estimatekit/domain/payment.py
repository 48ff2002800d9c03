"""Payment ledger domain service.

Paid and completed amounts are never stored on items. They are folded from
payments and completions on every query, so deleting a payment or a
completion immediately restores edit rights on the items it covered.
"""

from collections import defaultdict
from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Mapping, Optional, Sequence

import structlog

from estimatekit.config import DEFAULT_PROVIDER_CAP
from estimatekit.database.base import Database
from estimatekit.domain.collaborators import (
    InvoiceLine,
    InvoiceProvider,
    InvoiceRequest,
)
from estimatekit.domain.entities import (
    Completion as CompletionEntity,
    Item as ItemEntity,
    ItemStatus,
    Payment as PaymentEntity,
    PaymentMethod,
    PaymentStatus,
)
from estimatekit.domain.errors import (
    ExternalServiceError,
    ItemLockedError,
    NotFoundError,
    ValidationError,
    completion_not_found,
    item_locked,
    item_not_found,
    item_reserved,
    payment_not_found,
    project_not_found,
    provider_cap_exceeded,
)
from estimatekit.domain.pricing import ZERO, customer_view, resolve_price

logger = structlog.get_logger(__name__)

DESCRIPTION_LIMIT = 128

PROVIDER_STATUSES = (PaymentStatus.PENDING, PaymentStatus.SUCCEEDED, PaymentStatus.CANCELED)


class PaymentService:
    """Service for recording payments and completions and deriving item status."""

    def __init__(self, db: Database, invoice_cap: Decimal = DEFAULT_PROVIDER_CAP):
        """Initialize payment service.

        Args:
            db: Database instance
            invoice_cap: Maximum amount of a single provider invoice
        """
        self.db = db
        self.invoice_cap = invoice_cap

    def _require_project(self, project_id: str) -> None:
        if self.db.get_project(project_id) is None:
            raise NotFoundError(project_not_found(project_id))

    def _require_payment(self, payment_id: str) -> PaymentEntity:
        payment = self.db.get_payment(payment_id)
        if payment is None:
            raise NotFoundError(payment_not_found(payment_id))
        return payment

    # Derived status

    def get_item_statuses(self, project_id: str) -> dict[str, ItemStatus]:
        """Derive paid and completed amounts per item.

        Every live item of the project is present in the result. Items that
        were deleted or replaced but still appear in the ledger are present
        too, so that their money keeps counting towards the balance.

        Only settled payments (manual, or provider invoices that succeeded)
        count as paid. Completed amount is the completed quantity priced with
        the customer view.

        Raises:
            NotFoundError: If project doesn't exist
        """
        tree = self.db.get_tree(project_id)
        if tree is None:
            raise NotFoundError(project_not_found(project_id))

        paid: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for payment in self.db.list_payments(project_id):
            if not payment.status.is_settled:
                continue
            for share in payment.items:
                paid[share.item_id] += share.amount

        pricing_view = customer_view(tree.views)
        completed: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for completion in self.db.list_completions(project_id):
            item = tree.find_item(completion.item_id)
            if item is None or pricing_view is None:
                price = ZERO
            else:
                price = resolve_price(item, pricing_view.id)
            completed[completion.item_id] += completion.quantity * price

        item_ids = [item.id for node in tree.sections for item in node.items]
        item_ids += [i for i in list(paid) + list(completed) if i not in item_ids]
        return {
            item_id: ItemStatus(
                item_id=item_id,
                paid_amount=paid.get(item_id, ZERO),
                completed_amount=completed.get(item_id, ZERO),
            )
            for item_id in item_ids
        }

    def get_item_status(self, project_id: str, item_id: str) -> ItemStatus:
        return self.get_item_statuses(project_id).get(item_id, ItemStatus(item_id=item_id))

    def ensure_item_unlocked(self, item: ItemEntity) -> None:
        """Reject changes to an item that has been paid for or completed.

        Raises:
            ItemLockedError: If paid or completed amount is nonzero
        """
        status = self.get_item_status(item.project_id, item.id)
        if status.is_locked:
            raise ItemLockedError(item_locked(item.id, status.paid_amount, status.completed_amount))

    def get_balance(self, project_id: str) -> Decimal:
        """Return ``sum(paid) - sum(completed)``; may be negative."""
        statuses = self.get_item_statuses(project_id).values()
        paid = sum((s.paid_amount for s in statuses), ZERO)
        completed = sum((s.completed_amount for s in statuses), ZERO)
        return paid - completed

    # Payments

    def _validate_selection(
        self, project_id: str, amount: Decimal, items: Sequence[tuple[str, Decimal]]
    ) -> list[tuple[ItemEntity, Decimal]]:
        self._require_project(project_id)
        if amount <= 0:
            raise ValidationError("Payment amount must be greater than zero")
        if not items:
            raise ValidationError("Select at least one estimate item")

        statuses = self.get_item_statuses(project_id)
        reserved = {
            share.item_id
            for payment in self.db.list_payments(project_id)
            if payment.status.reserves_items
            for share in payment.items
        }

        selection = []
        seen = set()
        for item_id, item_amount in items:
            item_amount = Decimal(item_amount)
            item = self.db.get_item(item_id)
            if item is None or item.project_id != project_id:
                raise NotFoundError(item_not_found(item_id))
            if item_id in seen:
                raise ValidationError(f"Item {item_id} is selected more than once")
            seen.add(item_id)
            if item_amount <= 0:
                raise ValidationError(f"Amount for item {item_id} must be greater than zero")

            status = statuses.get(item_id, ItemStatus(item_id=item_id))
            if status.is_locked:
                raise ItemLockedError(item_locked(item_id, status.paid_amount, status.completed_amount))
            if item_id in reserved:
                raise ItemLockedError(item_reserved(item_id))
            selection.append((item, item_amount))

        total = sum((a for _, a in selection), ZERO)
        if total != amount:
            raise ValidationError(f"Payment amount {amount} does not match the sum of item amounts {total}")
        return selection

    def record_payment(
        self,
        project_id: str,
        amount: Decimal,
        payment_date: date,
        items: Sequence[tuple[str, Decimal]],
        notes: str = "",
    ) -> str:
        """Record a manual payment split across items.

        Args:
            project_id: Project ID
            amount: Payment amount, equal to the sum of item amounts
            payment_date: Date the money was received
            items: (item_id, amount) pairs
            notes: Optional notes

        Returns:
            Payment ID

        Raises:
            NotFoundError: If project or an item doesn't exist
            ValidationError: If amount is not positive, no items are given or sums differ
            ItemLockedError: If an item is already paid, completed or reserved by an invoice
        """
        amount = Decimal(amount)
        selection = self._validate_selection(project_id, amount, items)
        payment_id = self.db.create_payment(
            project_id=project_id,
            amount=amount,
            payment_date=payment_date,
            notes=notes or "",
            method=PaymentMethod.MANUAL,
            status=PaymentStatus.MANUAL,
            items=[(item.id, item_amount) for item, item_amount in selection],
        )
        logger.info("payment_recorded", project_id=project_id, payment_id=payment_id, amount=str(amount))
        return payment_id

    def create_provider_invoice(
        self,
        project_id: str,
        amount: Decimal,
        payment_date: date,
        items: Sequence[tuple[str, Decimal]],
        provider: InvoiceProvider,
        notes: str = "",
        customer: Optional[Mapping[str, str]] = None,
    ) -> str:
        """Issue a payment-provider invoice and record it as a pending payment.

        The amount is checked against the provider cap before the provider is
        contacted. A pending invoice reserves its items but does not count as
        paid until it succeeds.

        Returns:
            Payment ID

        Raises:
            ValidationError: If the amount exceeds the cap or the selection is invalid
            ExternalServiceError: If the provider fails; nothing is stored
        """
        amount = Decimal(amount)
        if amount > self.invoice_cap:
            raise ValidationError(provider_cap_exceeded(amount, self.invoice_cap))
        selection = self._validate_selection(project_id, amount, items)

        project = self.db.get_project(project_id)
        description = (notes or f'Payment for project "{project.title}"')[:DESCRIPTION_LIMIT]
        request = InvoiceRequest(
            amount=amount,
            description=description,
            lines=tuple(
                InvoiceLine(description=(item.name or f"Item {position}")[:DESCRIPTION_LIMIT], amount=item_amount)
                for position, (item, item_amount) in enumerate(selection, start=1)
            ),
            customer=dict(customer) if customer else None,
            metadata={"project_id": project_id},
        )

        try:
            response = provider.create_invoice(request)
        except ExternalServiceError:
            raise
        except Exception as exc:
            logger.error("provider_invoice_failed", project_id=project_id, error=str(exc))
            raise ExternalServiceError(f"Payment provider failed to create invoice: {exc}") from exc

        payment_id = self.db.create_payment(
            project_id=project_id,
            amount=amount,
            payment_date=payment_date,
            notes=notes or "",
            method=PaymentMethod.PROVIDER,
            status=PaymentStatus.PENDING,
            items=[(item.id, item_amount) for item, item_amount in selection],
            provider_invoice_id=response.invoice_id,
            payment_url=response.payment_url,
        )
        logger.info(
            "provider_invoice_created",
            project_id=project_id,
            payment_id=payment_id,
            invoice_id=response.invoice_id,
        )
        return payment_id

    def update_payment_status(
        self,
        payment_id: str,
        status: PaymentStatus,
        provider_payment_id: Optional[str] = None,
        paid_at: Optional[datetime] = None,
    ) -> PaymentEntity:
        """Move a provider payment to a new status.

        Raises:
            NotFoundError: If payment doesn't exist
            ValidationError: If the payment is manual or the status is not a provider status
        """
        payment = self._require_payment(payment_id)
        status = PaymentStatus(status)
        if payment.method is not PaymentMethod.PROVIDER:
            raise ValidationError(f"Payment {payment_id} was recorded manually; its status cannot change")
        if status not in PROVIDER_STATUSES:
            raise ValidationError(f"Unsupported provider payment status: {status.value}")
        if status is PaymentStatus.SUCCEEDED and paid_at is None:
            paid_at = datetime.now(UTC)

        self.db.update_payment_status(
            payment_id, status, provider_payment_id=provider_payment_id, paid_at=paid_at
        )
        logger.info("payment_status_updated", payment_id=payment_id, status=status.value)
        return self._require_payment(payment_id)

    def refresh_payment_status(self, payment_id: str, provider: InvoiceProvider) -> PaymentEntity:
        """Ask the provider for the status of a pending invoice.

        Provider failures are logged and the payment is returned unchanged.
        """
        payment = self._require_payment(payment_id)
        if (
            payment.method is not PaymentMethod.PROVIDER
            or payment.status is not PaymentStatus.PENDING
            or not payment.provider_invoice_id
        ):
            return payment

        try:
            response = provider.get_status(payment.provider_invoice_id)
        except Exception as exc:
            logger.warning("payment_status_refresh_failed", payment_id=payment_id, error=str(exc))
            return payment

        if response.status in (PaymentStatus.SUCCEEDED, PaymentStatus.CANCELED):
            return self.update_payment_status(
                payment_id,
                response.status,
                provider_payment_id=response.payment_id,
                paid_at=response.paid_at,
            )
        return payment

    def find_payment_by_provider_id(self, provider_id: str) -> Optional[PaymentEntity]:
        return self.db.find_payment_by_provider_id(provider_id)

    def get_payment(self, payment_id: str) -> Optional[PaymentEntity]:
        return self.db.get_payment(payment_id)

    def list_payments(self, project_id: str) -> list[PaymentEntity]:
        """List payments of a project, newest first.

        Raises:
            NotFoundError: If project doesn't exist
        """
        self._require_project(project_id)
        return self.db.list_payments(project_id)

    def delete_payment(self, payment_id: str) -> None:
        """Delete a payment; its items become editable again unless otherwise settled."""
        payment = self._require_payment(payment_id)
        self.db.delete_payment(payment_id)
        logger.info(
            "payment_deleted",
            project_id=payment.project_id,
            payment_id=payment_id,
            amount=str(payment.amount),
        )

    # Completions

    def record_completion(
        self,
        project_id: str,
        item_id: str,
        quantity: Decimal,
        completion_date: date,
        notes: str = "",
    ) -> str:
        """Record a completed quantity of work on an item.

        Raises:
            NotFoundError: If project or item doesn't exist
            ValidationError: If quantity is not positive
        """
        self._require_project(project_id)
        item = self.db.get_item(item_id)
        if item is None or item.project_id != project_id:
            raise NotFoundError(item_not_found(item_id))
        quantity = Decimal(quantity)
        if quantity <= 0:
            raise ValidationError("Completed quantity must be greater than zero")

        completion_id = self.db.create_completion(
            project_id, item_id, quantity, completion_date, notes=notes or ""
        )
        logger.info("completion_recorded", project_id=project_id, item_id=item_id, quantity=str(quantity))
        return completion_id

    def list_completions(self, project_id: str, item_id: Optional[str] = None) -> list[CompletionEntity]:
        self._require_project(project_id)
        return self.db.list_completions(project_id, item_id=item_id)

    def delete_completion(self, completion_id: str) -> None:
        completion = self.db.get_completion(completion_id)
        if completion is None:
            raise NotFoundError(completion_not_found(completion_id))
        self.db.delete_completion(completion_id)
        logger.info("completion_deleted", project_id=completion.project_id, completion_id=completion_id)
