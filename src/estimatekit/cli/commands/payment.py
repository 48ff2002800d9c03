"""Payment ledger commands."""

import click
from estimatekit.cli.error_handling import handle_domain_error
from estimatekit.cli.formatting import format_money
from estimatekit.cli.pair_options import parse_amount_or_exit, parse_amount_pairs
from estimatekit.cli.resolution import resolve_project_or_exit
from estimatekit.domain.entities import PaymentStatus
from estimatekit.domain.payment import PaymentService
from estimatekit.domain.project import ProjectService
from estimatekit.integrations.invoice_provider import HttpInvoiceProvider
from estimatekit.utils.date_parser import parse_date


@click.group()
def payment_group():
    """Record payments and inspect the project balance."""
    pass


def _parse_date_or_exit(ctx, value: str):
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid date format: {e}", err=True)
        ctx.exit(1)


def _ledger(ctx, db) -> PaymentService:
    return PaymentService(db, invoice_cap=ctx.obj["settings"].provider_invoice_cap)


@payment_group.command("record")
@click.argument("project", metavar="PROJECT")
@click.argument("amount", metavar="AMOUNT")
@click.option("--item", "items", multiple=True, required=True, help="Item share as ITEM_ID=AMOUNT (repeatable)")
@click.option("--date", "payment_date", default="today", help="Payment date (default: today)")
@click.option("--notes", default="", help="Notes")
@click.pass_context
def record_payment(ctx, project: str, amount: str, items, payment_date: str, notes: str):
    """Record a manual payment split across estimate items.

    The item amounts must add up to AMOUNT. Paid items are locked against
    edits until the payment is deleted.

    Examples:
        estimatekit payment record "Apartment" 20000 --item <item-id>=20000
        estimatekit payment record "Apartment" "15 000" --item <a>=10000 --item <b>=5000 --date 01.03.2024
    """
    db = ctx.obj["db"]
    service = _ledger(ctx, db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)
    total = parse_amount_or_exit(ctx, amount)
    shares = parse_amount_pairs(ctx, items, "ITEM_ID")
    paid_on = _parse_date_or_exit(ctx, payment_date)

    try:
        payment_id = service.record_payment(project_id, total, paid_on, shares, notes=notes)
        click.echo(f"Recorded payment of {format_money(total)} (ID: {payment_id})")
    except ValueError as e:
        handle_domain_error(ctx, e)


@payment_group.command("invoice")
@click.argument("project", metavar="PROJECT")
@click.argument("amount", metavar="AMOUNT")
@click.option("--item", "items", multiple=True, required=True, help="Item share as ITEM_ID=AMOUNT (repeatable)")
@click.option("--date", "payment_date", default="today", help="Payment date (default: today)")
@click.option("--notes", default="", help="Invoice description")
@click.option("--email", help="Customer e-mail for the receipt")
@click.pass_context
def create_invoice(ctx, project: str, amount: str, items, payment_date: str, notes: str, email: str | None):
    """Issue an online payment invoice through the payment provider.

    Provider credentials are read from ESTIMATEKIT_PROVIDER_SHOP_ID and
    ESTIMATEKIT_PROVIDER_SECRET_KEY.
    """
    db = ctx.obj["db"]
    service = _ledger(ctx, db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)
    total = parse_amount_or_exit(ctx, amount)
    shares = parse_amount_pairs(ctx, items, "ITEM_ID")
    paid_on = _parse_date_or_exit(ctx, payment_date)

    try:
        provider = HttpInvoiceProvider.from_settings(ctx.obj["settings"])
        payment_id = service.create_provider_invoice(
            project_id,
            total,
            paid_on,
            shares,
            provider,
            notes=notes,
            customer={"email": email} if email else None,
        )
        payment = service.get_payment(payment_id)
        click.echo(f"Created invoice for {format_money(total)} (ID: {payment_id})")
        if payment.payment_url:
            click.echo(f"Payment link: {payment.payment_url}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@payment_group.command("refresh")
@click.argument("payment_id", metavar="PAYMENT_ID")
@click.pass_context
def refresh_payment(ctx, payment_id: str):
    """Ask the payment provider for the current status of an invoice."""
    db = ctx.obj["db"]
    service = _ledger(ctx, db)

    try:
        provider = HttpInvoiceProvider.from_settings(ctx.obj["settings"])
        payment = service.refresh_payment_status(payment_id, provider)
        click.echo(f"Payment {payment_id} is {payment.status.value}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@payment_group.command("set-status")
@click.argument("payment_id", metavar="PAYMENT_ID")
@click.argument(
    "status",
    type=click.Choice([PaymentStatus.PENDING.value, PaymentStatus.SUCCEEDED.value, PaymentStatus.CANCELED.value]),
)
@click.option("--provider-payment-id", help="Payment ID assigned by the provider")
@click.pass_context
def set_payment_status(ctx, payment_id: str, status: str, provider_payment_id: str | None):
    """Set the status of a provider invoice by hand."""
    db = ctx.obj["db"]
    service = _ledger(ctx, db)

    try:
        payment = service.update_payment_status(
            payment_id, PaymentStatus(status), provider_payment_id=provider_payment_id
        )
        click.echo(f"Payment {payment_id} is {payment.status.value}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@payment_group.command("list")
@click.argument("project", metavar="PROJECT")
@click.pass_context
def list_payments(ctx, project: str):
    """List payments of a project, newest first."""
    db = ctx.obj["db"]
    service = _ledger(ctx, db)
    project_id = resolve_project_or_exit(ctx, ProjectService(db), project)

    try:
        payments = service.list_payments(project_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not payments:
        click.echo("No payments found.")
        return

    click.echo("\nPayments:")
    click.echo("-" * 80)
    for p in payments:
        click.echo(
            f"{p.payment_date.isoformat()} | {format_money(p.amount):>14} | {p.status.value:9s} | "
            f"{len(p.items)} item(s) | ID: {p.id}"
        )
        if p.notes:
            click.echo(f"    {p.notes}")


@payment_group.command("delete")
@click.argument("payment_id", metavar="PAYMENT_ID")
@click.option("--yes", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def delete_payment(ctx, payment_id: str, yes: bool):
    """Delete a payment; its items become editable again."""
    db = ctx.obj["db"]
    service = _ledger(ctx, db)
    payment = service.get_payment(payment_id)
    if payment is None:
        click.echo(f"Error: Payment {payment_id} not found", err=True)
        ctx.exit(1)

    if not yes and not click.confirm(
        f"Are you sure you want to delete the payment of {format_money(payment.amount)}?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_payment(payment_id)
        click.echo(f"Deleted payment {payment_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@payment_group.command("balance")
@click.argument("project", metavar="PROJECT")
@click.option("--items", "show_items", is_flag=True, help="Show paid and completed amounts per item")
@click.pass_context
def show_balance(ctx, project: str, show_items: bool):
    """Show paid minus completed for a project.

    A positive balance is an advance; a negative one is work not yet paid for.
    """
    db = ctx.obj["db"]
    service = _ledger(ctx, db)
    project_service = ProjectService(db)
    project_id = resolve_project_or_exit(ctx, project_service, project)

    try:
        statuses = service.get_item_statuses(project_id)
        balance = service.get_balance(project_id)
        tree = project_service.get_tree(project_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if show_items:
        for item_id, status in statuses.items():
            if not status.is_locked:
                continue
            live = tree.find_item(item_id)
            name = live.name if live is not None else "(deleted item)"
            click.echo(
                f"{name[:30]:30s} | paid {format_money(status.paid_amount):>14} | "
                f"completed {format_money(status.completed_amount):>14}"
            )
        click.echo("-" * 80)

    paid = sum(s.paid_amount for s in statuses.values())
    completed = sum(s.completed_amount for s in statuses.values())
    click.echo(f"Paid:      {format_money(paid):>16}")
    click.echo(f"Completed: {format_money(completed):>16}")
    click.echo(f"Balance:   {format_money(balance):>16}")


def register_commands(cli):
    """Register payment commands with main CLI."""
    cli.add_command(payment_group, name="payment")
