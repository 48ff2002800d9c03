"""Output formatting shared by CLI commands."""

from decimal import Decimal


def format_money(amount: Decimal) -> str:
    """Format an amount with thousands separators and two decimals."""
    return f"{amount:,.2f}"


def format_quantity(quantity: Decimal) -> str:
    """Format a quantity without trailing zeros."""
    text = format(quantity.normalize(), "f")
    return text if text != "-0" else "0"
