"""CLI helpers for repeatable KEY=VALUE options."""

from __future__ import annotations

from decimal import Decimal

import click

from estimatekit.utils.amount_parser import parse_amount


def parse_amount_pairs(ctx: click.Context, values: tuple[str, ...], what: str) -> list[tuple[str, Decimal]]:
    """Parse ``KEY=AMOUNT`` option values, or exit with a CLI error.

    The key is split at the last ``=`` so view names may contain one.
    """
    pairs = []
    for value in values:
        key, sep, amount = value.rpartition("=")
        if not sep or not key.strip():
            click.echo(f"Error: Expected {what}=AMOUNT, got '{value}'", err=True)
            ctx.exit(1)
        try:
            pairs.append((key.strip(), parse_amount(amount)))
        except ValueError as e:
            click.echo(f"Error: Invalid amount format: {e}", err=True)
            ctx.exit(1)
    return pairs


def parse_amount_or_exit(ctx: click.Context, value: str, what: str = "amount") -> Decimal:
    """Parse an amount or quantity, or exit with a CLI error."""
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {what} format: {e}", err=True)
        ctx.exit(1)
