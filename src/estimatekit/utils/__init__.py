"""Utility functions for estimatekit."""

from estimatekit.utils.date_parser import parse_date
from estimatekit.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_amount"]
