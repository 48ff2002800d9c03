"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re


def parse_amount(amount_str: str) -> Decimal:
    """Parse a money amount or quantity string into a Decimal.

    Handles various formats:
    - "123.45"
    - "1,234.56"
    - "1 234,56" (space or non-breaking space as thousands separator,
      comma as decimal separator)
    - "350 000 ₽", "$120", "120 руб."

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if amount_str is None or not str(amount_str).strip():
        raise ValueError("Empty amount string")

    original = str(amount_str)
    amount_str = original.strip().lower()

    # Remove currency markers
    amount_str = re.sub(r"(₽|руб\.?|rub|\$|€|£)", "", amount_str)

    # Remove spaces used as thousands separators
    amount_str = re.sub(r"[\s  ]", "", amount_str)

    if "," in amount_str and "." in amount_str:
        # "1,234.56": comma groups thousands
        amount_str = amount_str.replace(",", "")
    elif amount_str.count(",") == 1 and len(amount_str.split(",")[1]) != 3:
        # "1234,56": comma is the decimal separator
        amount_str = amount_str.replace(",", ".")
    else:
        amount_str = amount_str.replace(",", "")

    try:
        return Decimal(amount_str)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{original}'")
