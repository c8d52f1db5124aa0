#!/usr/bin/env python3
"""
Currency Conversion and Handling Utilities

All amounts in ordersync are integer YNAB milliunits.

Currency Systems:
- YNAB uses milliunits: 1000 milliunits = $1.00
- Order emails show dollar strings: "$1,234.56"
- Display uses dollar strings: "$12.34"

Key Principles:
- Never use floating-point arithmetic for currency calculations
- Parse dollar strings with integer (or Decimal) arithmetic only
- Negative milliunits are outflows (debits), positive are inflows
"""

import re
from decimal import Decimal, InvalidOperation

MILLIUNITS_PER_DOLLAR = 1000

# "$52.30", "$1,234.56", "$ 7" - the currency symbol is required
CURRENCY_PATTERN = re.compile(r"\$\s*(\d{1,3}(?:,\d{3})+|\d+)(?:\.(\d{1,2}))?")


def parse_dollars_to_milliunits(dollars_str: str) -> int:
    """
    Parse a dollar string to milliunits using integer arithmetic only.

    Args:
        dollars_str: String representation of a dollar amount

    Returns:
        Amount in milliunits

    Raises:
        ValueError: If the string is not a number

    Examples:
        parse_dollars_to_milliunits("52.30") -> 52300
        parse_dollars_to_milliunits("$1,234.56") -> 1234560
        parse_dollars_to_milliunits("-0.5") -> -500
    """
    clean = dollars_str.replace("$", "").replace(",", "").strip()

    if not clean:
        return 0

    is_negative = clean.startswith("-")
    if is_negative:
        clean = clean[1:].strip()

    if "." in clean:
        whole, fraction = clean.split(".", 1)
        dollars = int(whole) if whole else 0
        # Pad to 3 digits, truncate anything finer than a milliunit
        fraction_digits = fraction.ljust(3, "0")[:3]
        total = dollars * MILLIUNITS_PER_DOLLAR + int(fraction_digits)
    else:
        total = int(clean) * MILLIUNITS_PER_DOLLAR

    return -total if is_negative else total


def dollars_to_milliunits(dollars: Decimal | str | int) -> int:
    """
    Convert a dollar amount to milliunits.

    Accepts Decimal, int or string input; floats are not accepted on purpose.

    Raises:
        ValueError: If the value cannot be interpreted as an amount
    """
    if isinstance(dollars, bool):
        raise ValueError(f"Not a dollar amount: {dollars!r}")
    if isinstance(dollars, int):
        return dollars * MILLIUNITS_PER_DOLLAR
    if isinstance(dollars, Decimal):
        return int(dollars * MILLIUNITS_PER_DOLLAR)
    try:
        return int(Decimal(str(dollars).replace("$", "").replace(",", "").strip()) * MILLIUNITS_PER_DOLLAR)
    except InvalidOperation as e:
        raise ValueError(f"Not a dollar amount: {dollars!r}") from e


def parse_currency_match(match: re.Match) -> int:
    """Convert a CURRENCY_PATTERN match to milliunits."""
    whole = match.group(1).replace(",", "")
    fraction = match.group(2) or ""
    return parse_dollars_to_milliunits(f"{whole}.{fraction}" if fraction else whole)


def find_currency_amounts(text: str) -> list[int]:
    """
    Find every currency-formatted amount in text, in document order.

    Example:
        find_currency_amounts("Items: $5.00 Total: $5.35") -> [5000, 5350]
    """
    return [parse_currency_match(m) for m in CURRENCY_PATTERN.finditer(text or "")]


def parse_first_currency_amount(text: str) -> int | None:
    """Return the first currency amount in text as milliunits, or None."""
    match = CURRENCY_PATTERN.search(text or "")
    if not match:
        return None
    return parse_currency_match(match)


def milliunits_to_dollars_str(milliunits: int) -> str:
    """
    Convert milliunits to a dollar string using integer arithmetic.

    Sub-cent milliunits are truncated toward zero.

    Example:
        milliunits_to_dollars_str(-52300) -> "-52.30"
    """
    is_negative = milliunits < 0
    abs_cents = abs(int(milliunits)) // 10

    dollars = abs_cents // 100
    remainder = abs_cents % 100

    if is_negative:
        return f"-{dollars}.{remainder:02d}"
    return f"{dollars}.{remainder:02d}"


def format_milliunits(milliunits: int) -> str:
    """Format milliunits as dollar string with $ prefix."""
    return f"${milliunits_to_dollars_str(milliunits)}"
