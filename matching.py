"""Pattern matching: decides whether a learned pattern fires on a transaction.

Pattern values are encoded per kind:

- MERCHANT: the lower-cased transaction description. A pattern fires when its
  value occurs anywhere in the transaction description, ignoring case, so a
  pattern trimmed down to "coffee shop" still matches "Coffee Shop #4".
- TEMPORAL: "DOM{day}:{hour}" when the day of month is <= 5 or >= 25 (start
  or end of month billing), otherwise "DOW{iso weekday}:{hour}". A pattern
  fires when the transaction's date encodes to the same key.
- AMOUNT: "={amount}". Fires on exact decimal equality only.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional
from models.category import Category
from models.envelope import Envelope
from models.pattern import Pattern, PatternKind
from models.transaction import Transaction
from logger import get_logger

logger = get_logger()


def merchant_key(description: str) -> str:
    return description.lower()


def temporal_key(when: date) -> str:
    """Encode a transaction date as a monthly or weekly billing bucket.

    Plain dates (no time of day) are treated as midnight.
    """
    hour = when.hour if isinstance(when, datetime) else 0
    if when.day <= 5 or when.day >= 25:
        return f"DOM{when.day}:{hour}"
    return f"DOW{when.isoweekday()}:{hour}"


def amount_key(amount: Decimal) -> str:
    return f"={amount}"


def pattern_value_for(kind: PatternKind, transaction: Transaction) -> str:
    """Build the pattern value of the given kind for a transaction."""
    if kind == PatternKind.MERCHANT:
        return merchant_key(transaction.description)
    if kind == PatternKind.TEMPORAL:
        return temporal_key(transaction.transaction_date)
    return amount_key(transaction.amount)


def applies(pattern: Pattern, transaction: Transaction) -> bool:
    """Check whether a pattern fires on a transaction."""
    if pattern.kind == PatternKind.MERCHANT:
        return pattern.pattern_value.lower() in transaction.description.lower()

    if pattern.kind == PatternKind.TEMPORAL:
        return pattern.pattern_value == temporal_key(transaction.transaction_date)

    if pattern.kind == PatternKind.AMOUNT:
        if not pattern.pattern_value.startswith("="):
            return False
        try:
            return Decimal(pattern.pattern_value[1:]) == transaction.amount
        except InvalidOperation:
            logger.debug(
                f"Ignoring unparseable amount pattern {pattern.id}: "
                f"'{pattern.pattern_value}'"
            )
            return False

    return False


def match_envelope(
    category: Category, envelopes: Iterable[Envelope]
) -> Optional[Envelope]:
    """Find the envelope a category's score should go to.

    Categories and envelopes are not linked by key: the first envelope whose
    name contains the category name (case-insensitive) wins. Pass envelopes
    in a stable order (the envelope service returns them by id).

    Returns:
        The matching Envelope, or None if no envelope name contains the
        category name.
    """
    needle = category.name.lower()
    for envelope in envelopes:
        if needle in envelope.name.lower():
            return envelope
    return None
