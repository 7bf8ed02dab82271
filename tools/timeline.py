"""Date and time-series helpers shared by the analysis tools."""

from datetime import date, datetime, time
from decimal import Decimal
from typing import Dict, List
from dateutil.relativedelta import relativedelta
from models.transaction import Transaction


def as_datetime(when: date) -> datetime:
    """Promote a plain date to midnight so dates and datetimes compare."""
    if isinstance(when, datetime):
        return when
    return datetime(when.year, when.month, when.day)


def end_of_day(when: date) -> datetime:
    """Promote a plain date to its last instant; datetimes pass through."""
    if isinstance(when, datetime):
        return when
    return datetime.combine(when, time.max)


def month_key(when: date) -> str:
    """Format a date's month as "YYYY/MM"."""
    return f"{when.year:04d}/{when.month:02d}"


def day_gaps(transactions: List[Transaction]) -> List[int]:
    """Whole days between successive transactions, oldest first."""
    ordered = sorted(as_datetime(t.transaction_date) for t in transactions)
    return [(later - earlier).days for earlier, later in zip(ordered, ordered[1:])]


def average_days_between(transactions: List[Transaction]) -> float:
    """Mean gap in days between successive transactions.

    Returns 0.0 when there are fewer than two transactions.
    """
    gaps = day_gaps(transactions)
    if not gaps:
        return 0.0
    return sum(gaps) / len(gaps)


def calculate_trend(values: List[float]) -> float:
    """Least-squares slope of a series divided by its mean.

    Positive means the series is increasing. A result of 0.1 means the
    fitted line rises by about 10% of the average per step.

    Returns 0.0 for fewer than two values or a zero mean.
    """
    n = len(values)
    if n < 2:
        return 0.0

    mean_y = sum(values) / n
    if mean_y == 0:
        return 0.0

    mean_x = (n - 1) / 2
    numerator = sum((x - mean_x) * (y - mean_y) for x, y in enumerate(values))
    denominator = sum((x - mean_x) ** 2 for x in range(n))

    return (numerator / denominator) / mean_y


def monthly_totals(transactions: List[Transaction]) -> Dict[str, Decimal]:
    """Sum amounts per calendar month.

    Returns:
        "YYYY/MM" -> total, in chronological order, with every month between
        the first and the last transaction present (zero if empty).
    """
    if not transactions:
        return {}

    totals: Dict[str, Decimal] = {}
    for t in transactions:
        key = month_key(t.transaction_date)
        totals[key] = totals.get(key, Decimal("0")) + t.amount

    dates = [as_datetime(t.transaction_date) for t in transactions]
    first, last = min(dates), max(dates)
    current = date(first.year, first.month, 1)
    end = date(last.year, last.month, 1)

    result: Dict[str, Decimal] = {}
    while current <= end:
        key = month_key(current)
        result[key] = totals.get(key, Decimal("0"))
        current += relativedelta(months=1)

    return result
