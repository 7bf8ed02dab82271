"""Envelope model: the budget bucket a suggestion points at."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass
class Envelope:
    """A budget envelope.

    Attributes:
        id: Unique identifier (auto-generated).
        name: Display name. Categories are matched to envelopes by name.
        owner_id: ID of the user the envelope belongs to.
        monthly_budget: Monthly spending target (0 when unbudgeted).
    """

    id: int
    name: str
    owner_id: int
    monthly_budget: Decimal = Decimal("0")
