"""Pattern model: a learned classification rule."""

from dataclasses import dataclass
from enum import Enum


class PatternKind(str, Enum):
    """What part of a transaction a pattern looks at."""

    MERCHANT = "MERCHANT"
    TEMPORAL = "TEMPORAL"
    AMOUNT = "AMOUNT"


@dataclass
class Pattern:
    """A learned rule associating a transaction feature with a category.

    Attributes:
        id: Unique identifier (auto-generated).
        pattern_value: Encoded value, see matching.py for the format per kind.
        kind: The PatternKind.
        category_id: Category the pattern votes for.
        match_count: Times the pattern fired during learning.
        correct_count: Times it fired on a confirmed categorization.
            Never exceeds match_count.
    """

    id: int
    pattern_value: str
    kind: PatternKind
    category_id: int
    match_count: int = 0
    correct_count: int = 0

    @property
    def confidence(self) -> float:
        """correct_count / match_count, or 0.0 for a pattern that never fired."""
        if self.match_count <= 0:
            return 0.0
        return self.correct_count / self.match_count
