"""Category model for transaction categorization."""

from dataclasses import dataclass


@dataclass
class Category:
    """Represents a user-defined transaction category.

    Attributes:
        id: Unique identifier (auto-generated).
        name: Category name (unique per owner).
        owner_id: ID of the user the category belongs to.
    """

    id: int
    name: str
    owner_id: int
