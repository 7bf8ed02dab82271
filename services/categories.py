"""Category service for database operations."""

from typing import List, Optional
from models.category import Category

_CATEGORY_SELECT_FIELDS = "id, name, owner_id"


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db_manager):
        """Initialize the category service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def find_by_owner(self, owner_id: int) -> List[Category]:
        """Get all categories belonging to a user.

        Args:
            owner_id: The owning user's ID.

        Returns:
            List of Category objects, ordered by id.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories "
                "WHERE owner_id = ? ORDER BY id",
                (owner_id,),
            )
            return [self._row_to_category(row) for row in cursor.fetchall()]

    def find(self, category_id: int) -> Optional[Category]:
        """Get a single category by ID.

        Args:
            category_id: The category ID to find.

        Returns:
            Category object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories WHERE id = ?",
                (category_id,),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_category(row)
            return None

    def find_by_name(self, owner_id: int, name: str) -> Optional[Category]:
        """Get one of a user's categories by exact name."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories "
                "WHERE owner_id = ? AND name = ?",
                (owner_id, name),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_category(row)
            return None

    def create(self, name: str, owner_id: int) -> Category:
        """Create a new category.

        Args:
            name: Category name (unique per owner).
            owner_id: The owning user's ID.

        Returns:
            The created Category object with id populated.

        Raises:
            sqlite3.IntegrityError: If the owner already has a category by that name.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "INSERT INTO categories (name, owner_id) VALUES (?, ?)",
                (name, owner_id),
            )
            conn.commit()

            return Category(id=cursor.lastrowid, name=name, owner_id=owner_id)

    def delete(self, category_id: int) -> bool:
        """Delete a category by ID. Its patterns are removed with it.

        Returns:
            True if category was deleted, False if not found.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
            conn.commit()
            return cursor.rowcount > 0

    def _row_to_category(self, row: tuple) -> Category:
        return Category(id=row[0], name=row[1], owner_id=row[2])
