"""Pattern store: persistence for learned classification rules."""

import threading
from typing import Dict, List, Optional
from errors import PatternExistsError, ValidationError
from models.pattern import Pattern, PatternKind

_PATTERN_SELECT_FIELDS = """p.id, p.pattern_value, p.kind, p.category_id,
       p.match_count, p.correct_count"""


class PatternStore:
    """Service for reading and updating learned patterns.

    Patterns belong to a user through their category. Reads need no
    coordination. Counter updates are single atomic UPDATE statements, and
    callers that read-then-write (the learner) serialize per owner with
    lock_for().
    """

    def __init__(self, db_manager):
        """Initialize the pattern store.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager
        self._locks: Dict[int, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def lock_for(self, owner_id: int) -> threading.Lock:
        """Get the write lock for one owner's patterns.

        The same Lock object is returned for every call with the same owner,
        different owners never share a lock.
        """
        with self._locks_guard:
            lock = self._locks.get(owner_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[owner_id] = lock
            return lock

    def find_by_owner(self, owner_id: int) -> List[Pattern]:
        """Get every pattern attached to one of the owner's categories.

        Returns:
            List of Pattern objects ordered by id.
        """
        return self._query(
            "WHERE c.owner_id = ? ORDER BY p.id",
            (owner_id,),
        )

    def find_confident(self, owner_id: int, min_confidence: float) -> List[Pattern]:
        """Get the owner's patterns whose confidence is at least min_confidence.

        Patterns that have never fired (match_count = 0) are always excluded,
        whatever the threshold.

        Args:
            owner_id: The owning user's ID.
            min_confidence: Minimum correct_count / match_count ratio.

        Returns:
            List of Pattern objects ordered by id.
        """
        return self._query(
            """
            WHERE c.owner_id = ?
              AND p.match_count > 0
              AND CAST(p.correct_count AS REAL) / p.match_count >= ?
            ORDER BY p.id
            """,
            (owner_id, min_confidence),
        )

    def find_by_category(self, category_id: int) -> List[Pattern]:
        return self._query("WHERE p.category_id = ? ORDER BY p.id", (category_id,))

    def find_by_kind(self, owner_id: int, kind: PatternKind) -> List[Pattern]:
        return self._query(
            "WHERE c.owner_id = ? AND p.kind = ? ORDER BY p.id",
            (owner_id, PatternKind(kind).value),
        )

    def find(self, pattern_id: int) -> Optional[Pattern]:
        patterns = self._query("WHERE p.id = ?", (pattern_id,))
        return patterns[0] if patterns else None

    def create(self, pattern_value: str, kind: PatternKind, category_id: int) -> Pattern:
        """Create a new pattern with zeroed counters.

        Args:
            pattern_value: Encoded pattern value.
            kind: The PatternKind.
            category_id: Category the pattern votes for.

        Returns:
            The created Pattern with id populated.

        Raises:
            ValidationError: If the category does not exist.
            PatternExistsError: If the category's owner already has a pattern
                                of this kind with this value.
        """
        kind = PatternKind(kind)

        with self.db_manager.connect() as conn:
            row = conn.execute(
                "SELECT owner_id FROM categories WHERE id = ?", (category_id,)
            ).fetchone()
            if row is None:
                raise ValidationError(f"Category with ID {category_id} not found")
            owner_id = row[0]

            existing = conn.execute(
                """
                SELECT p.id FROM patterns p
                JOIN categories c ON c.id = p.category_id
                WHERE c.owner_id = ? AND p.kind = ? AND p.pattern_value = ?
                """,
                (owner_id, kind.value, pattern_value),
            ).fetchone()
            if existing is not None:
                raise PatternExistsError(
                    f"{kind.value} pattern '{pattern_value}' already exists "
                    f"(ID: {existing[0]})"
                )

            cursor = conn.execute(
                """
                INSERT INTO patterns (pattern_value, kind, category_id, match_count, correct_count)
                VALUES (?, ?, ?, 0, 0)
                """,
                (pattern_value, kind.value, category_id),
            )
            conn.commit()

            return Pattern(
                id=cursor.lastrowid,
                pattern_value=pattern_value,
                kind=kind,
                category_id=category_id,
            )

    def record_match(self, pattern_id: int, was_correct: bool) -> bool:
        """Count one firing of a pattern.

        match_count always goes up by one, correct_count only when the
        categorization was confirmed. Both change in one statement so
        correct_count can never overtake match_count.

        Returns:
            True if the pattern was updated, False if it no longer exists.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                UPDATE patterns
                SET match_count = match_count + 1,
                    correct_count = correct_count + ?
                WHERE id = ?
                """,
                (1 if was_correct else 0, pattern_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def delete(self, pattern_id: int) -> bool:
        """Delete a pattern by ID.

        Returns:
            True if pattern was deleted, False if not found.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute("DELETE FROM patterns WHERE id = ?", (pattern_id,))
            conn.commit()
            return cursor.rowcount > 0

    def _query(self, where_clause: str, params: tuple) -> List[Pattern]:
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_PATTERN_SELECT_FIELDS}
                FROM patterns p
                JOIN categories c ON c.id = p.category_id
                {where_clause}
                """,
                params,
            )
            return [self._row_to_pattern(row) for row in cursor.fetchall()]

    def _row_to_pattern(self, row: tuple) -> Pattern:
        """Convert a database row to a Pattern object."""
        return Pattern(
            id=row[0],
            pattern_value=row[1],
            kind=PatternKind(row[2]),
            category_id=row[3],
            match_count=row[4],
            correct_count=row[5],
        )
