"""Envelope service for database operations."""

from decimal import Decimal
from typing import List, Optional
from models.envelope import Envelope


class EnvelopeService:
    """Service for managing budget envelopes."""

    def __init__(self, db_manager):
        self.db_manager = db_manager

    def find_by_owner(self, owner_id: int) -> List[Envelope]:
        """Get all envelopes belonging to a user.

        Returns:
            List of Envelope objects, ordered by id. The classifier relies on
            this order when a category name matches several envelopes.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "SELECT id, name, owner_id, monthly_budget FROM envelopes "
                "WHERE owner_id = ? ORDER BY id",
                (owner_id,),
            )
            return [self._row_to_envelope(row) for row in cursor.fetchall()]

    def find(self, envelope_id: int) -> Optional[Envelope]:
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "SELECT id, name, owner_id, monthly_budget FROM envelopes WHERE id = ?",
                (envelope_id,),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_envelope(row)
            return None

    def create(
        self, name: str, owner_id: int, monthly_budget: Decimal = Decimal("0")
    ) -> Envelope:
        """Create a new envelope.

        Args:
            name: Envelope name (unique per owner).
            owner_id: The owning user's ID.
            monthly_budget: Monthly spending target.

        Returns:
            The created Envelope object with id populated.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "INSERT INTO envelopes (name, owner_id, monthly_budget) VALUES (?, ?, ?)",
                (name, owner_id, float(monthly_budget)),
            )
            conn.commit()

            return Envelope(
                id=cursor.lastrowid,
                name=name,
                owner_id=owner_id,
                monthly_budget=Decimal(str(monthly_budget)),
            )

    def _row_to_envelope(self, row: tuple) -> Envelope:
        return Envelope(
            id=row[0],
            name=row[1],
            owner_id=row[2],
            monthly_budget=Decimal(str(row[3])),
        )
