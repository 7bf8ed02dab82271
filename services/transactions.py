"""Transaction service for database operations."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from models.transaction import Transaction

# SQL Query Constants
_TRANSACTION_FIELDS = """id, account_id, transaction_date, description, amount,
       transaction_type, category_id"""

# Automatically generate placeholders from field count
_TRANSACTION_INSERT_PLACEHOLDERS = (
    f"({', '.join(['?'] * len(_TRANSACTION_FIELDS.split(',')))})"
)


class TransactionService:
    """Service for reading transaction history.

    Transactions are written by the surrounding application; create() and
    bulk_create() exist so that history can be loaded for analysis.
    """

    def __init__(self, db_manager):
        """Initialize the transaction service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def create(self, transaction: Transaction) -> Transaction:
        """Create a single transaction in the database.

        Raises:
            sqlite3.IntegrityError: If the ID already exists.
        """
        with self.db_manager.connect() as conn:
            conn.execute(
                f"""
                INSERT INTO transactions ({_TRANSACTION_FIELDS})
                VALUES {_TRANSACTION_INSERT_PLACEHOLDERS}
                """,
                self._to_row(transaction),
            )
            conn.commit()

        return transaction

    def bulk_create(self, transactions: List[Transaction]) -> int:
        """Create multiple transactions, skipping IDs that already exist.

        Args:
            transactions: List of Transaction objects to insert.

        Returns:
            Number of transactions inserted.
        """
        if not transactions:
            return 0

        with self.db_manager.connect() as conn:
            before = conn.total_changes
            conn.executemany(
                f"""
                INSERT OR IGNORE INTO transactions ({_TRANSACTION_FIELDS})
                VALUES {_TRANSACTION_INSERT_PLACEHOLDERS}
                """,
                [self._to_row(t) for t in transactions],
            )
            conn.commit()

            return conn.total_changes - before

    def find(self, transaction_id: str) -> Optional[Transaction]:
        """Get a single transaction by ID, or None if it doesn't exist."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_TRANSACTION_FIELDS} FROM transactions WHERE id = ?",
                (transaction_id,),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_transaction(row)
            return None

    def find_by_account(
        self, account_id: int, since: Optional[datetime] = None
    ) -> List[Transaction]:
        """Get transactions for a specific account.

        Args:
            account_id: The account ID to filter by.
            since: Only return transactions dated on or after this moment.

        Returns:
            List of Transaction objects ordered by transaction_date (newest first).
        """
        query = f"""
            SELECT {_TRANSACTION_FIELDS}
            FROM transactions
            WHERE account_id = ?
        """
        params = [account_id]

        if since is not None:
            query += " AND transaction_date >= ?"
            params.append(since.isoformat())

        query += " ORDER BY transaction_date DESC, id"

        with self.db_manager.connect() as conn:
            cursor = conn.execute(query, params)
            return [self._row_to_transaction(row) for row in cursor.fetchall()]

    def _to_row(self, t: Transaction) -> tuple:
        return (
            t.id,
            t.account_id,
            t.transaction_date.isoformat(),
            t.description,
            float(t.amount),
            t.type,
            t.category_id,
        )

    def _row_to_transaction(self, row: tuple) -> Transaction:
        """Convert a database row to a Transaction object."""
        return Transaction(
            id=row[0],
            account_id=row[1],
            transaction_date=datetime.fromisoformat(row[2]),
            description=row[3],
            amount=Decimal(str(row[4])),
            type=row[5],
            category_id=row[6],
        )
