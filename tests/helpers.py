"""Helper utilities for tests."""

from datetime import datetime
from decimal import Decimal
from pathlib import Path
import sqlite3
import uuid

from models.transaction import EXPENSE, Transaction


def run_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> None:
    """Run all SQL migrations in order.

    Args:
        conn: SQLite connection to run migrations against.
        migrations_dir: Path to directory containing .sql migration files.
    """
    for migration_file in sorted(migrations_dir.glob("*.sql")):
        conn.executescript(migration_file.read_text())

    conn.commit()


def make_transaction(
    description="COFFEE SHOP",
    amount="5.00",
    when=None,
    account_id=1,
    type=EXPENSE,
    category_id=None,
    id=None,
) -> Transaction:
    """Build a Transaction with sensible defaults.

    Args:
        amount: Anything Decimal() accepts.
        when: datetime or date; defaults to Wednesday 2025-01-15 09:00.
    """
    return Transaction(
        id=id or str(uuid.uuid4()),
        account_id=account_id,
        transaction_date=when or datetime(2025, 1, 15, 9, 0),
        description=description,
        amount=Decimal(amount),
        type=type,
        category_id=category_id,
    )
