from datetime import date, datetime
from decimal import Decimal

import pytest
import sqlite3

from models.transaction import INCOME
from tests.helpers import make_transaction


class TestTransactionService:
    """Tests for TransactionService."""

    def test_create_and_find(self, services):
        """Test that a stored transaction reads back unchanged."""
        transaction = make_transaction(
            "STARBUCKS", "5.75", when=datetime(2025, 1, 15, 8, 30), id="t-1"
        )

        services.transactions.create(transaction)

        assert services.transactions.find("t-1") == transaction

    def test_find_not_found(self, services):
        """Test finding a non-existent transaction returns None."""
        assert services.transactions.find("missing") is None

    def test_create_duplicate_id_raises(self, services):
        """Test that transaction IDs are unique."""
        services.transactions.create(make_transaction(id="t-1"))

        with pytest.raises(sqlite3.IntegrityError):
            services.transactions.create(make_transaction(id="t-1"))

    def test_bulk_create_empty_list(self, services):
        """Test bulk creating with empty list returns 0."""
        assert services.transactions.bulk_create([]) == 0

    def test_bulk_create_skips_existing_ids(self, services):
        """Test that bulk_create counts only the rows it inserted."""
        services.transactions.create(make_transaction(id="t-1"))

        count = services.transactions.bulk_create(
            [make_transaction(id="t-1"), make_transaction(id="t-2")]
        )

        assert count == 1
        assert len(services.transactions.find_by_account(1)) == 2

    def test_find_by_account_newest_first(self, services):
        """Test that account history is returned newest first."""
        services.transactions.bulk_create(
            [
                make_transaction(id="old", when=datetime(2025, 1, 1)),
                make_transaction(id="new", when=datetime(2025, 3, 1)),
                make_transaction(id="mid", when=datetime(2025, 2, 1)),
                make_transaction(id="other", account_id=2),
            ]
        )

        found = services.transactions.find_by_account(1)

        assert [t.id for t in found] == ["new", "mid", "old"]

    def test_find_by_account_since(self, services):
        """Test limiting account history to a start date."""
        services.transactions.bulk_create(
            [
                make_transaction(id="old", when=datetime(2024, 12, 31, 23, 0)),
                make_transaction(id="new", when=datetime(2025, 1, 1, 0, 0)),
            ]
        )

        found = services.transactions.find_by_account(1, since=date(2025, 1, 1))

        assert [t.id for t in found] == ["new"]

    def test_round_trip_keeps_type_and_category(self, services):
        """Test that income and category assignments survive storage."""
        category = services.categories.create("Salary", owner_id=1)
        services.transactions.create(
            make_transaction(
                "ACME PAYROLL", "2500.00", type=INCOME, category_id=category.id, id="pay"
            )
        )

        found = services.transactions.find("pay")

        assert found.type == INCOME
        assert found.category_id == category.id
        assert found.amount == Decimal("2500.0")
