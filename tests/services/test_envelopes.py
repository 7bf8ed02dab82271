from decimal import Decimal

import pytest
import sqlite3


class TestEnvelopeService:
    """Tests for EnvelopeService."""

    def test_create_envelope_defaults_to_no_budget(self, services):
        """Test creating an envelope without a budget."""
        envelope = services.envelopes.create("Dining Out", owner_id=1)

        assert envelope.id > 0
        assert envelope.name == "Dining Out"
        assert envelope.monthly_budget == Decimal("0")

    def test_create_envelope_with_budget(self, services):
        """Test that the monthly budget survives a round trip."""
        created = services.envelopes.create("Groceries", 1, Decimal("450.50"))

        found = services.envelopes.find(created.id)

        assert found.monthly_budget == Decimal("450.5")
        assert found.owner_id == 1

    def test_find_not_found(self, services):
        """Test finding a non-existent envelope returns None."""
        assert services.envelopes.find(9999) is None

    def test_find_by_owner_ordered_by_id(self, services):
        """Test listing envelopes returns only the owner's, by id."""
        first = services.envelopes.create("Travel", 1)
        second = services.envelopes.create("Bills", 1)
        services.envelopes.create("Travel", 2)

        envelopes = services.envelopes.find_by_owner(1)

        assert [e.id for e in envelopes] == [first.id, second.id]

    def test_duplicate_name_per_owner_raises_error(self, services):
        """Test that envelope names are unique per owner."""
        services.envelopes.create("Bills", 1)

        with pytest.raises(sqlite3.IntegrityError):
            services.envelopes.create("Bills", 1)
