"""Tests for CLI command handlers."""

import argparse
from datetime import datetime
from decimal import Decimal

import pytest

from cli import insights, migrate, patterns
from db.manager import DatabaseManager
from models.pattern import PatternKind
from tests.helpers import make_transaction


def parse(module, argv):
    parser = argparse.ArgumentParser()
    module.setup_parser(parser.add_subparsers(dest="command", required=True))
    return parser.parse_args(argv)


class TestMigrateCommands:
    """Tests for migrate apply/status."""

    def test_apply_creates_schema_once(self, test_config):
        db_manager = DatabaseManager(test_config)

        migrate.cmd_apply(parse(migrate, ["migrate", "apply"]), db_manager)

        with db_manager.connect() as conn:
            assert migrate.pending_migrations(conn, db_manager) == []
            tables = {
                row[0]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            }
        assert {"categories", "envelopes", "transactions", "patterns"} <= tables

        # A second run is a no-op
        migrate.cmd_apply(parse(migrate, ["migrate", "apply"]), db_manager)


class TestPatternCommands:
    """Tests for the patterns subcommands."""

    def test_suggest(self, services, caplog):
        category = services.categories.create("Dining", 1)
        services.envelopes.create("Dining Out", 1)
        pattern = services.patterns.create("coffee", PatternKind.MERCHANT, category.id)
        services.patterns.record_match(pattern.id, True)
        caplog.set_level("INFO", logger="sift")

        args = parse(
            patterns,
            ["patterns", "suggest", "--owner-id", "1", "--description", "Coffee Cart",
             "--amount", "3.50", "--date", "2025-01-15T09:30"],
        )
        args.func(args, services)

        assert "Dining Out: 100%" in caplog.text

    def test_suggest_rejects_bad_amount(self, services):
        args = parse(
            patterns,
            ["patterns", "suggest", "--owner-id", "1", "--description", "X", "--amount", "abc"],
        )

        with pytest.raises(SystemExit):
            args.func(args, services)

    def test_list_and_delete(self, services, caplog):
        category = services.categories.create("Dining", 1)
        pattern = services.patterns.create("coffee", PatternKind.MERCHANT, category.id)
        caplog.set_level("INFO", logger="sift")

        args = parse(patterns, ["patterns", "list", "--owner-id", "1", "--kind", "MERCHANT"])
        args.func(args, services)
        assert "coffee" in caplog.text

        args = parse(patterns, ["patterns", "delete", str(pattern.id)])
        args.func(args, services)
        assert services.patterns.find(pattern.id) is None

        with pytest.raises(SystemExit):
            args.func(args, services)


class TestInsightCommands:
    """Tests for insights analyze."""

    def test_budget_context_maps_categories_to_envelopes(self, services):
        dining = services.categories.create("Dining", 1)
        travel = services.categories.create("Travel", 1)
        services.envelopes.create("Dining Out", 1, Decimal("200"))

        budgets, names = insights.load_budget_context(services, 1)

        assert budgets == {dining.id: Decimal("200")}
        assert names == {dining.id: "Dining", travel.id: "Travel"}

    def test_analyze(self, services, caplog):
        services.transactions.bulk_create(
            [
                make_transaction("CAFE", amount, when=datetime(2025, 1, 6 + 7 * i), account_id=3)
                for i, amount in enumerate(["10", "10", "10", "100"])
            ]
        )
        caplog.set_level("INFO", logger="sift")

        args = parse(
            insights,
            ["insights", "analyze", "--owner-id", "1", "--account-id", "3",
             "--as-of", "2025-02-01"],
        )
        args.func(args, services)

        assert "Account 3" in caplog.text
        assert "Unusual amount at CAFE" in caplog.text

    def test_analyze_rejects_bad_date(self, services):
        args = parse(
            insights,
            ["insights", "analyze", "--owner-id", "1", "--account-id", "3", "--as-of", "soon"],
        )

        with pytest.raises(SystemExit):
            args.func(args, services)
