#!/usr/bin/env python3
"""
Sift CLI - learned envelope suggestions and spending analysis.

Usage:
    python -m cli <command> <subcommand> [options]

Commands:
    patterns     Inspect learned patterns and try suggestions
    insights     Analyze account spending
    migrate      Database migrations

Examples:
    python -m cli patterns list --owner-id 1
    python -m cli patterns suggest --owner-id 1 --description "COFFEE SHOP #4" --amount 5.25
    python -m cli insights analyze --owner-id 1 --account-id 3 --account-id 4
    python -m cli migrate status
    python -m cli migrate apply
"""

import sys
import argparse
from cli import insights, migrate, patterns
from config import load_config
from services.base import Services
from db.manager import DatabaseManager
from logger import setup_logging


def main():
    """Main CLI entry point with subcommands."""
    parser = argparse.ArgumentParser(
        prog="cli",
        description="Sift - learned envelope suggestions and spending insights",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    # Register each command's subparser
    patterns.setup_parser(subparsers)
    insights.setup_parser(subparsers)
    migrate.setup_parser(subparsers)

    args = parser.parse_args()

    if hasattr(args, "func"):
        try:
            config = load_config()
            setup_logging(config)

            # Migrate commands need db_manager for raw database operations
            if args.command == "migrate":
                args.func(args, DatabaseManager(config))
            else:
                args.func(args, Services(config))
        except Exception as e:
            print(f"Error: {e}")
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
