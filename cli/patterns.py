#!/usr/bin/env python3

import sys
import uuid
from datetime import datetime
from decimal import Decimal, InvalidOperation
from errors import ValidationError
from models.pattern import PatternKind
from models.transaction import EXPENSE, TRANSACTION_TYPES, Transaction
from logger import get_logger

logger = get_logger()


def cmd_list(args, services):
    """List an owner's learned patterns."""
    if args.kind:
        patterns = services.patterns.find_by_kind(args.owner_id, PatternKind(args.kind))
    else:
        patterns = services.patterns.find_by_owner(args.owner_id)

    if not patterns:
        logger.info("No patterns found.")
        return

    category_map = {c.id: c.name for c in services.categories.find_by_owner(args.owner_id)}

    logger.info("\nPatterns:")
    logger.info("=" * 80)
    for pattern in patterns:
        logger.info(
            f"{pattern.id:>5}  {pattern.kind.value:<9} {pattern.pattern_value:<30} "
            f"-> {category_map.get(pattern.category_id, pattern.category_id)} "
            f"({pattern.correct_count}/{pattern.match_count}, "
            f"confidence {pattern.confidence:.2f})"
        )

    logger.info(f"\nTotal patterns: {len(patterns)}")


def cmd_delete(args, services):
    """Delete a pattern by ID."""
    pattern = services.patterns.find(args.pattern_id)
    if not pattern:
        logger.error(f"Pattern with ID {args.pattern_id} not found.")
        sys.exit(1)

    if services.patterns.delete(pattern.id):
        logger.info(
            f"✓ {pattern.kind.value} pattern '{pattern.pattern_value}' deleted successfully."
        )
    else:
        logger.error("Failed to delete pattern.")
        sys.exit(1)


def cmd_suggest(args, services):
    """Suggest envelopes for a transaction given on the command line."""
    try:
        amount = Decimal(args.amount)
        when = datetime.fromisoformat(args.date) if args.date else datetime.now()
    except (InvalidOperation, ValueError) as e:
        logger.error(f"Invalid amount or date: {e}")
        sys.exit(1)

    transaction = Transaction(
        id=str(uuid.uuid4()),
        account_id=0,
        transaction_date=when,
        description=args.description,
        amount=amount,
        type=args.type,
    )

    try:
        suggestions = services.classifier.suggest_envelopes(transaction, args.owner_id)
    except ValidationError as e:
        logger.error(str(e))
        sys.exit(1)

    if not suggestions:
        logger.info("No confident suggestion.")
        return

    envelope_map = {e.id: e.name for e in services.envelopes.find_by_owner(args.owner_id)}
    logger.info(f"\nSuggestions for '{transaction.description}':")
    for envelope_id, score in suggestions.items():
        logger.info(f"  {envelope_map.get(envelope_id, envelope_id)}: {score:.0%}")


def setup_parser(subparsers):
    """Setup patterns subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "patterns",
        help="Inspect learned patterns",
        description="List and delete learned patterns, and try envelope suggestions",
    )

    patterns_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available pattern commands",
        dest="subcommand",
        required=True,
    )

    # patterns list
    list_parser = patterns_subparsers.add_parser("list", help="List an owner's patterns")
    list_parser.add_argument("--owner-id", type=int, required=True, help="Owning user ID")
    list_parser.add_argument(
        "--kind",
        choices=[kind.value for kind in PatternKind],
        help="Only list patterns of this kind",
    )
    list_parser.set_defaults(func=cmd_list)

    # patterns delete
    delete_parser = patterns_subparsers.add_parser("delete", help="Delete a pattern by ID")
    delete_parser.add_argument("pattern_id", type=int, help="ID of the pattern to delete")
    delete_parser.set_defaults(func=cmd_delete)

    # patterns suggest
    suggest_parser = patterns_subparsers.add_parser(
        "suggest", help="Suggest envelopes for a transaction"
    )
    suggest_parser.add_argument("--owner-id", type=int, required=True, help="Owning user ID")
    suggest_parser.add_argument("--description", required=True, help="Transaction description")
    suggest_parser.add_argument("--amount", required=True, help="Amount, e.g. 12.50")
    suggest_parser.add_argument(
        "--date", help="ISO date or datetime, e.g. 2025-01-15T09:30 (default: now)"
    )
    suggest_parser.add_argument(
        "--type", choices=TRANSACTION_TYPES, default=EXPENSE, help="Transaction type"
    )
    suggest_parser.set_defaults(func=cmd_suggest)
