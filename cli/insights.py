#!/usr/bin/env python3

import sys
from datetime import date
from decimal import Decimal
from typing import Dict, Tuple
from dateutil.relativedelta import relativedelta
from errors import ValidationError
from matching import match_envelope
from tools.analytics import analyze_accounts
from logger import get_logger

logger = get_logger()


def load_budget_context(services, owner_id: int) -> Tuple[Dict[int, Decimal], Dict[int, str]]:
    """Build monthly budgets and display names per category for an owner.

    A category's budget is the monthly_budget of the envelope its name maps
    to (see matching.match_envelope).
    """
    envelopes = services.envelopes.find_by_owner(owner_id)
    budgets: Dict[int, Decimal] = {}
    names: Dict[int, str] = {}

    for category in services.categories.find_by_owner(owner_id):
        names[category.id] = category.name
        envelope = match_envelope(category, envelopes)
        if envelope is not None and envelope.monthly_budget > 0:
            budgets[category.id] = envelope.monthly_budget

    return budgets, names


def cmd_analyze(args, services):
    """Analyze one or more accounts and print metrics, anomalies and insights."""
    as_of = None
    if args.as_of:
        try:
            as_of = date.fromisoformat(args.as_of)
        except ValueError as e:
            logger.error(f"Invalid --as-of date: {e}")
            sys.exit(1)

    settings = services.config.analytics
    since = None
    if as_of is not None and settings.window_months > 0:
        since = as_of - relativedelta(months=settings.window_months)

    transactions_by_account = {
        account_id: services.transactions.find_by_account(account_id, since=since)
        for account_id in args.account_id
    }
    budgets, names = load_budget_context(services, args.owner_id)

    try:
        analyses = analyze_accounts(
            transactions_by_account,
            settings,
            services.config.insights,
            budgets=budgets,
            category_names=names,
            as_of=as_of,
        )
    except ValidationError as e:
        logger.error(f"Cannot analyze: {e}")
        sys.exit(1)

    for account_id, analysis in analyses.items():
        logger.info(f"\nAccount {account_id}")
        logger.info("=" * 80)
        logger.info(f"Average monthly spending: ${analysis.average_monthly_volume:.2f}")
        logger.info(f"Spending trend: {analysis.volume_trend:+.1%} per month")

        logger.info("\nTop merchants:")
        for merchant in analysis.top_merchants:
            m = analysis.merchant_metrics[merchant]
            logger.info(
                f"  {merchant:<30} ${m.total_spent:>10.2f}  "
                f"{m.transaction_count} txns, {m.monthly_frequency:.1f}/month"
            )

        logger.info("\nAnomalies:")
        if not analysis.anomalies:
            logger.info("  None")
        for anomaly in analysis.anomalies:
            logger.info(f"  [{anomaly.type.value} {anomaly.severity:.1f}] {anomaly.description}")

        logger.info("\nInsights:")
        if not analysis.insights:
            logger.info("  None")
        for insight in analysis.insights:
            logger.info(f"  [{insight.type.value} {insight.confidence:.0%}] {insight.message}")

        if analysis.cross_account and analysis.cross_account.shared_merchants:
            logger.info(
                f"\nShared with other accounts: "
                f"{', '.join(analysis.cross_account.shared_merchants)}"
            )


def setup_parser(subparsers):
    """Setup insights subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "insights",
        help="Analyze spending",
        description="Merchant metrics, anomalies and insights per account",
    )

    insights_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available insight commands",
        dest="subcommand",
        required=True,
    )

    # insights analyze
    analyze_parser = insights_subparsers.add_parser(
        "analyze", help="Analyze one or more accounts of a user"
    )
    analyze_parser.add_argument(
        "--account-id",
        type=int,
        action="append",
        required=True,
        help="Account to analyze (repeat for cross-account analysis)",
    )
    analyze_parser.add_argument("--owner-id", type=int, required=True, help="Owning user ID")
    analyze_parser.add_argument(
        "--as-of", help="End of the analysis window, YYYY-MM-DD (default: latest transaction)"
    )
    analyze_parser.set_defaults(func=cmd_analyze)
