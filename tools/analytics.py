"""Account analysis tools.

Everything here is a pure function of the transactions passed in: no
database access, no clock. Amounts stay Decimal; statistics that are ratios
(trends, frequencies, utilization) are floats.
"""

import calendar
from datetime import date
from decimal import Decimal
from typing import Dict, List, Mapping, Optional
import yaml
from dateutil.relativedelta import relativedelta
from config import AnalyticsSettings, InsightSettings
from errors import ValidationError
from models.analysis import (
    AccountAnalysis,
    CrossAccountMetrics,
    EnvelopeMetrics,
    MerchantMetrics,
)
from models.transaction import Transaction, validate_transaction
from tools.anomalies import detect_anomalies
from tools.timeline import (
    as_datetime,
    average_days_between,
    calculate_trend,
    end_of_day,
    monthly_totals,
)
from tools.insights import reallocation_insights, synthesize_insights
from logger import get_logger

logger = get_logger()

# Average month length used to turn a day gap into a monthly frequency.
DAYS_PER_MONTH = 30.4


def analyze_merchants(transactions: List[Transaction]) -> Dict[str, MerchantMetrics]:
    """Compute spending statistics per merchant.

    Merchants are grouped by exact description. Only expenses are counted.

    Returns:
        Dictionary of merchant name to MerchantMetrics, ordered by total
        spent (largest first).
    """
    by_merchant: Dict[str, List[Transaction]] = {}
    for t in transactions:
        if t.is_expense:
            by_merchant.setdefault(t.description, []).append(t)

    metrics: Dict[str, MerchantMetrics] = {}
    for merchant, merchant_txns in by_merchant.items():
        total = sum((t.amount for t in merchant_txns), Decimal("0"))
        count = len(merchant_txns)
        avg_days = average_days_between(merchant_txns)

        usage: Dict[Optional[int], int] = {}
        for t in merchant_txns:
            usage[t.category_id] = usage.get(t.category_id, 0) + 1

        metrics[merchant] = MerchantMetrics(
            merchant_name=merchant,
            total_spent=total,
            transaction_count=count,
            average_amount=round(total / count, 2),
            average_days_between=avg_days,
            monthly_frequency=DAYS_PER_MONTH / avg_days if avg_days > 0 else 0.0,
            category_usage=usage,
        )

    return dict(
        sorted(metrics.items(), key=lambda item: (-item[1].total_spent, item[0]))
    )


def analyze_envelopes(
    transactions: List[Transaction],
    budgets: Optional[Mapping[int, Decimal]] = None,
) -> Dict[Optional[int], EnvelopeMetrics]:
    """Compute spending, trend and budget use per category.

    Args:
        transactions: Account transactions; only expenses are counted.
        budgets: Monthly budget per category_id. Categories without a budget
                 (or with a zero budget) report a utilization of 0.0.

    Returns:
        Dictionary of category_id (None for uncategorized) to EnvelopeMetrics.
    """
    budgets = budgets or {}

    by_category: Dict[Optional[int], List[Transaction]] = {}
    for t in transactions:
        if t.is_expense:
            by_category.setdefault(t.category_id, []).append(t)

    metrics: Dict[Optional[int], EnvelopeMetrics] = {}
    for category_id, category_txns in by_category.items():
        monthly = monthly_totals(category_txns)
        total = sum(monthly.values(), Decimal("0"))
        average = total / len(monthly)

        budget = budgets.get(category_id) if category_id is not None else None
        utilization = float(average / Decimal(str(budget))) if budget else 0.0

        metrics[category_id] = EnvelopeMetrics(
            category_id=category_id,
            total_spent=total,
            monthly_spending=monthly,
            spending_trend=calculate_trend([float(v) for v in monthly.values()]),
            budget_utilization=utilization,
        )

    return metrics


def day_of_week_spending(transactions: List[Transaction]) -> Dict[str, Decimal]:
    """Average expense amount per weekday, Monday first.

    Weekdays without any expense are left out.
    """
    by_weekday: Dict[int, List[Decimal]] = {}
    for t in transactions:
        if t.is_expense:
            by_weekday.setdefault(t.transaction_date.weekday(), []).append(t.amount)

    return {
        calendar.day_name[weekday]: round(sum(amounts) / len(amounts), 2)
        for weekday, amounts in sorted(by_weekday.items())
    }


def _window(
    transactions: List[Transaction],
    window_months: int,
    as_of: Optional[date],
) -> List[Transaction]:
    """Keep the transactions in the window_months before as_of.

    A plain as_of date includes the whole of that day.
    """
    if not transactions:
        return []

    end = (
        end_of_day(as_of)
        if as_of is not None
        else max(as_datetime(t.transaction_date) for t in transactions)
    )
    in_range = [t for t in transactions if as_datetime(t.transaction_date) <= end]

    if window_months <= 0:
        return in_range

    start = end - relativedelta(months=window_months)
    return [t for t in in_range if as_datetime(t.transaction_date) > start]


def analyze_account(
    account_id: int,
    transactions: List[Transaction],
    settings: Optional[AnalyticsSettings] = None,
    insight_settings: Optional[InsightSettings] = None,
    *,
    budgets: Optional[Mapping[int, Decimal]] = None,
    category_names: Optional[Mapping[int, str]] = None,
    as_of: Optional[date] = None,
) -> AccountAnalysis:
    """Analyze one account's transaction history.

    Only transactions in the settings.window_months before as_of are used.
    Without as_of the newest transaction marks the end of the window, and no
    overdue-charge check is done.

    Args:
        account_id: Account being analyzed.
        transactions: The account's transactions, in any order.
        settings: Analytics tuning; defaults apply when None.
        insight_settings: Insight thresholds; defaults apply when None.
        budgets: Monthly budget per category_id, for budget utilization.
        category_names: Display names per category_id, for insight messages.
        as_of: End of the analysis window.

    Returns:
        AccountAnalysis with metrics, anomalies and insights.

    Raises:
        ValidationError: If a transaction is malformed or belongs to
                         another account.
    """
    settings = settings or AnalyticsSettings()
    insight_settings = insight_settings or InsightSettings()

    for t in transactions:
        validate_transaction(t)
        if t.account_id != account_id:
            raise ValidationError(
                f"Transaction {t.id} belongs to account {t.account_id}, "
                f"not {account_id}"
            )

    recent = _window(transactions, settings.window_months, as_of)
    expenses = [t for t in recent if t.is_expense]
    logger.info(
        f"Analyzing account {account_id}: {len(recent)} of {len(transactions)} "
        f"transactions in window"
    )

    merchant_metrics = analyze_merchants(recent)
    envelope_metrics = analyze_envelopes(recent, budgets)
    monthly_volume = monthly_totals(expenses)
    average_volume = (
        round(sum(monthly_volume.values(), Decimal("0")) / len(monthly_volume), 2)
        if monthly_volume
        else Decimal("0")
    )
    anomalies = detect_anomalies(recent, settings, as_of=as_of)

    try:
        insights = synthesize_insights(
            merchant_metrics,
            envelope_metrics,
            anomalies,
            insight_settings,
            category_names=category_names,
        )
    except (ArithmeticError, KeyError, ValueError, OSError, yaml.YAMLError) as e:
        logger.error(f"Insight generation failed for account {account_id}: {e}")
        insights = []

    return AccountAnalysis(
        account_id=account_id,
        merchant_metrics=merchant_metrics,
        envelope_metrics=envelope_metrics,
        average_monthly_volume=average_volume,
        volume_trend=calculate_trend([float(v) for v in monthly_volume.values()]),
        top_merchants=list(merchant_metrics)[: settings.top_merchants],
        day_of_week_spending=day_of_week_spending(recent),
        anomalies=anomalies,
        insights=insights,
    )


def jaccard_similarity(first, second) -> float:
    """Size of the intersection over size of the union, 0.0 if both are empty."""
    union = set(first) | set(second)
    if not union:
        return 0.0
    return len(set(first) & set(second)) / len(union)


def analyze_accounts(
    transactions_by_account: Mapping[int, List[Transaction]],
    settings: Optional[AnalyticsSettings] = None,
    insight_settings: Optional[InsightSettings] = None,
    *,
    budgets: Optional[Mapping[int, Decimal]] = None,
    category_names: Optional[Mapping[int, str]] = None,
    as_of: Optional[date] = None,
) -> Dict[int, AccountAnalysis]:
    """Analyze several accounts of one user and compare them.

    Each account is analyzed with analyze_account(). When there is more than
    one account, every analysis also gets CrossAccountMetrics, and each
    merchant used from several accounts adds a REALLOCATION_SUGGESTION to
    the analyses of the accounts involved.

    Returns:
        Dictionary of account_id to AccountAnalysis.
    """
    insight_settings = insight_settings or InsightSettings()

    analyses = {
        account_id: analyze_account(
            account_id,
            transactions,
            settings,
            insight_settings,
            budgets=budgets,
            category_names=category_names,
            as_of=as_of,
        )
        for account_id, transactions in transactions_by_account.items()
    }

    if len(analyses) < 2:
        return analyses

    merchant_accounts: Dict[str, Dict[int, Decimal]] = {}
    for account_id, analysis in analyses.items():
        for merchant, metrics in analysis.merchant_metrics.items():
            merchant_accounts.setdefault(merchant, {})[account_id] = metrics.total_spent

    shared = {
        merchant: totals
        for merchant, totals in merchant_accounts.items()
        if len(totals) > 1
    }

    for account_id, analysis in analyses.items():
        analysis.cross_account = CrossAccountMetrics(
            shared_merchants=sorted(m for m, totals in shared.items() if account_id in totals),
            account_similarities={
                other_id: jaccard_similarity(
                    analysis.merchant_metrics, other.merchant_metrics
                )
                for other_id, other in analyses.items()
                if other_id != account_id
            },
        )

        involved = {m: totals for m, totals in shared.items() if account_id in totals}
        analysis.insights.extend(reallocation_insights(involved, insight_settings))
        analysis.insights.sort(key=lambda insight: -insight.confidence)

    logger.info(
        f"Cross-account analysis: {len(shared)} merchant(s) shared between "
        f"{len(analyses)} accounts"
    )
    return analyses
