"""Turns metrics and anomalies into typed, human-readable insights."""

from decimal import Decimal
from typing import Dict, List, Mapping, Optional
from config import InsightSettings
from models.analysis import (
    SEVERITY_MAX,
    AnomalyDetection,
    AnomalyType,
    EnvelopeMetrics,
    MerchantMetrics,
    SpendingInsight,
    SpendingInsightType,
)
from tools.templates.loader import MessageTemplates, get_templates


def _category_label(category_id: Optional[int], names: Mapping[int, str]) -> str:
    if category_id is None:
        return "Uncategorized"
    return names.get(category_id, f"Category {category_id}")


def recurring_payment_insights(
    merchant_metrics: Mapping[str, MerchantMetrics],
    settings: InsightSettings,
    templates: MessageTemplates,
) -> List[SpendingInsight]:
    """One RECURRING_PAYMENT per merchant charged at least monthly."""
    insights = []
    for metrics in merchant_metrics.values():
        if metrics.monthly_frequency < settings.recurring_min_frequency:
            continue
        insights.append(
            SpendingInsight(
                type=SpendingInsightType.RECURRING_PAYMENT,
                message=templates.render(
                    "recurring_payment",
                    merchant=metrics.merchant_name,
                    average_amount=metrics.average_amount,
                    days=metrics.average_days_between,
                    frequency=metrics.monthly_frequency,
                ),
                confidence=min(
                    1.0, metrics.monthly_frequency / settings.recurring_frequency_scale
                ),
            )
        )
    return insights


def envelope_insights(
    envelope_metrics: Mapping[Optional[int], EnvelopeMetrics],
    settings: InsightSettings,
    templates: MessageTemplates,
    category_names: Mapping[int, str],
) -> List[SpendingInsight]:
    """Budget suggestions and trend predictions per category.

    - utilization above budget_utilization_threshold: raise the budget,
      confidence = utilization (capped at 1.0).
    - utilization below budget_underuse_threshold over at least
      budget_underuse_min_months months: lower the budget.
    - trend above trend_up_threshold: PREDICTED_EXPENSE.
    - trend below trend_down_threshold: SEASONAL_PATTERN.
    """
    insights = []
    for category_id, metrics in envelope_metrics.items():
        label = _category_label(category_id, category_names)
        average = metrics.average_monthly_spend
        utilization = metrics.budget_utilization

        if utilization > settings.budget_utilization_threshold:
            insights.append(
                SpendingInsight(
                    type=SpendingInsightType.BUDGET_SUGGESTION,
                    message=templates.render(
                        "budget_over",
                        category=label,
                        average=average,
                        utilization=utilization,
                    ),
                    confidence=min(1.0, utilization),
                )
            )
        elif (
            0 < utilization < settings.budget_underuse_threshold
            and len(metrics.monthly_spending) >= settings.budget_underuse_min_months
        ):
            insights.append(
                SpendingInsight(
                    type=SpendingInsightType.BUDGET_SUGGESTION,
                    message=templates.render(
                        "budget_under",
                        category=label,
                        average=average,
                        utilization=utilization,
                    ),
                    confidence=settings.budget_underuse_confidence,
                )
            )

        trend = metrics.spending_trend
        if trend > settings.trend_up_threshold:
            insight_type, key = SpendingInsightType.PREDICTED_EXPENSE, "predicted_expense"
        elif trend < settings.trend_down_threshold:
            insight_type, key = SpendingInsightType.SEASONAL_PATTERN, "seasonal_pattern"
        else:
            continue

        predicted = max(average * (1 + Decimal(str(trend))), Decimal("0"))
        insights.append(
            SpendingInsight(
                type=insight_type,
                message=templates.render(
                    key, category=label, trend=abs(trend), predicted=predicted
                ),
                confidence=settings.trend_confidence,
            )
        )

    return insights


def anomaly_insights(
    anomalies: List[AnomalyDetection], templates: MessageTemplates
) -> List[SpendingInsight]:
    """AMOUNT anomalies become UNUSUAL_SPENDING, FREQUENCY anomalies become
    RECURRING_PAYMENT. Confidence is severity scaled to [0, 1]."""
    insights = []
    for anomaly in anomalies:
        if anomaly.type == AnomalyType.AMOUNT:
            insight_type, key = SpendingInsightType.UNUSUAL_SPENDING, "unusual_spending"
        else:
            insight_type, key = (
                SpendingInsightType.RECURRING_PAYMENT,
                "recurring_irregularity",
            )
        insights.append(
            SpendingInsight(
                type=insight_type,
                message=templates.render(key, description=anomaly.description),
                confidence=min(1.0, max(0.0, anomaly.severity / SEVERITY_MAX)),
            )
        )
    return insights


def reallocation_insights(
    shared_merchants: Mapping[str, Mapping[int, Decimal]],
    settings: InsightSettings,
    templates: Optional[MessageTemplates] = None,
) -> List[SpendingInsight]:
    """One REALLOCATION_SUGGESTION per merchant paid from several accounts.

    Args:
        shared_merchants: merchant -> {account_id: total spent there}.
    """
    templates = templates or get_templates()
    insights = []
    for merchant, totals in sorted(shared_merchants.items()):
        accounts = ", ".join(
            f"account {account_id} (${total:.2f})"
            for account_id, total in sorted(totals.items())
        )
        insights.append(
            SpendingInsight(
                type=SpendingInsightType.REALLOCATION_SUGGESTION,
                message=templates.render(
                    "reallocation", merchant=merchant, accounts=accounts
                ),
                confidence=settings.reallocation_confidence,
            )
        )
    return insights


def synthesize_insights(
    merchant_metrics: Mapping[str, MerchantMetrics],
    envelope_metrics: Mapping[Optional[int], EnvelopeMetrics],
    anomalies: List[AnomalyDetection],
    settings: Optional[InsightSettings] = None,
    *,
    category_names: Optional[Mapping[int, str]] = None,
    templates: Optional[MessageTemplates] = None,
) -> List[SpendingInsight]:
    """Build every insight for one account's analysis.

    Args:
        merchant_metrics: Output of analyze_merchants().
        envelope_metrics: Output of analyze_envelopes().
        anomalies: Output of detect_anomalies().
        settings: Thresholds; defaults apply when None.
        category_names: Display names per category_id.
        templates: Message templates; the bundled insights.yaml by default.

    Returns:
        List of SpendingInsight, highest confidence first.
    """
    settings = settings or InsightSettings()
    templates = templates or get_templates()
    names: Dict[int, str] = dict(category_names or {})

    insights = (
        recurring_payment_insights(merchant_metrics, settings, templates)
        + envelope_insights(envelope_metrics, settings, templates, names)
        + anomaly_insights(anomalies, templates)
    )
    return sorted(insights, key=lambda insight: -insight.confidence)
