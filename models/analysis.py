"""Value objects produced by account analysis.

None of these are persisted; they are rebuilt on every analysis call.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

# Upper bound of AnomalyDetection.severity (in standard deviations).
SEVERITY_MAX = 5.0


@dataclass
class MerchantMetrics:
    """Spending statistics for one merchant (exact description string)."""

    merchant_name: str
    total_spent: Decimal
    transaction_count: int
    average_amount: Decimal
    average_days_between: float  # 0.0 when fewer than two transactions
    monthly_frequency: float  # 0.0 when average_days_between is 0
    category_usage: Dict[Optional[int], int] = field(default_factory=dict)


@dataclass
class EnvelopeMetrics:
    """Spending statistics for one category within an account."""

    category_id: Optional[int]
    total_spent: Decimal
    monthly_spending: Dict[str, Decimal]  # "YYYY/MM" -> total, chronological
    spending_trend: float  # normalized slope, positive = increasing
    budget_utilization: float  # average monthly spend / budget, 0.0 if unbudgeted

    @property
    def average_monthly_spend(self) -> Decimal:
        if not self.monthly_spending:
            return Decimal("0")
        return sum(self.monthly_spending.values(), Decimal("0")) / len(
            self.monthly_spending
        )


class AnomalyType(str, Enum):
    AMOUNT = "AMOUNT"
    FREQUENCY = "FREQUENCY"


@dataclass
class AnomalyDetection:
    """A transaction amount or recurrence gap that broke a merchant's pattern.

    severity is in [0, SEVERITY_MAX].
    """

    type: AnomalyType
    description: str
    severity: float
    merchant_name: str
    transaction_id: Optional[str] = None


class SpendingInsightType(str, Enum):
    RECURRING_PAYMENT = "RECURRING_PAYMENT"
    UNUSUAL_SPENDING = "UNUSUAL_SPENDING"
    PREDICTED_EXPENSE = "PREDICTED_EXPENSE"
    BUDGET_SUGGESTION = "BUDGET_SUGGESTION"
    SEASONAL_PATTERN = "SEASONAL_PATTERN"
    REALLOCATION_SUGGESTION = "REALLOCATION_SUGGESTION"


@dataclass
class SpendingInsight:
    """Human-readable finding with a confidence in [0, 1]."""

    type: SpendingInsightType
    message: str
    confidence: float


@dataclass
class CrossAccountMetrics:
    """How an account's merchants overlap with the owner's other accounts."""

    shared_merchants: List[str]
    account_similarities: Dict[int, float]  # other account_id -> Jaccard index


@dataclass
class AccountAnalysis:
    """Everything analyze_account() reports for one account."""

    account_id: int
    merchant_metrics: Dict[str, MerchantMetrics]
    envelope_metrics: Dict[Optional[int], EnvelopeMetrics]
    average_monthly_volume: Decimal
    volume_trend: float
    top_merchants: List[str]
    day_of_week_spending: Dict[str, Decimal]
    anomalies: List[AnomalyDetection]
    insights: List[SpendingInsight]
    cross_account: Optional[CrossAccountMetrics] = None
