"""Anomaly detection on a merchant's amount and recurrence history.

Two kinds of anomaly are reported, both per merchant (exact description) and
only for expenses:

- AMOUNT: a transaction whose amount is more than settings.anomaly_sigma
  standard deviations away from the merchant's usual amount. When the rest
  of the history holds at least settings.anomaly_min_history transactions,
  each one is compared to the mean and population standard deviation of
  the others (leave-one-out). Shorter histories are compared to the whole
  history, the transaction included.
- FREQUENCY: for merchants with a stable interval between charges, a latest
  charge that came much earlier or later than usual, or (given as_of) a
  charge that is overdue.

Severity is measured in [0, SEVERITY_MAX].
"""

import math
from datetime import date
from statistics import fmean, pstdev
from typing import Dict, List, Optional
from config import AnalyticsSettings
from models.analysis import SEVERITY_MAX, AnomalyDetection, AnomalyType
from models.transaction import Transaction
from tools.timeline import as_datetime, day_gaps, end_of_day
from logger import get_logger

logger = get_logger()

# Floor for the baseline standard deviation, as a fraction of the baseline
# mean. Keeps a merchant that always charged exactly 10.00 from flagging
# 10.01 as an infinite deviation.
MIN_RELATIVE_STDDEV = 0.01


def _z_score(value: float, baseline: List[float]) -> float:
    mean = fmean(baseline)
    deviation = abs(value - mean)
    stddev = max(pstdev(baseline), abs(mean) * MIN_RELATIVE_STDDEV)
    if stddev == 0:
        return math.inf if deviation > 0 else 0.0
    return deviation / stddev


def _amount_anomalies(
    merchant: str, transactions: List[Transaction], settings: AnalyticsSettings
) -> List[AnomalyDetection]:
    amounts = [float(t.amount) for t in transactions]
    leave_one_out = len(amounts) - 1 >= settings.anomaly_min_history
    anomalies = []

    for index, t in enumerate(transactions):
        if leave_one_out:
            baseline = amounts[:index] + amounts[index + 1 :]
        else:
            baseline = amounts
        z = _z_score(amounts[index], baseline)
        if z <= settings.anomaly_sigma:
            continue

        typical = fmean(baseline)
        direction = "higher" if amounts[index] > typical else "lower"
        anomalies.append(
            AnomalyDetection(
                type=AnomalyType.AMOUNT,
                description=(
                    f"Unusual amount at {merchant}: ${t.amount:.2f} on "
                    f"{t.transaction_date:%Y-%m-%d} is {direction} than the usual "
                    f"${typical:.2f}"
                ),
                severity=min(z, SEVERITY_MAX),
                merchant_name=merchant,
                transaction_id=t.id,
            )
        )

    return anomalies


def _frequency_severity(observed: float, expected: float, tolerance: float) -> float:
    """Relative deviation in units of the tolerance, capped at SEVERITY_MAX."""
    return min(abs(observed - expected) / expected / tolerance, SEVERITY_MAX)


def _frequency_anomalies(
    merchant: str,
    transactions: List[Transaction],
    settings: AnalyticsSettings,
    as_of: Optional[date],
) -> List[AnomalyDetection]:
    ordered = sorted(transactions, key=lambda t: as_datetime(t.transaction_date))
    gaps = day_gaps(ordered)
    tolerance = settings.frequency_tolerance
    anomalies = []

    # Latest gap against the gaps before it.
    history = gaps[:-1]
    if len(history) >= 2:
        usual = fmean(history)
        if usual > 0 and pstdev(history) <= settings.frequency_stability_days:
            latest = gaps[-1]
            if abs(latest - usual) > tolerance * usual:
                timing = "earlier" if latest < usual else "later"
                last = ordered[-1]
                anomalies.append(
                    AnomalyDetection(
                        type=AnomalyType.FREQUENCY,
                        description=(
                            f"{merchant} charged {latest} days after the previous "
                            f"payment on {last.transaction_date:%Y-%m-%d}, {timing} "
                            f"than the usual {usual:.1f} days"
                        ),
                        severity=_frequency_severity(latest, usual, tolerance),
                        merchant_name=merchant,
                        transaction_id=last.id,
                    )
                )

    # Time since the last charge against the whole history.
    if as_of is not None and len(gaps) >= 2:
        usual = fmean(gaps)
        if usual > 0 and pstdev(gaps) <= settings.frequency_stability_days:
            elapsed = (end_of_day(as_of) - as_datetime(ordered[-1].transaction_date)).days
            if elapsed > usual * (1 + tolerance):
                anomalies.append(
                    AnomalyDetection(
                        type=AnomalyType.FREQUENCY,
                        description=(
                            f"No charge from {merchant} for {elapsed} days, "
                            f"usually every {usual:.1f} days"
                        ),
                        severity=_frequency_severity(elapsed, usual, tolerance),
                        merchant_name=merchant,
                    )
                )

    return anomalies


def detect_anomalies(
    transactions: List[Transaction],
    settings: Optional[AnalyticsSettings] = None,
    as_of: Optional[date] = None,
) -> List[AnomalyDetection]:
    """Find unusual amounts and recurrence gaps in one account's history.

    Merchants with fewer than settings.anomaly_min_history expenses are
    skipped.

    Args:
        transactions: The account's transactions.
        settings: Thresholds; defaults apply when None.
        as_of: Reference date for the overdue-charge check. Skipped when None.

    Returns:
        List of AnomalyDetection records, most severe first.
    """
    settings = settings or AnalyticsSettings()

    by_merchant: Dict[str, List[Transaction]] = {}
    for t in transactions:
        if t.is_expense:
            by_merchant.setdefault(t.description, []).append(t)

    anomalies: List[AnomalyDetection] = []
    for merchant, merchant_txns in sorted(by_merchant.items()):
        if len(merchant_txns) < settings.anomaly_min_history:
            continue
        anomalies.extend(_amount_anomalies(merchant, merchant_txns, settings))
        anomalies.extend(_frequency_anomalies(merchant, merchant_txns, settings, as_of))

    logger.debug(f"Detected {len(anomalies)} anomalies in {len(by_merchant)} merchants")
    return sorted(anomalies, key=lambda a: (-a.severity, a.description))
