"""Tests for anomaly detection."""

from datetime import date, datetime, timedelta

import pytest

from config import AnalyticsSettings
from models.analysis import SEVERITY_MAX, AnomalyType
from models.transaction import INCOME
from tests.helpers import make_transaction
from tools.anomalies import detect_anomalies

START = datetime(2025, 1, 1)


def charges(description, day_offsets, amount="15.99", **kwargs):
    return [
        make_transaction(description, amount, when=START + timedelta(days=offset), **kwargs)
        for offset in day_offsets
    ]


class TestAmountAnomalies:
    """Tests for AMOUNT anomalies."""

    def test_outlier_is_flagged_with_capped_severity(self):
        txns = [
            make_transaction("CAFE", amount, when=START + timedelta(days=7 * i))
            for i, amount in enumerate(["10", "10", "10", "10", "100"])
        ]

        anomalies = detect_anomalies(txns)

        assert len(anomalies) == 1
        assert anomalies[0].type == AnomalyType.AMOUNT
        assert anomalies[0].transaction_id == txns[-1].id
        assert anomalies[0].severity == SEVERITY_MAX
        assert "higher" in anomalies[0].description

    def test_unusually_low_amount(self):
        txns = [
            make_transaction("GYM", amount, when=START + timedelta(days=7 * i))
            for i, amount in enumerate(["50", "52", "49", "51", "5"])
        ]

        anomalies = detect_anomalies(txns)

        assert [a.transaction_id for a in anomalies] == [txns[-1].id]
        assert "lower" in anomalies[0].description

    def test_ordinary_variation_is_not_flagged(self):
        txns = [
            make_transaction("GROCER", amount, when=START + timedelta(days=7 * i))
            for i, amount in enumerate(["70", "72", "80", "85", "88", "90", "70", "90"])
        ]

        assert detect_anomalies(txns) == []

    def test_small_price_jitter_is_not_flagged(self):
        """Test a minimal history is judged against all of its amounts."""
        txns = [
            make_transaction("CAFE", amount, when=START + timedelta(days=7 * i))
            for i, amount in enumerate(["10", "12", "11"])
        ]

        assert detect_anomalies(txns) == []

    def test_short_history_is_skipped(self):
        txns = [
            make_transaction("CAFE", "10", when=START),
            make_transaction("CAFE", "500", when=START + timedelta(days=7)),
        ]

        assert detect_anomalies(txns) == []

    def test_income_is_ignored(self):
        txns = [
            make_transaction("PAYROLL", amount, when=START + timedelta(days=14 * i), type=INCOME)
            for i, amount in enumerate(["2000", "2000", "2000", "9000"])
        ]

        assert detect_anomalies(txns) == []

    def test_sigma_threshold_is_configurable(self):
        txns = [
            make_transaction("GROCER", amount, when=START + timedelta(days=7 * i))
            for i, amount in enumerate(["70", "72", "80", "85", "88", "90", "70", "90"])
        ]

        anomalies = detect_anomalies(txns, AnalyticsSettings(anomaly_sigma=1.0))

        assert anomalies
        assert all(a.type == AnomalyType.AMOUNT for a in anomalies)


class TestFrequencyAnomalies:
    """Tests for FREQUENCY anomalies."""

    def test_late_charge(self):
        """Test a skipped month on a monthly subscription."""
        txns = charges("STREAMING", [0, 30, 60, 90, 150])

        anomalies = detect_anomalies(txns)

        assert len(anomalies) == 1
        assert anomalies[0].type == AnomalyType.FREQUENCY
        assert anomalies[0].transaction_id == txns[-1].id
        assert anomalies[0].severity == pytest.approx(2.0)
        assert "later" in anomalies[0].description

    def test_early_charge(self):
        txns = charges("STREAMING", [0, 30, 60, 90, 100])

        anomalies = detect_anomalies(txns)

        assert len(anomalies) == 1
        assert anomalies[0].severity == pytest.approx(4 / 3)
        assert "earlier" in anomalies[0].description

    def test_irregular_history_is_not_judged(self):
        """Test merchants without a stable interval raise no FREQUENCY anomaly."""
        txns = charges("HARDWARE", [0, 5, 45, 57, 87, 200])

        assert detect_anomalies(txns) == []

    def test_on_time_charge(self):
        txns = charges("STREAMING", [0, 30, 61, 91, 120])

        assert detect_anomalies(txns) == []

    def test_overdue_charge_needs_as_of(self):
        txns = charges("INSURANCE", [0, 30, 60])

        assert detect_anomalies(txns) == []

        anomalies = detect_anomalies(txns, as_of=date(2025, 5, 1))

        assert len(anomalies) == 1
        assert anomalies[0].type == AnomalyType.FREQUENCY
        assert anomalies[0].transaction_id is None
        assert "No charge from INSURANCE" in anomalies[0].description
        # 60 days elapsed against a 30 day rhythm
        assert anomalies[0].severity == pytest.approx((60 - 30) / 30 / 0.5)

    def test_overdue_counts_calendar_days(self):
        """Test an afternoon charge is measured to the end of the as_of day."""
        txns = charges("INSURANCE", [0, 30]) + [
            make_transaction("INSURANCE", "15.99", when=datetime(2025, 3, 2, 14, 0))
        ]

        # 46 calendar days against a 30 day rhythm
        anomalies = detect_anomalies(txns, as_of=date(2025, 4, 17))

        assert len(anomalies) == 1
        assert "46 days" in anomalies[0].description

    def test_not_yet_overdue(self):
        txns = charges("INSURANCE", [0, 30, 60])

        assert detect_anomalies(txns, as_of=date(2025, 3, 25)) == []


def test_anomalies_sorted_by_severity():
    txns = charges("STREAMING", [0, 30, 60, 90, 150]) + [
        make_transaction("CAFE", amount, when=START + timedelta(days=7 * i))
        for i, amount in enumerate(["10", "10", "10", "10", "100"])
    ]

    anomalies = detect_anomalies(txns)

    assert [a.merchant_name for a in anomalies] == ["CAFE", "STREAMING"]
    assert anomalies[0].severity >= anomalies[1].severity
