"""
Income consistency between the summary and the breakdown

Session, bonus and late-fee rows must add up to the summary's final income
plus its backfill adjustment (the backfill has no visible row). These tests
catch the two views diverging, e.g. a personal-client boost applied to one
and not the other.
"""

import pytest
from decimal import Decimal

from builders import d, make_client, make_input, make_late_fee, make_package, make_session
from ledger.calculators.allocation import PackageAllocator
from ledger.models import SEMI_PRIVATE, ClientPriceHistory, IncomeRate
from ledger.processor import WeeklyDashboardProcessor

INCOME_ROW_TYPES = {"session", "bonus", "lateFee"}


def assert_consistent(input_data):
    processor = WeeklyDashboardProcessor()
    ctx = processor.build_context(input_data)
    summary = processor.income_summary_calculator.calculate(ctx)
    rows = processor.breakdown_calculator.calculate(ctx)

    rows_total = sum((r.amount for r in rows if r.type in INCOME_ROW_TYPES), Decimal("0"))
    assert rows_total == summary.final_weekly_income + summary.backfill_adjustment
    return summary, rows


class TestIncomeConsistency:

    def test_alice_drop_in(self):
        """Test a single drop-in week."""
        summary, rows = assert_consistent(make_input(
            "2025-01-06",
            clients=[make_client(1, "Alice")],
            sessions=[make_session(1, 1, "2025-01-07")],
        ))
        assert summary.final_weekly_income == Decimal("69.00")

    def test_personal_client(self):
        """Test a personal client's boosted week."""
        summary, _ = assert_consistent(make_input(
            "2025-01-06",
            clients=[make_client(1, "Alice", personal=True)],
            sessions=[make_session(1, 1, "2025-01-07")],
        ))
        assert summary.final_weekly_income == Decimal("84.00")

    def test_mixed_week(self):
        """Test a week mixing packages, drop-ins and unknown clients."""
        clients = [
            make_client(1, "Alice", personal=True),
            make_client(2, "Bob", tier=2, mode=SEMI_PRIVATE),
            make_client(3, "Cara", tier=3, secondary_trainer_id=2),
        ]
        packages = [
            make_package(10, 1, 12, "2024-12-01"),
            make_package(11, 2, 20, "2025-01-07", bonus=60),
            make_package(12, 3, 25, "2025-01-08", trainer_id=2, bonus=80),
        ]
        sessions = [make_session(i, 1, "2025-01-07", package_id=10) for i in range(1, 6)]
        sessions += [make_session(i, 2, "2025-01-08", package_id=11) for i in range(6, 12)]
        sessions += [make_session(i, 3, "2025-01-09") for i in range(12, 16)]
        sessions += [make_session(99, 77, "2025-01-10")]
        late_fees = [make_late_fee(1, 2, "2025-01-09", 30), make_late_fee(2, 77, "2025-01-10", 15)]

        summary, _ = assert_consistent(make_input(
            "2025-01-06",
            clients=clients,
            packages=packages,
            sessions=sessions,
            late_fees=late_fees,
        ))
        assert summary.total_classes_this_week == 16
        assert summary.rate == Decimal("0.51")

    def test_price_history_and_rate_versions(self):
        """Test price history with a dated rate version."""
        history = [
            ClientPriceHistory(
                client_id=1, effective_date=d("2025-01-08"),
                price_1_12=Decimal("175"), price_13_20=Decimal("165"), price_21_plus=Decimal("155"),
            ),
        ]
        rates = [
            IncomeRate(trainer_id=1, min_classes=1, max_classes=3, rate=Decimal("0.40"), effective_week=d("2025-01-06")),
            IncomeRate(trainer_id=1, min_classes=4, max_classes=None, rate=Decimal("0.55"), effective_week=d("2025-01-06")),
        ]
        sessions = [make_session(i, 1, f"2025-01-{6 + i:02d}") for i in range(0, 5)]

        assert_consistent(make_input(
            "2025-01-06",
            clients=[make_client(1, "Alice", personal=True)],
            sessions=sessions,
            rates=rates,
            price_history=history,
        ))

    def test_backfill_scenario_after_allocation(self):
        """A 14-session package bought this week absorbs an earlier drop-in."""
        packages = [make_package(10, 1, 14, "2025-01-15", bonus=50)]
        sessions = [
            make_session(1, 1, "2025-01-08"),
            make_session(2, 1, "2025-01-16"),
        ]
        allocated = PackageAllocator().allocate(packages, sessions, client_id=1, trainer_id=1)
        assert {s.id: s.package_id for s in allocated.sessions} == {1: 10, 2: 10}

        summary, rows = assert_consistent(make_input(
            "2025-01-13",
            clients=[make_client(1, "Alice")],
            packages=packages,
            sessions=allocated.sessions,
        ))
        assert summary.backfill_adjustment > 0
        assert summary.final_weekly_income == Decimal("109.80")

    def test_same_week_backfill(self):
        """Session and package start in the same week still satisfy the law."""
        summary, _ = assert_consistent(make_input(
            "2025-01-06",
            clients=[make_client(1, "Alice", personal=True)],
            packages=[make_package(10, 1, 14, "2025-01-08", bonus=20)],
            sessions=[
                make_session(1, 1, "2025-01-06", package_id=10),
                make_session(2, 1, "2025-01-09", package_id=10),
            ],
        ))
        assert summary.backfill_adjustment == Decimal("10") * Decimal("0.56")

    def test_archived_client_excluded_from_both(self):
        """Test archived clients are left out of both views."""
        summary, rows = assert_consistent(make_input(
            "2025-01-06",
            clients=[make_client(1, "Alice"), make_client(2, "Gone", archived_at=d("2025-01-01"))],
            sessions=[make_session(1, 1, "2025-01-07"), make_session(2, 2, "2025-01-07")],
            late_fees=[make_late_fee(1, 2, "2025-01-08", 25)],
        ))
        assert summary.total_classes_this_week == 1
        assert all(r.client_name == "Alice" for r in rows)

    @pytest.mark.parametrize("count", [0, 1, 12, 13, 20])
    def test_consistent_across_rate_thresholds(self, count):
        """Test the law holds across rate bracket boundaries."""
        assert_consistent(make_input(
            "2025-01-06",
            clients=[make_client(1, "Alice", personal=True), make_client(2, "Bob")],
            packages=[make_package(10, 2, 13, "2025-01-06", bonus=30)],
            sessions=[make_session(i, 1 + i % 2, "2025-01-08", package_id=10 if i % 2 else None) for i in range(count)],
        ))
