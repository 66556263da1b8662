"""
Unit Tests for the Client Rows Calculator
"""

import pytest

from builders import d, make_client, make_input, make_package, make_session
from ledger.calculators.client_rows import ClientRowsCalculator
from ledger.processor import WeeklyDashboardProcessor


def rows_for(input_data):
    ctx = WeeklyDashboardProcessor().build_context(input_data)
    return {row.client_id: row for row in ClientRowsCalculator().calculate(ctx)}


class TestClientRows:

    def test_single_active_package(self):
        """Test one active package shows its counts."""
        rows = rows_for(make_input(
            "2025-01-06",
            clients=[make_client(1, "Alice")],
            packages=[make_package(10, 1, 10, "2025-01-01")],
            sessions=[
                make_session(1, 1, "2025-01-02", package_id=10),
                make_session(2, 1, "2025-01-07", package_id=10),
                make_session(3, 1, "2025-01-08", package_id=10),
            ],
        ))
        row = rows[1]

        assert (row.package_display, row.used_display, row.remaining_display) == ("10", "3", "7")
        assert row.total_remaining == 7
        assert row.week_count == 2

    def test_shows_latest_two_active_packages(self):
        """Test only the latest two active packages are shown."""
        rows = rows_for(make_input(
            "2025-03-03",
            clients=[make_client(1, "Alice")],
            packages=[
                make_package(10, 1, 1, "2025-01-01"),
                make_package(11, 1, 5, "2025-02-01"),
                make_package(12, 1, 3, "2025-02-15"),
                make_package(13, 1, 10, "2025-03-01"),
            ],
            sessions=[
                make_session(1, 1, "2025-01-02", package_id=10),
                make_session(2, 1, "2025-02-02", package_id=11),
            ],
        ))
        row = rows[1]

        assert row.package_display == "3 + 10"
        assert row.used_display == "0 + 0"
        assert row.remaining_display == "3 + 10"
        assert row.total_remaining == 13

    def test_no_active_package_shows_latest_only(self):
        """Test a fully used history shows only the latest package."""
        rows = rows_for(make_input(
            "2025-01-06",
            clients=[make_client(1, "Alice")],
            packages=[make_package(10, 1, 1, "2024-12-01"), make_package(11, 1, 1, "2024-12-15")],
            sessions=[
                make_session(1, 1, "2024-12-02", package_id=10),
                make_session(2, 1, "2024-12-16", package_id=11),
            ],
        ))
        row = rows[1]

        assert (row.package_display, row.used_display, row.remaining_display) == ("1", "1", "0")
        assert row.total_remaining == 0

    def test_drop_ins_without_packages_show_negative_balance(self):
        """Test drop-ins without packages show a negative balance."""
        rows = rows_for(make_input(
            "2025-01-06",
            clients=[make_client(1, "Bob")],
            sessions=[make_session(1, 1, "2024-12-30"), make_session(2, 1, "2025-01-07")],
        ))
        row = rows[1]

        assert (row.package_display, row.used_display, row.remaining_display) == ("0", "2", "-2")
        assert row.total_remaining == -2
        assert row.week_count == 1

    def test_client_without_history(self):
        """Test a new client shows zeros."""
        row = rows_for(make_input("2025-01-06", clients=[make_client(1, "Carol")]))[1]

        assert (row.package_display, row.used_display, row.remaining_display) == ("0", "0", "0")
        assert row.week_count == 0

    def test_roster_only_includes_trainer_clients(self):
        """Test the roster holds owned and secondary clients only."""
        rows = rows_for(make_input(
            "2025-01-06",
            clients=[
                make_client(1, "Alice"),
                make_client(2, "Dan", trainer_id=2),
                make_client(3, "Eve", trainer_id=2, secondary_trainer_id=1),
            ],
        ))

        assert set(rows) == {1, 3}

    @pytest.mark.parametrize("archived_at,visible", [
        ("2025-01-01", False),
        ("2025-01-06", False),
        ("2025-01-07", True),
    ])
    def test_archived_clients_hidden_from_archive_week(self, archived_at, visible):
        """Test archived clients drop out from their archive week."""
        rows = rows_for(make_input(
            "2025-01-06",
            clients=[make_client(1, "Alice", archived_at=d(archived_at), is_active=False)],
        ))

        assert (1 in rows) == visible

    @pytest.mark.parametrize("is_active,visible", [(False, False), (True, True)])
    def test_inactive_client_without_archive_date(self, is_active, visible):
        """Inactive clients with no archive week are hidden from every week."""
        rows = rows_for(make_input(
            "2025-01-06",
            clients=[make_client(1, "Alice", is_active=is_active)],
        ))

        assert (1 in rows) == visible

    def test_archive_date_wins_over_active_flag(self):
        """A client archived later in the year still shows for earlier weeks."""
        rows = rows_for(make_input(
            "2025-01-06",
            clients=[make_client(1, "Alice", archived_at=d("2025-03-03"), is_active=False)],
        ))

        assert 1 in rows
