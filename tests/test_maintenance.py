"""
Tests for the scheduled jobs: retention cleanup, archive, test-order purge
and the daily SMS summary.
"""
from decimal import Decimal

import pytest

from app.application.maintenance import MaintenanceJobs, is_test_order
from app.core.errors import OrderValidationError, UpstreamError

from conftest import make_record


@pytest.fixture
def jobs(repo, notifier, settings, clock):
    return MaintenanceJobs(repo, notifier, settings, clock=clock)


def seed_old_and_current(store):
    """Three orders before the 2024-03-12 cutoff interleaved with two kept ones."""
    store.add_order(customer_name="Old A", pickup_date="2024-03-01")
    store.add_order(customer_name="Keep A", pickup_date="2024-03-12")
    store.add_order(customer_name="Old B", pickup_date="2024-03-10")
    store.add_order(customer_name="Keep B", pickup_date="2024-03-15")
    store.add_order(customer_name="Old C", pickup_date="2024-03-11")


def names(rows):
    return [row[1] for row in rows]


class TestCleanupOrders:
    def test_deletes_expired_rows_bottom_up(self, jobs, store):
        seed_old_and_current(store)
        report = jobs.cleanup_orders()

        assert report.message == "Order cleanup completed"
        assert report.cutoff_date == "2024-03-12"
        assert report.deleted_count == 3
        assert report.failed_count == 0
        assert [result.row for result in report.results] == [6, 4, 2]
        assert names(store.data_rows()) == ["Keep A", "Keep B"]

    def test_nothing_to_delete(self, jobs, store):
        store.add_order(pickup_date="2024-03-15")
        report = jobs.cleanup_orders()
        assert report.message == "No old orders found to clean up"
        assert report.deleted_count == 0
        assert report.results == []
        assert "delete" not in store.calls

    def test_unreadable_dates_are_kept(self, jobs, store):
        store.add_order(customer_name="Odd", pickup_date="sometime")
        store.add_order(customer_name="Old", pickup_date="2024-01-01")
        jobs.cleanup_orders()
        assert names(store.data_rows()) == ["Odd"]

    def test_per_row_failure_is_reported(self, jobs, store):
        seed_old_and_current(store)
        store.fail_rows.add(4)
        report = jobs.cleanup_orders()

        assert report.deleted_count == 2
        assert report.failed_count == 1
        failed = [result for result in report.results if not result.ok]
        assert failed[0].row == 4
        assert "row 4" in failed[0].error
        assert names(store.data_rows()) == ["Keep A", "Old B", "Keep B"]

    def test_read_failure_propagates(self, jobs, store):
        store.fail_on.add("read")
        with pytest.raises(UpstreamError):
            jobs.cleanup_orders()


class TestArchiveOrders:
    def test_copies_then_deletes(self, jobs, store):
        seed_old_and_current(store)
        report = jobs.archive_orders()

        assert report.message == "Order archiving completed"
        assert report.deleted_count == 3
        archived = store.data_rows("Archive")
        assert names(archived) == ["Old A", "Old B", "Old C"]
        assert all(row[-1] == "2024-03-14T16:00:00.000Z" for row in archived)
        assert names(store.data_rows()) == ["Keep A", "Keep B"]
        assert store.calls.index("append:Archive") < store.calls.index("delete")

    def test_failed_append_deletes_nothing(self, jobs, store):
        seed_old_and_current(store)
        store.fail_on.add("append:Archive")
        with pytest.raises(UpstreamError, match="Failed to archive orders"):
            jobs.archive_orders()
        assert len(store.data_rows()) == 5
        assert "delete" not in store.calls

    def test_nothing_to_archive(self, jobs, store):
        store.add_order(pickup_date="2024-03-20")
        report = jobs.archive_orders()
        assert report.message == "No old orders found to archive"
        assert "Archive" not in store.sheets


class TestCleanupTestOrders:
    @pytest.mark.parametrize("fields", [
        {"customer_name": "Test Customer"},
        {"customer_name": "user one"},
        {"customer_phone": "(617) 555-0100"},
        {"customer_phone": "(123) 867-5309"},
        {"referral_code": "INVALID"},
        {"referral_code": "testcode"},
    ])
    def test_heuristic_matches(self, fields):
        assert is_test_order(make_record(**fields))

    def test_real_order_is_not_a_test_order(self):
        assert not is_test_order(make_record())

    def test_purges_only_matching_rows(self, jobs, store):
        store.add_order(customer_name="Maria Rossi")
        store.add_order(customer_name="Test Order")
        store.add_order(customer_name="Luigi", customer_phone="(617) 555-0142")
        report = jobs.cleanup_test_orders()

        assert report.deleted_count == 2
        assert report.cutoff_date is None
        assert names(store.data_rows()) == ["Maria Rossi"]

    def test_no_test_orders(self, jobs, store):
        store.add_order()
        report = jobs.cleanup_test_orders()
        assert report.message == "No test orders found to clean up"


class TestDailySummary:
    def test_no_orders_still_sends_one_sms(self, jobs, notifier):
        summary = jobs.daily_summary()

        assert summary.date == "2024-03-14"
        assert summary.order_count == 0
        assert summary.total_revenue == Decimal("0")
        assert summary.message_id == "SM0001"
        assert len(notifier.sent) == 1
        assert "Orders: 0" in notifier.sent[0]
        assert "$0.00" in notifier.sent[0]
        assert "3/14/2024" in notifier.sent[0]

    def test_counts_revenue_and_payment_split(self, jobs, store, notifier):
        store.add_order(pickup_date="2024-03-14", total="$40.00", payment_method="Cash")
        store.add_order(pickup_date="2024-03-14", total="$25.00", payment_method="Credit Card (VISA ****1111)")
        store.add_order(pickup_date="2024-03-14", total="$20.00", payment_method="")
        store.add_order(pickup_date="2024-03-15", total="$45.00")

        summary = jobs.daily_summary()

        assert summary.order_count == 3
        assert summary.total_revenue == Decimal("85.00")
        assert summary.cash_orders == 2
        assert summary.card_orders == 1
        assert len(notifier.sent) == 1
        assert "Orders: 3" in notifier.sent[0]
        assert "$85.00" in notifier.sent[0]
        assert "Cash: 2 | Card: 1" in notifier.sent[0]
        assert "Thursday, March 14, 2024" in notifier.sent[0]

    def test_unparsable_totals_count_as_zero(self, jobs, store):
        store.add_order(pickup_date="2024-03-14", total="TBD")
        summary = jobs.daily_summary()
        assert summary.order_count == 1
        assert summary.total_revenue == Decimal("0")

    def test_explicit_date(self, jobs, store):
        store.add_order(pickup_date="2024-03-15", total="$45.00")
        summary = jobs.daily_summary("2024-03-15")
        assert summary.order_count == 1

    def test_invalid_date(self, jobs, notifier):
        with pytest.raises(OrderValidationError, match="YYYY-MM-DD"):
            jobs.daily_summary("tomorrow")
        assert notifier.sent == []

    def test_sms_failure_propagates(self, jobs, notifier):
        notifier.fail = True
        with pytest.raises(UpstreamError):
            jobs.daily_summary()
