import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, List, Optional

from pydantic import BaseModel

from app.application.order_intake import utc_timestamp
from app.core.config import Settings
from app.core.errors import OrderValidationError, UpstreamError
from app.domain.formatting import parse_currency
from app.domain.messages import daily_summary_message
from app.domain.models import DeleteResult, OrderRecord, StoredOrder
from app.domain.schedule import business_now, parse_iso_date, retention_cutoff
from app.interfaces.INotificationSender import INotificationSender
from app.interfaces.IOrderRepository import IOrderRepository

logger = logging.getLogger(__name__)


class PurgeReport(BaseModel):
    message: str
    selected_count: int = 0
    deleted_count: int = 0
    failed_count: int = 0
    cutoff_date: Optional[str] = None
    results: List[DeleteResult] = []
    timestamp: str


class DailySummary(BaseModel):
    date: str
    order_count: int
    total_revenue: Decimal
    cash_orders: int
    card_orders: int
    message_id: Optional[str] = None


def is_test_order(order: OrderRecord) -> bool:
    name = order.customer_name.lower()
    referral = order.referral_code.lower()
    return (
        "test" in name
        or "user" in name
        or "555" in order.customer_phone
        or "123" in order.customer_phone
        or "invalid" in referral
        or "test" in referral
    )


class MaintenanceJobs:
    """Scheduled jobs over the order store: cleanup, archive, daily summary."""

    def __init__(
        self,
        order_repo: IOrderRepository,
        notifier: INotificationSender,
        settings: Settings,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.order_repo = order_repo
        self.notifier = notifier
        self.settings = settings
        self.clock = clock or (lambda: business_now(settings.BUSINESS_TIMEZONE))

    def cutoff(self) -> date:
        return retention_cutoff(self.clock().date(), self.settings.RETENTION_DAYS)

    # --- Cleanup ---

    def cleanup_orders(self) -> PurgeReport:
        cutoff = self.cutoff()
        logger.info(f"🧹 Cleaning up orders older than {cutoff}")

        expired = self._expired_orders(cutoff)
        if not expired:
            return self._report("No old orders found to clean up", cutoff=cutoff)

        results = self._delete_rows([stored.row_number for stored in expired])
        return self._report("Order cleanup completed", results=results, cutoff=cutoff)

    # --- Archive ---

    def archive_orders(self) -> PurgeReport:
        """
        Copies expired orders to the Archive tab, then deletes them from
        Orders. Nothing is deleted unless the archive append succeeded.
        """
        cutoff = self.cutoff()
        logger.info(f"📦 Archiving orders older than {cutoff}")

        expired = self._expired_orders(cutoff)
        if not expired:
            return self._report("No old orders found to archive", cutoff=cutoff)

        archived_at = utc_timestamp(self.clock())
        try:
            self.order_repo.archive_orders([stored.record for stored in expired], archived_at)
        except UpstreamError as e:
            logger.error(f"❌ Archive append failed, no rows deleted: {e}")
            raise UpstreamError("Failed to archive orders") from e

        results = self._delete_rows([stored.row_number for stored in expired])
        return self._report("Order archiving completed", results=results, cutoff=cutoff)

    # --- Test order purge ---

    def cleanup_test_orders(self) -> PurgeReport:
        test_orders = [stored for stored in self.order_repo.list_orders() if is_test_order(stored.record)]
        if not test_orders:
            return self._report("No test orders found to clean up")

        for stored in test_orders:
            logger.info(f"Marking test order for deletion: {stored.record.customer_name} (row {stored.row_number})")
        results = self._delete_rows([stored.row_number for stored in test_orders])
        return self._report("Test orders cleaned up", results=results)

    # --- Daily summary ---

    def daily_summary(self, target_date: Optional[str] = None) -> DailySummary:
        """Aggregates one day's orders and always sends exactly one SMS."""
        if target_date:
            try:
                day = parse_iso_date(target_date)
            except ValueError:
                raise OrderValidationError("Invalid date format. Use YYYY-MM-DD")
        else:
            day = self.clock().date()

        day_text = day.isoformat()
        orders = [stored.record for stored in self.order_repo.list_orders() if stored.record.pickup_date == day_text]
        logger.info(f"📊 Found {len(orders)} orders for {day_text}")

        revenue = Decimal("0")
        cash_orders = 0
        for order in orders:
            amount = parse_currency(order.total)
            if amount is not None:
                revenue += amount
            if (order.payment_method or "cash").strip().lower() == "cash":
                cash_orders += 1

        summary = DailySummary(
            date=day_text,
            order_count=len(orders),
            total_revenue=revenue,
            cash_orders=cash_orders,
            card_orders=len(orders) - cash_orders,
        )
        body = daily_summary_message(day, summary.order_count, revenue, summary.cash_orders, summary.card_orders)
        sent = self.notifier.send(body)
        summary.message_id = sent.get("id")
        return summary

    # --- helpers ---

    def _expired_orders(self, cutoff: date) -> List[StoredOrder]:
        expired = []
        for stored in self.order_repo.list_orders():
            try:
                pickup_date = parse_iso_date(stored.record.pickup_date)
            except ValueError:
                # Rows without a readable date are kept
                continue
            if pickup_date < cutoff:
                expired.append(stored)
        return expired

    def _delete_rows(self, row_numbers: List[int]) -> List[DeleteResult]:
        """Deletes bottom-up so earlier deletes never shift rows still pending."""
        results = []
        for row_number in sorted(row_numbers, reverse=True):
            try:
                self.order_repo.delete_row(row_number)
                results.append(DeleteResult(row=row_number, ok=True))
            except UpstreamError as e:
                logger.error(f"❌ Failed to delete row {row_number}: {e}")
                results.append(DeleteResult(row=row_number, ok=False, error=str(e)))
        return results

    def _report(self, message: str, results: Optional[List[DeleteResult]] = None, cutoff: Optional[date] = None) -> PurgeReport:
        results = results or []
        deleted = sum(1 for result in results if result.ok)
        logger.info(f"✅ {message}: {deleted}/{len(results)} rows removed")
        return PurgeReport(
            message=message,
            selected_count=len(results),
            deleted_count=deleted,
            failed_count=len(results) - deleted,
            cutoff_date=cutoff.isoformat() if cutoff else None,
            results=results,
            timestamp=utc_timestamp(self.clock()),
        )
