import logging
from typing import List

from app.core.config import Settings
from app.domain.models import OrderRecord, StoredOrder
from app.infrastructure.sheets_client import SheetsRowStore
from app.interfaces.IOrderRepository import IOrderRepository

logger = logging.getLogger(__name__)

# Column order of the Orders tab (A..N). Only this module knows it.
ORDER_COLUMNS = [
    ("submitted_at", "Timestamp"),
    ("customer_name", "Name"),
    ("customer_phone", "Phone"),
    ("pickup_date", "Order Date"),
    ("pickup_time", "Pickup Time"),
    ("customer_email", "Email"),
    ("referral_code", "Referral Code"),
    ("items", "Items"),
    ("total", "Total"),
    ("status", "Order Status"),
    ("special_requests", "Special Requests"),
    ("payment_method", "Payment Method"),
    ("payment_status", "Payment Status"),
    ("payment_id", "Payment ID"),
]
ORDER_HEADER = [title for _, title in ORDER_COLUMNS]
ARCHIVE_HEADER = ORDER_HEADER + ["Archived Date"]


# Cells Sheets should parse (dates, times, amounts). Everything else is
# written as literal text.
PARSED_FIELDS = {"submitted_at", "pickup_date", "pickup_time", "total", "status"}
FORMULA_PREFIXES = ("=", "+", "-", "@", "'")


def as_literal(value: str) -> str:
    """Leading quote makes USER_ENTERED store the cell as text, never a formula."""
    if value.startswith(FORMULA_PREFIXES):
        return "'" + value
    return value


def record_to_row(order: OrderRecord) -> List[str]:
    row = []
    for field, _ in ORDER_COLUMNS:
        value = str(getattr(order, field))
        row.append(value if field in PARSED_FIELDS else as_literal(value))
    return row


def row_to_record(row: List[str]) -> OrderRecord:
    padded = list(row) + [""] * (len(ORDER_COLUMNS) - len(row))
    return OrderRecord(**{field: str(padded[i]) for i, (field, _) in enumerate(ORDER_COLUMNS)})


def is_header_row(row: List[str]) -> bool:
    return bool(row) and str(row[0]).strip().lower() == ORDER_HEADER[0].lower()


class SheetsOrderRepository(IOrderRepository):

    def __init__(self, row_store: SheetsRowStore, settings: Settings):
        self.row_store = row_store
        self.sheet_id = settings.ORDERS_SHEET_ID
        self.orders_range = f"{settings.ORDERS_SHEET_NAME}!A:N"
        self.archive_range = f"{settings.ARCHIVE_SHEET_NAME}!A:O"

    def save_order(self, order: OrderRecord) -> None:
        self.row_store.append(self.orders_range, [record_to_row(order)])
        logger.info(f"✅ Order appended for {order.customer_name} ({order.pickup_date} {order.pickup_time})")

    def list_orders(self) -> List[StoredOrder]:
        """
        Every data row of the Orders tab, oldest first.
        row_number is the 1-based sheet row, i.e. what delete_row expects.
        """
        rows = self.row_store.read_all(self.orders_range)
        orders = []
        for index, row in enumerate(rows):
            if index == 0 and is_header_row(row):
                continue
            if not any(str(cell).strip() for cell in row):
                continue
            orders.append(StoredOrder(row_number=index + 1, record=row_to_record(row)))
        return orders

    def recent_orders(self, limit: int) -> List[OrderRecord]:
        return [stored.record for stored in self.list_orders()[-limit:]]

    def delete_row(self, row_number: int) -> None:
        self.row_store.delete_row(self.sheet_id, row_number)

    def archive_orders(self, orders: List[OrderRecord], archived_at: str) -> None:
        self.row_store.ensure_header(self.archive_range, ARCHIVE_HEADER)
        rows = [record_to_row(order) + [archived_at] for order in orders]
        self.row_store.append(self.archive_range, rows)
        logger.info(f"✅ Archived {len(rows)} orders")
