import logging
from typing import List, Optional, Set

from app.core.errors import OrderValidationError
from app.domain.formatting import format_display_time, parse_display_time
from app.domain.models import TimeSlot
from app.domain.schedule import PICKUP_GRID, parse_iso_date
from app.interfaces.IOrderRepository import IOrderRepository

logger = logging.getLogger(__name__)


class SlotAvailabilityService:
    """
    Pickup slots still free on a date: the fixed grid minus times already
    booked in the order store. Read-then-compute, no reservation is held,
    so two customers can still pick the same slot concurrently.
    """

    def __init__(self, order_repo: IOrderRepository):
        self.order_repo = order_repo

    def get_available_slots(self, day: Optional[str]) -> List[TimeSlot]:
        if not day:
            raise OrderValidationError("Date parameter is required")
        try:
            parse_iso_date(day)
        except ValueError:
            raise OrderValidationError("Invalid date format. Use YYYY-MM-DD")

        booked = self.booked_times(day)
        return [
            TimeSlot(value=slot, display=format_display_time(slot))
            for slot in PICKUP_GRID
            if slot not in booked
        ]

    def booked_times(self, day: str) -> Set[str]:
        booked = set()
        for stored in self.order_repo.list_orders():
            order = stored.record
            if order.pickup_date != day or not order.pickup_time:
                continue
            try:
                booked.add(parse_display_time(order.pickup_time))
            except ValueError:
                # Unreadable times never block a slot
                logger.warning(f"⚠️ Could not parse pickup time {order.pickup_time!r} (row {stored.row_number})")
        return booked
