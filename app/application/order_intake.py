import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Tuple

from app.core.config import Settings
from app.core.errors import (
    DuplicateOrderError,
    OrderValidationError,
    StorefrontError,
    UpstreamError,
)
from app.domain.formatting import (
    format_currency,
    format_display_time,
    format_phone_display,
    parse_currency,
    parse_display_time,
    phone_digits,
)
from app.domain.messages import new_order_message
from app.domain.models import (
    ORDER_STATUS_PENDING,
    PAYMENT_CARD,
    PAYMENT_CASH,
    OrderPayload,
    OrderRecord,
    PaymentInfo,
)
from app.domain.schedule import PICKUP_GRID, business_now, earliest_pickup_date, parse_iso_date
from app.interfaces.INotificationSender import INotificationSender
from app.interfaces.IOrderRepository import IOrderRepository

logger = logging.getLogger(__name__)


def utc_timestamp(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def payment_display(payment: PaymentInfo) -> Tuple[str, str]:
    """(payment method, payment status) as shown in the order sheet."""
    if (payment.type or "").lower() == PAYMENT_CARD:
        method = "Credit Card"
        if payment.card_brand and payment.card_last4:
            method = f"Credit Card ({payment.card_brand} ****{payment.card_last4})"
        return method, "Paid"
    return "Cash", "Pay at Pickup"


class OrderIntakeService:
    """
    Validates a storefront submission, suppresses near-duplicates, appends
    the order row and then notifies the business by SMS.

    The append is the commit point: a failed SMS afterwards is only logged.
    """

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

    def submit_order(self, payload: OrderPayload) -> OrderRecord:
        now = self.clock()
        pickup_date, pickup_time = self.validate(payload, now)

        self.check_duplicate(payload, pickup_date, now)

        order = self.build_record(payload, pickup_date, pickup_time, now)
        try:
            self.order_repo.save_order(order)
        except UpstreamError as e:
            raise UpstreamError("Failed to submit order. Please try again.") from e

        self.notify(order)
        return order

    # --- Validation ---

    def validate(self, payload: OrderPayload, now: datetime) -> Tuple[str, str]:
        """
        Runs the checks in order and raises on the first failure.
        Returns (pickup date as YYYY-MM-DD, pickup time as HH:MM).
        """
        customer = payload.customer
        if customer is None:
            raise OrderValidationError("Customer information is required")

        payment = payload.payment_info or PaymentInfo()
        payment_type = (payment.type or "").strip().lower()

        if payment_type == PAYMENT_CASH:
            self._check_referral_code(customer.referral_code)

        name = customer.name or ""
        if len(re.sub(r"\s", "", name)) < 2:
            raise OrderValidationError("Please enter your name (at least 2 characters)")

        if len(phone_digits(customer.phone)) < 10:
            raise OrderValidationError("Please enter a valid 10-digit phone number")

        if "@" not in (customer.email or ""):
            raise OrderValidationError("Please enter a valid email address")

        if not payload.items:
            raise OrderValidationError("Your cart is empty")

        if payload.total is None or payload.total <= 0:
            raise OrderValidationError("Order total must be greater than zero")

        try:
            pickup_date = parse_iso_date(customer.order_date or "")
        except ValueError:
            raise OrderValidationError("Pickup date must be in YYYY-MM-DD format")
        if pickup_date < earliest_pickup_date(now.date()):
            raise OrderValidationError("Pickup date must be at least 1 day in advance")

        if not (customer.pickup_time or "").strip():
            raise OrderValidationError("Please select a pickup time")
        try:
            pickup_time = parse_display_time(customer.pickup_time)
        except ValueError:
            pickup_time = None
        if pickup_time not in PICKUP_GRID:
            raise OrderValidationError("Please select a valid pickup time")

        if len(customer.special_requests or "") > self.settings.SPECIAL_REQUESTS_MAX_LENGTH:
            raise OrderValidationError(
                f"Special requests must be {self.settings.SPECIAL_REQUESTS_MAX_LENGTH} characters or less"
            )

        if payment_type not in (PAYMENT_CASH, PAYMENT_CARD):
            raise OrderValidationError("Payment method must be cash or card")
        if payment_type == PAYMENT_CARD and not payment.payment_id:
            raise OrderValidationError("Card payment has not been completed")

        return pickup_date.isoformat(), pickup_time

    def _check_referral_code(self, referral_code: Optional[str]) -> None:
        code = (referral_code or "").strip()
        if not code:
            raise OrderValidationError("A referral code is required for cash orders")

        allowed = self.settings.referral_codes
        if not allowed:
            if self.settings.ACCEPT_ANY_REFERRAL_WHEN_UNCONFIGURED:
                return
            raise OrderValidationError("Invalid referral code")
        if code.lower() not in allowed:
            raise OrderValidationError("Invalid referral code")

    # --- Duplicate guard ---

    def check_duplicate(self, payload: OrderPayload, pickup_date: str, now: datetime) -> None:
        """
        Rejects a resubmission of the same phone/date/total inside the
        duplicate window. Only the last few rows are inspected.
        """
        try:
            recent = self.order_repo.recent_orders(self.settings.DUPLICATE_SCAN_ROWS)
        except UpstreamError as e:
            if not self.settings.ACCEPT_ON_DUPLICATE_CHECK_ERROR:
                raise
            logger.warning(f"⚠️ Duplicate check skipped: {e}")
            return

        phone = phone_digits(payload.customer.phone)[-10:]
        window = timedelta(minutes=self.settings.DUPLICATE_WINDOW_MINUTES)
        total = payload.total

        for order in recent:
            submitted_at = order.submitted_at_datetime()
            if submitted_at is None or submitted_at.tzinfo is None:
                continue
            if (
                phone_digits(order.customer_phone)[-10:] == phone
                and order.pickup_date == pickup_date
                and parse_currency(order.total) == total
                and now - submitted_at <= window
            ):
                logger.warning(f"⚠️ Duplicate order blocked for {format_phone_display(phone)}")
                raise DuplicateOrderError()

    # --- Persistence & notification ---

    def build_record(self, payload: OrderPayload, pickup_date: str, pickup_time: str, now: datetime) -> OrderRecord:
        customer = payload.customer
        payment = payload.payment_info or PaymentInfo()
        method, status = payment_display(payment)
        return OrderRecord(
            submitted_at=utc_timestamp(now),
            customer_name=customer.name.strip(),
            customer_phone=format_phone_display(customer.phone),
            pickup_date=pickup_date,
            pickup_time=format_display_time(pickup_time),
            customer_email=customer.email.strip(),
            referral_code=(customer.referral_code or "").strip(),
            items=", ".join(f"{item.name} ({item.quantity})" for item in payload.items),
            total=format_currency(payload.total),
            status=ORDER_STATUS_PENDING,
            special_requests=customer.special_requests or "",
            payment_method=method,
            payment_status=status,
            payment_id=(payment.payment_id or "") if status == "Paid" else "",
        )

    def notify(self, order: OrderRecord) -> None:
        body = new_order_message(
            order.customer_name, order.customer_phone, order.pickup_date, order.pickup_time, order.total
        )
        try:
            self.notifier.send(body)
        except StorefrontError as e:
            logger.warning(f"⚠️ Order saved but SMS notification failed: {e}")
