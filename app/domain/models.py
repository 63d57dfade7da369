from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

ORDER_STATUS_PENDING = "Pending"

PAYMENT_CASH = "cash"
PAYMENT_CARD = "card"


class LineItem(BaseModel):
    id: Optional[str] = None
    name: str
    quantity: int = 1
    price: Optional[Decimal] = None


class CustomerInfo(BaseModel):
    """The customer block of an order submission (camelCase on the wire)."""
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    referral_code: Optional[str] = Field(default=None, alias="referralCode")
    order_date: Optional[str] = Field(default=None, alias="orderDate")
    pickup_time: Optional[str] = Field(default=None, alias="pickupTime")
    special_requests: Optional[str] = Field(default=None, alias="specialRequests")


class PaymentInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Optional[str] = None
    card_token: Optional[str] = Field(default=None, alias="cardToken")
    card_last4: Optional[str] = Field(default=None, alias="cardLast4")
    card_brand: Optional[str] = Field(default=None, alias="cardBrand")
    payment_id: Optional[str] = Field(default=None, alias="paymentId")


class OrderPayload(BaseModel):
    """
    What the storefront posts to /orders. Deliberately lenient: the
    ordered business checks in OrderIntakeService decide what is valid.
    """
    model_config = ConfigDict(populate_by_name=True)

    customer: Optional[CustomerInfo] = None
    items: List[LineItem] = []
    total: Optional[Decimal] = None
    payment_info: Optional[PaymentInfo] = Field(default=None, alias="paymentInfo")
    order_time: Optional[str] = Field(default=None, alias="orderTime")


class OrderRecord(BaseModel):
    """One order as stored, by field name. Column positions live in the repository."""
    submitted_at: str = ""
    customer_name: str = ""
    customer_phone: str = ""
    pickup_date: str = ""
    pickup_time: str = ""
    customer_email: str = ""
    referral_code: str = ""
    items: str = ""
    total: str = ""
    status: str = ORDER_STATUS_PENDING
    special_requests: str = ""
    payment_method: str = ""
    payment_status: str = ""
    payment_id: str = ""

    def submitted_at_datetime(self) -> Optional[datetime]:
        if not self.submitted_at:
            return None
        try:
            return datetime.fromisoformat(self.submitted_at.replace("Z", "+00:00"))
        except ValueError:
            return None


class StoredOrder(BaseModel):
    """An OrderRecord plus the 1-based sheet row it was read from."""
    row_number: int
    record: OrderRecord


class TimeSlot(BaseModel):
    value: str
    display: str


class PaymentResult(BaseModel):
    payment_id: str
    status: str


class DeleteResult(BaseModel):
    row: int
    ok: bool
    error: Optional[str] = None
