from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from app.core.errors import OrderValidationError
from app.domain.models import CustomerInfo
from app.interfaces.IPaymentGateway import IPaymentGateway
from app.interfaces.dependencies import get_payments

router = APIRouter()


class PaymentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source_id: Optional[str] = Field(default=None, alias="sourceId")
    amount: Optional[Decimal] = None
    customer_info: Optional[CustomerInfo] = Field(default=None, alias="customerInfo")


def payment_note(customer: Optional[CustomerInfo]) -> str:
    name = customer.name if customer and customer.name else "Customer"
    return f"Pizza order for {name}"


@router.post("/payment")
def process_payment(payload: PaymentRequest, payments: IPaymentGateway = Depends(get_payments)):
    if not payload.source_id or not payload.amount or payload.amount <= 0:
        raise OrderValidationError("Missing required payment information")

    customer = payload.customer_info
    result = payments.charge(
        payload.source_id,
        payload.amount,
        note=payment_note(customer),
        buyer_email=customer.email if customer else None,
    )
    return {"success": True, "paymentId": result.payment_id, "status": result.status}
