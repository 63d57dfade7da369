from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from app.core.config import Settings
from app.domain.formatting import format_currency
from app.domain.messages import new_order_message, sms_test_message
from app.domain.models import CustomerInfo, LineItem
from app.domain.schedule import business_now
from app.interfaces.INotificationSender import INotificationSender
from app.interfaces.dependencies import get_notifier, get_settings, require_cron_secret

router = APIRouter(prefix="/notifications")


class OrderDetails(BaseModel):
    items: List[LineItem] = []
    total: Decimal = Decimal("0")


class SmsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_details: OrderDetails = Field(alias="orderDetails")
    customer_info: CustomerInfo = Field(alias="customerInfo")


@router.post("/sms")
def send_order_sms(payload: SmsRequest, notifier: INotificationSender = Depends(get_notifier)):
    customer = payload.customer_info
    body = new_order_message(
        customer.name or "",
        customer.phone or "",
        customer.order_date or "",
        customer.pickup_time or "",
        format_currency(payload.order_details.total),
    )
    sent = notifier.send(body)
    return {"success": True, "messageId": sent["id"], "status": sent["status"]}


@router.get("/test", dependencies=[Depends(require_cron_secret)])
def send_test_sms(
    notifier: INotificationSender = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
):
    body = sms_test_message(business_now(settings.BUSINESS_TIMEZONE))
    sent = notifier.send(body)
    return {
        "success": True,
        "messageId": sent["id"],
        "status": sent["status"],
        "envCheck": settings.credential_status(),
    }
