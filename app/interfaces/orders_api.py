import logging
from typing import Optional

from fastapi import APIRouter, Depends

from app.application.availability import SlotAvailabilityService
from app.application.order_intake import OrderIntakeService
from app.domain.models import OrderPayload
from app.interfaces.dependencies import get_availability, get_order_intake

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/available-times")
def available_times(date: Optional[str] = None, availability: SlotAvailabilityService = Depends(get_availability)):
    slots = availability.get_available_slots(date)
    return {
        "success": True,
        "date": date,
        "availableTimeSlots": [slot.model_dump() for slot in slots],
    }


@router.post("/orders")
def submit_order(payload: OrderPayload, intake: OrderIntakeService = Depends(get_order_intake)):
    order = intake.submit_order(payload)
    logger.info(f"📨 Order accepted: {order.customer_name} {order.pickup_date} {order.pickup_time}")
    return {"success": True, "message": "Order submitted successfully"}
