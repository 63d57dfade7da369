"""
Server-rendered storefront: menu, a cookie-held cart capped at two
pizzas, and the checkout form that drives slot lookup, card payment and
order intake.
"""
import logging
from datetime import date
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from app.application.availability import SlotAvailabilityService
from app.application.order_intake import OrderIntakeService
from app.core.config import Settings
from app.core.errors import DuplicateOrderError, StorefrontError
from app.domain.cart import MAX_CART_QUANTITY, MENU, Cart
from app.domain.formatting import format_display_time, phone_digits
from app.domain.models import CustomerInfo, OrderPayload, PaymentInfo, TimeSlot
from app.domain.schedule import PICKUP_GRID, earliest_pickup_date, is_closed, parse_iso_date
from app.interfaces.IPaymentGateway import IPaymentGateway
from app.interfaces.dependencies import (
    get_availability,
    get_order_intake,
    get_payments,
    get_settings,
)
from app.interfaces.payment_api import payment_note

router = APIRouter()
logger = logging.getLogger(__name__)
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

CART_COOKIE = "cart"


def read_cart(request: Request) -> Cart:
    return Cart.loads(request.cookies.get(CART_COOKIE))


def redirect_with_cart(cart: Cart, url: str = "/#cart") -> RedirectResponse:
    response = RedirectResponse(url, status_code=303)
    response.set_cookie(CART_COOKIE, cart.dumps(), httponly=True, samesite="lax")
    return response


def all_slots() -> List[TimeSlot]:
    return [TimeSlot(value=slot, display=format_display_time(slot)) for slot in PICKUP_GRID]


def slots_for(availability: SlotAvailabilityService, day: str) -> List[TimeSlot]:
    """Falls back to the whole grid when the store can't be read."""
    try:
        return availability.get_available_slots(day)
    except StorefrontError as e:
        logger.warning(f"⚠️ Could not load available slots for {day}: {e}")
        return all_slots()


@router.get("/", response_class=HTMLResponse)
def home(request: Request):
    cart = read_cart(request)
    return templates.TemplateResponse(
        request,
        "index.html",
        {"menu": MENU, "cart": cart, "max_quantity": MAX_CART_QUANTITY},
    )


@router.post("/cart/add/{item_id}")
def add_to_cart(item_id: str, request: Request):
    cart = read_cart(request)
    cart.add(item_id)
    return redirect_with_cart(cart)


@router.post("/cart/update/{item_id}")
def update_cart(item_id: str, request: Request, quantity: int = Form(...)):
    cart = read_cart(request)
    cart.update_quantity(item_id, quantity)
    return redirect_with_cart(cart)


@router.post("/cart/remove/{item_id}")
def remove_from_cart(item_id: str, request: Request):
    cart = read_cart(request)
    cart.remove(item_id)
    return redirect_with_cart(cart)


@router.get("/checkout", response_class=HTMLResponse)
def checkout(
    request: Request,
    day: Optional[str] = Query(default=None, alias="date"),
    availability: SlotAvailabilityService = Depends(get_availability),
    intake: OrderIntakeService = Depends(get_order_intake),
    settings: Settings = Depends(get_settings),
):
    cart = read_cart(request)
    if not cart.items:
        return RedirectResponse("/", status_code=303)

    day = day or earliest_pickup_date(intake.clock().date()).isoformat()
    form = CustomerInfo(order_date=day)
    return render_checkout(request, cart, form, slots_for(availability, day), settings)


@router.post("/checkout", response_class=HTMLResponse)
def submit_checkout(
    request: Request,
    name: str = Form(""),
    phone: str = Form(""),
    email: str = Form(""),
    referral_code: str = Form(""),
    order_date: str = Form(""),
    pickup_time: str = Form(""),
    special_requests: str = Form(""),
    payment_type: str = Form("cash"),
    card_token: str = Form(""),
    card_last4: str = Form(""),
    card_brand: str = Form(""),
    availability: SlotAvailabilityService = Depends(get_availability),
    intake: OrderIntakeService = Depends(get_order_intake),
    payments: IPaymentGateway = Depends(get_payments),
    settings: Settings = Depends(get_settings),
):
    cart = read_cart(request)
    if not cart.items:
        return RedirectResponse("/", status_code=303)

    form = CustomerInfo(
        name=name,
        phone=phone,
        email=email,
        referral_code=referral_code,
        order_date=order_date,
        pickup_time=pickup_time,
        special_requests=special_requests,
    )
    slots = slots_for(availability, order_date) if order_date else all_slots()

    def fail(message: str, status_code: int = 400):
        return render_checkout(request, cart, form, slots, settings, error=message, status_code=status_code)

    problem = checkout_problem(form, intake.clock().date())
    if problem:
        return fail(problem)
    if form.pickup_time not in {slot.value for slot in slots}:
        form.pickup_time = ""
        return fail("The selected pickup time is no longer available. Please select a different time.")

    payment = PaymentInfo(type=payment_type)
    if payment_type == "card":
        if not card_token:
            return fail("Please enter your card details.")
        try:
            result = payments.charge(card_token, cart.total_price, note=payment_note(form), buyer_email=email)
        except StorefrontError as e:
            logger.error(f"❌ Checkout payment failed: {e}")
            return fail("Payment failed. Please check your card information and try again.")
        payment = PaymentInfo(type="card", card_last4=card_last4, card_brand=card_brand, payment_id=result.payment_id)

    payload = OrderPayload(
        customer=form, items=cart.to_line_items(), total=cart.total_price, payment_info=payment
    )
    try:
        order = intake.submit_order(payload)
    except DuplicateOrderError as e:
        return fail(e.detail, status_code=e.status_code)
    except StorefrontError as e:
        return fail(e.detail if e.status_code == 400 else "Failed to submit order. Please try again.", e.status_code)

    response = templates.TemplateResponse(request, "confirmation.html", {"order": order})
    response.delete_cookie(CART_COOKIE)
    return response


@router.get("/consent", response_class=HTMLResponse)
def consent(request: Request):
    return templates.TemplateResponse(request, "consent.html", {})


def checkout_problem(form: CustomerInfo, today: date) -> Optional[str]:
    """The checks the order form makes before anything is charged or sent."""
    if len(phone_digits(form.phone)) != 10:
        return "Please enter a valid 10-digit phone number."
    try:
        pickup_date = parse_iso_date(form.order_date)
    except ValueError:
        return "Please select a pickup date."
    if is_closed(pickup_date):
        return "Sorry, we are closed on Sundays. Please select a different pickup date from Monday-Saturday."
    if pickup_date < earliest_pickup_date(today):
        return "Sorry, we don't accept same-day orders. Please select a pickup date at least 1 day in advance."
    if not form.pickup_time:
        return "Please select a pickup time."
    return None


def render_checkout(
    request: Request,
    cart: Cart,
    form: CustomerInfo,
    slots: List[TimeSlot],
    settings: Settings,
    error: Optional[str] = None,
    status_code: int = 200,
):
    return templates.TemplateResponse(
        request,
        "checkout.html",
        {
            "cart": cart,
            "form": form,
            "slots": slots,
            "error": error,
            "square_application_id": settings.SQUARE_APPLICATION_ID,
            "square_location_id": settings.SQUARE_LOCATION_ID,
            "square_environment": settings.SQUARE_ENVIRONMENT,
        },
        status_code=status_code,
    )
