from datetime import date, datetime
from decimal import Decimal

from app.domain.formatting import format_currency

NEW_ORDER_TEMPLATE = """🍕 NEW ORDER RECEIVED!
{details}
{total}"""

DAILY_SUMMARY_TEMPLATE = """📊 {date}
🍕 Orders: {count}
💰 Revenue: {revenue}
💳 Cash: {cash} | Card: {card}"""

NO_ORDERS_TEMPLATE = """📊 {date}: No orders today 🌟
🍕 Orders: 0
💰 Revenue: {revenue}"""

TEST_MESSAGE_TEMPLATE = """🧪 Twilio Test Message

This is a test message from Losco's Pizzeria SMS system.

Time: {time}
Status: Testing SMS functionality

If you receive this, SMS notifications are working!"""


def new_order_message(name: str, phone: str, pickup_date: str, pickup_time: str, total: str) -> str:
    details = " ".join(part for part in (name, phone, pickup_date, pickup_time) if part)
    return NEW_ORDER_TEMPLATE.format(details=details, total=total)


def daily_summary_message(day: date, count: int, revenue: Decimal, cash: int, card: int) -> str:
    if count == 0:
        return NO_ORDERS_TEMPLATE.format(
            date=f"{day.month}/{day.day}/{day.year}", revenue=format_currency(revenue)
        )
    return DAILY_SUMMARY_TEMPLATE.format(
        date=f"{day:%A}, {day:%B} {day.day}, {day.year}",
        count=count,
        revenue=format_currency(revenue),
        cash=cash,
        card=card,
    )


def sms_test_message(now: datetime) -> str:
    return TEST_MESSAGE_TEMPLATE.format(time=now.strftime("%m/%d/%Y, %I:%M:%S %p"))
