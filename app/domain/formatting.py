import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

# Accepted shapes of a stored pickup time, first match wins.
DISPLAY_TIME_FORMATS = ("%I:%M %p", "%I:%M%p", "%H:%M", "%I %p", "%I%p")


def phone_digits(value: Optional[str]) -> str:
    return re.sub(r"\D", "", value or "")


def normalize_phone(value: str) -> str:
    """E.164 for US numbers: 10 digits get +1, 11 digits starting with 1 get +."""
    digits = phone_digits(value)
    if len(digits) >= 11 and digits.startswith("1"):
        return f"+{digits}"
    return f"+1{digits}"


def format_phone_display(value: str) -> str:
    """(555) 123-4567 when the number is a plain US number, digits otherwise."""
    digits = phone_digits(value)
    if len(digits) == 11 and digits.startswith("1"):
        digits = digits[1:]
    if len(digits) != 10:
        return digits
    return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"


def format_display_time(value: str) -> str:
    """'16:00' -> '4:00 PM'"""
    parsed = datetime.strptime(value.strip(), "%H:%M")
    hour = parsed.hour % 12 or 12
    suffix = "AM" if parsed.hour < 12 else "PM"
    return f"{hour}:{parsed.minute:02d} {suffix}"


def parse_display_time(value: str) -> str:
    """'4:00 PM' -> '16:00'. Raises ValueError when no known format matches."""
    text = (value or "").strip().upper()
    for fmt in DISPLAY_TIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).strftime("%H:%M")
        except ValueError:
            continue
    raise ValueError(f"Unrecognized pickup time: {value!r}")


def format_currency(amount: Union[Decimal, float, int]) -> str:
    return f"${Decimal(str(amount)).quantize(Decimal('0.01'))}"


def parse_currency(value: Optional[str]) -> Optional[Decimal]:
    """'$45.00' -> Decimal('45.00'); None when the cell is empty or garbage."""
    text = (value or "").strip().replace(",", "")
    if text.startswith("$"):
        text = text[1:]
    if not text:
        return None
    try:
        return Decimal(text)
    except InvalidOperation:
        return None
