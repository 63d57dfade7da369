import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

import requests

from app.core.config import SQUARE_CREDENTIALS, Settings
from app.core.errors import PaymentDeclinedError, UpstreamError
from app.domain.models import PaymentResult
from app.interfaces.IPaymentGateway import IPaymentGateway

logger = logging.getLogger(__name__)

SQUARE_BASE_URLS = {
    "production": "https://connect.squareup.com",
    "sandbox": "https://connect.squareupsandbox.com",
}
SQUARE_VERSION = "2024-01-18"


def to_cents(amount: Decimal) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class SquarePaymentGateway(IPaymentGateway):
    timeout = 15

    def __init__(self, settings: Settings):
        self.settings = settings
        self.base_url = SQUARE_BASE_URLS[settings.SQUARE_ENVIRONMENT]

    @property
    def headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.settings.SQUARE_ACCESS_TOKEN}",
            "Content-Type": "application/json",
            "Square-Version": SQUARE_VERSION,
        }

    def charge(self, source_id: str, amount: Decimal, note: str, buyer_email: Optional[str] = None) -> PaymentResult:
        self.settings.require(*SQUARE_CREDENTIALS)

        payload = {
            "source_id": source_id,
            "amount_money": {"amount": to_cents(amount), "currency": "USD"},
            "location_id": self.settings.SQUARE_LOCATION_ID,
            "idempotency_key": str(uuid.uuid4()),
            "note": note,
        }
        if buyer_email:
            payload["buyer_email_address"] = buyer_email

        logger.info(
            f"💳 Charging {payload['amount_money']['amount']} cents via Square ({self.settings.SQUARE_ENVIRONMENT})"
        )
        try:
            resp = requests.post(f"{self.base_url}/v2/payments", json=payload, headers=self.headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"❌ Square unreachable: {e}")
            raise UpstreamError("Payment processing failed") from e

        try:
            result = resp.json()
        except ValueError:
            result = {}

        payment = result.get("payment")
        if resp.ok and payment:
            logger.info(f"✅ Payment successful: {payment['id']}")
            return PaymentResult(payment_id=payment["id"], status=payment.get("status", ""))

        errors = result.get("errors") or [result or {"status_code": resp.status_code}]
        logger.error(f"❌ Payment failed: {errors}")
        if resp.status_code >= 500:
            raise UpstreamError("Payment processing failed")
        raise PaymentDeclinedError(errors=errors)
