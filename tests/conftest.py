"""
Shared fixtures: in-memory stand-ins for Google Sheets, Twilio and Square,
a controllable clock, and an app wired through create_app.
"""
import copy
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import pytest
import pytz
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.errors import PaymentDeclinedError, UpstreamError
from app.domain.models import OrderRecord, PaymentResult
from app.infrastructure.repositories.order_repository import ORDER_HEADER, SheetsOrderRepository, record_to_row
from app.interfaces.INotificationSender import INotificationSender
from app.interfaces.IPaymentGateway import IPaymentGateway
from app.main import create_app

TZ = pytz.timezone("America/New_York")


class FakeRowStore:
    """Sheets keyed by tab title; sheet id 0 is the Orders tab."""

    def __init__(self):
        self.sheets: Dict[str, List[List[str]]] = {"Orders": [list(ORDER_HEADER)]}
        self.sheet_ids = {0: "Orders"}
        self.fail_on = set()
        self.fail_rows = set()
        self.calls = []

    def _check(self, operation: str):
        self.calls.append(operation)
        if operation in self.fail_on:
            raise UpstreamError(f"simulated {operation} failure")

    def append(self, range_name: str, rows: List[List[str]]) -> None:
        self._check("append:" + range_name.split("!")[0])
        self.sheets.setdefault(range_name.split("!")[0], []).extend(copy.deepcopy(rows))

    def read_all(self, range_name: str) -> List[List[str]]:
        self._check("read")
        return copy.deepcopy(self.sheets.get(range_name.split("!")[0], []))

    def delete_row(self, sheet_id: int, row_number: int) -> None:
        self._check("delete")
        if row_number in self.fail_rows:
            raise UpstreamError(f"simulated delete failure for row {row_number}")
        del self.sheets[self.sheet_ids[sheet_id]][row_number - 1]

    def ensure_header(self, range_name: str, header: List[str]) -> None:
        self._check("ensure_header")
        rows = self.sheets.setdefault(range_name.split("!")[0], [])
        if not rows:
            rows.append(list(header))

    def data_rows(self, sheet: str = "Orders") -> List[List[str]]:
        return self.sheets.get(sheet, [])[1:]

    def add_order(self, **fields) -> OrderRecord:
        order = make_record(**fields)
        self.sheets["Orders"].append(record_to_row(order))
        return order


class RecordingNotifier(INotificationSender):
    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, body: str, from_: Optional[str] = None, to: Optional[str] = None) -> Dict[str, str]:
        if self.fail:
            raise UpstreamError("simulated SMS failure")
        self.sent.append(body)
        return {"id": f"SM{len(self.sent):04d}", "status": "queued"}


class FakePaymentGateway(IPaymentGateway):
    def __init__(self):
        self.charges = []
        self.decline = False

    def charge(self, source_id, amount, note, buyer_email=None) -> PaymentResult:
        if self.decline:
            raise PaymentDeclinedError(errors=[{"code": "CARD_DECLINED"}])
        self.charges.append((source_id, amount, note, buyer_email))
        return PaymentResult(payment_id=f"pay-{len(self.charges)}", status="COMPLETED")


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_record(**fields) -> OrderRecord:
    defaults = dict(
        submitted_at="2024-03-10T15:00:00.000Z",
        customer_name="Maria Rossi",
        customer_phone="(617) 867-5309",
        pickup_date="2024-03-15",
        pickup_time="5:00 PM",
        customer_email="maria@example.com",
        referral_code="FRIEND",
        items="Classic Margherita (1)",
        total="$20.00",
        payment_method="Cash",
        payment_status="Pay at Pickup",
    )
    defaults.update(fields)
    return OrderRecord(**defaults)


def order_payload(**customer_overrides) -> dict:
    """A submission that passes every check for a 2024-03-14 clock."""
    customer = {
        "name": "Maria Rossi",
        "phone": "(617) 867-5309",
        "email": "maria@example.com",
        "referralCode": "FRIEND",
        "orderDate": "2024-03-15",
        "pickupTime": "16:00",
        "specialRequests": "",
    }
    customer.update(customer_overrides)
    return {
        "customer": customer,
        "items": [{"id": "margherita", "name": "Classic Margherita", "price": 20, "quantity": 2}],
        "total": 40,
        "paymentInfo": {"type": "cash"},
    }


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        GOOGLE_SERVICE_ACCOUNT_EMAIL="orders@pizzeria.iam.gserviceaccount.com",
        GOOGLE_PRIVATE_KEY="fake-key",
        GOOGLE_SPREADSHEET_ID="sheet-123",
        TWILIO_ACCOUNT_SID="AC123",
        TWILIO_AUTH_TOKEN="token",
        TWILIO_PHONE_NUMBER="6175550100",
        BUSINESS_PHONE_NUMBER="6175550199",
        REFERRAL_CODES="",
        CRON_SECRET="",
        PUBLIC_BASE_URL=None,
    )


@pytest.fixture
def clock():
    # Thursday noon; the next pickup day is Friday 2024-03-15
    return FakeClock(TZ.localize(datetime(2024, 3, 14, 12, 0)))


@pytest.fixture
def store():
    return FakeRowStore()


@pytest.fixture
def repo(store, settings):
    return SheetsOrderRepository(store, settings)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def gateway():
    return FakePaymentGateway()


@pytest.fixture
def make_client(repo, notifier, gateway, clock, settings):
    def _make(**setting_overrides):
        app_settings = settings.model_copy(update=setting_overrides) if setting_overrides else settings
        app = create_app(app_settings, order_repo=repo, notifier=notifier, payments=gateway, clock=clock)
        return TestClient(app, raise_server_exceptions=False)
    return _make


@pytest.fixture
def client(make_client):
    return make_client()
