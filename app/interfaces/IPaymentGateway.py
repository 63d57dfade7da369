from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from app.domain.models import PaymentResult


class IPaymentGateway(ABC):
    @abstractmethod
    def charge(self, source_id: str, amount: Decimal, note: str, buyer_email: Optional[str] = None) -> PaymentResult:
        pass
