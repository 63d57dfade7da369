from abc import ABC, abstractmethod
from typing import List

from app.domain.models import OrderRecord, StoredOrder


class IOrderRepository(ABC):
    @abstractmethod
    def save_order(self, order: OrderRecord) -> None:
        pass

    @abstractmethod
    def list_orders(self) -> List[StoredOrder]:
        pass

    @abstractmethod
    def recent_orders(self, limit: int) -> List[OrderRecord]:
        pass

    @abstractmethod
    def delete_row(self, row_number: int) -> None:
        pass

    @abstractmethod
    def archive_orders(self, orders: List[OrderRecord], archived_at: str) -> None:
        pass
