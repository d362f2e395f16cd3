from abc import ABC, abstractmethod
from typing import Optional

from storefront.domain.models import Order


class IOrderRepository(ABC):
    @abstractmethod
    def create(self, order: Order) -> Order:
        """Persists a new order, assigning id, order number and created_at. Raises PersistenceError."""
        pass

    @abstractmethod
    def get(self, order_id: str) -> Optional[Order]:
        pass
