from abc import ABC, abstractmethod

from storefront.domain.schemas import OrderNotification


class IMailDispatcher(ABC):
    @abstractmethod
    async def send(self, notification: OrderNotification) -> None:
        """Sends one message to the operator. Raises ConfigurationError or DispatchError."""
        pass
