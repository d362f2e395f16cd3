from abc import ABC, abstractmethod
from typing import Optional

from storefront.domain.models import User


class IUserRepository(ABC):
    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    def get(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    def create(self, user: User) -> User:
        """Raises ConflictError when the email is already registered."""
        pass
