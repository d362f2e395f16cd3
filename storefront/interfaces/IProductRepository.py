from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Tuple

from storefront.domain.models import Product
from storefront.domain.schemas import CatalogQuery


class IProductRepository(ABC):
    @abstractmethod
    def get_by_external_id_or_slug(self, key: str) -> Optional[Product]:
        pass

    @abstractmethod
    def list_by_group(self, query: CatalogQuery) -> Tuple[List[Product], int]:
        """Returns the requested page and the total number of matches."""
        pass

    @abstractmethod
    def list_all(self, offset: int, limit: int) -> Tuple[List[Product], int]:
        pass

    @abstractmethod
    def search(self, term: str, offset: int, limit: int) -> List[Product]:
        """Prefix search over the normalized name fields. `term` is already normalized."""
        pass

    @abstractmethod
    def list_categories(self) -> List[str]:
        pass

    @abstractmethod
    def add(self, product: Product) -> Product:
        pass

    @abstractmethod
    def replace_all(self, products: Iterable[Product]) -> int:
        pass

    @abstractmethod
    def rebuild_search_fields(self, batch_size: int = 1000) -> Tuple[int, int]:
        """Recomputes shadow fields. Returns (seen, modified)."""
        pass
