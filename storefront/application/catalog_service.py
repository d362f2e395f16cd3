import logging
import math
from typing import Any, Dict, Optional

from storefront.core.exceptions import NotFoundError
from storefront.domain.models import Product
from storefront.domain.schemas import CatalogQuery, ProductIn
from storefront.interfaces.IProductRepository import IProductRepository

logger = logging.getLogger(__name__)


def product_image_path(image: Optional[str]) -> Optional[str]:
    """Catalog images are served by the API under /images."""
    if not image:
        return None
    if image.startswith("http://") or image.startswith("https://"):
        return image
    return f"/images/{image.lstrip('/')}"


def _format_number(value) -> str:
    return f"{value or 0:g}"


def product_list_view(product: Product) -> Dict[str, Any]:
    return {
        "id": product.external_id,
        "name": product.name,
        "description": product.description,
        "price": product.price,
        "image": product_image_path(product.image),
        "stock": product.quantity,
        "inStock": product.in_stock,
    }


def product_detail_view(product: Product) -> Dict[str, Any]:
    attributes = product.attributes or {}
    return {
        "id": product.external_id,
        "slug": product.slug,
        "name": product.name,
        "description": product.description,
        "fullName": product.full_name,
        "price": product.price,
        "currency": product.currency,
        "unit": product.unit,
        "stock": product.quantity,
        "inStock": product.in_stock,
        "image": product_image_path(product.image),
        "characteristics": {
            "Вес": _format_number(product.weight),
            "ВидНоменклатуры": attributes.get("ВидНоменклатуры"),
            "ТипНоменклатуры": attributes.get("ТипНоменклатуры"),
        },
    }


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


class CatalogService:
    def __init__(self, product_repo: IProductRepository):
        self.product_repo = product_repo

    def list_category(self, query: CatalogQuery) -> Dict[str, Any]:
        products, total = self.product_repo.list_by_group(query)
        logger.debug(f"Catalog {query.group_id}: page={query.page} total={total}")

        # An empty page is reported as a missing category, not as an empty list
        if not products:
            raise NotFoundError("Category not found")

        return {
            "category": query.group_id,
            "products": [product_list_view(p) for p in products],
            "page": query.page,
            "totalPages": total_pages(total, query.limit),
            "total": total,
        }

    def list_products(self, page: int, limit: int) -> Dict[str, Any]:
        products, total = self.product_repo.list_all((page - 1) * limit, limit)
        return {
            "products": [product_list_view(p) for p in products],
            "page": page,
            "totalPages": total_pages(total, limit),
            "total": total,
        }

    def get_product(self, key: str) -> Dict[str, Any]:
        product = self.product_repo.get_by_external_id_or_slug(key)
        if product is None:
            raise NotFoundError("Product not found")
        return product_detail_view(product)

    def create_product(self, payload: ProductIn) -> Dict[str, Any]:
        product = Product(**payload.model_dump())
        saved = self.product_repo.add(product)
        logger.info(f"✅ Product {saved.external_id} created")
        return product_detail_view(saved)

    def list_categories(self) -> Dict[str, Any]:
        return {"categories": self.product_repo.list_categories()}
