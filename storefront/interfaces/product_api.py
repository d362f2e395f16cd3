from fastapi import APIRouter, Depends, Query, Request

from storefront.domain.models import User
from storefront.domain.schemas import ProductIn
from storefront.interfaces.auth_api import require_role

router = APIRouter(prefix="/api/product", tags=["products"])


@router.get("")
def list_products(request: Request, page: int = Query(1, ge=1), limit: int = Query(50, ge=1, le=200)):
    return request.app.state.catalog_service.list_products(page, limit)


@router.get("/{product_id}")
def get_product(product_id: str, request: Request):
    """Lookup by catalog external id or by slug."""
    return request.app.state.catalog_service.get_product(product_id)


@router.post("", status_code=201)
def create_product(payload: ProductIn, request: Request, user: User = Depends(require_role("admin"))):
    return request.app.state.catalog_service.create_product(payload)
