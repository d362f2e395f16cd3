from typing import List, Optional

from fastapi import APIRouter, Query, Request

from storefront.domain.schemas import CatalogQuery

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/catalog/{category}")
def get_by_category(
    request: Request,
    category: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    in_stock: Optional[str] = Query(None, alias="inStock"),
    category_name: Optional[str] = Query(None, alias="category"),
    categories: Optional[List[str]] = Query(None),
    sort: Optional[str] = None,
):
    """`category` in the path is the catalog group id."""
    filters = categories or ([category_name] if category_name else [])
    query = CatalogQuery(
        group_id=category,
        page=page,
        limit=limit,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock == "true",
        categories=filters,
        sort=sort,
    )
    return request.app.state.catalog_service.list_category(query)


@router.get("/categories")
def list_categories(request: Request):
    return request.app.state.catalog_service.list_categories()
