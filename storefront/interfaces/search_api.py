from typing import Optional

from fastapi import APIRouter, Query, Request

from storefront.application.search_service import DEFAULT_LIMIT, MAX_LIMIT

router = APIRouter(prefix="/api", tags=["search"])


@router.get("/search")
def search(
    request: Request,
    q: Optional[str] = None,
    query: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
):
    # `query` is the name older frontends send
    raw = q if q is not None else query
    return request.app.state.search_service.search(raw, page=page, limit=limit)
