import logging
from typing import Any

from fastapi import APIRouter, Body, Request

router = APIRouter(prefix="/api/orders", tags=["orders"])
logger = logging.getLogger(__name__)


@router.post("", status_code=201)
async def create_order(request: Request, payload: Any = Body(default=None)):
    """
    Accepts an order from the storefront checkout.
    400 when the payload is invalid, 500/503 when it could not be stored,
    201 (optionally with `warning`) once it is stored.
    """
    pipeline = request.app.state.order_pipeline
    result = await pipeline.submit(payload)
    return result.to_response()
