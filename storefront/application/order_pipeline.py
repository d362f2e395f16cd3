"""
Order submission pipeline.

Validating -> Normalizing -> Persisting -> ComposingNotification -> Dispatching

Persistence is the point of no return: once the order is stored it is
accepted, and every later failure only adds a warning to the 201 response.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fastapi.concurrency import run_in_threadpool

from storefront.core.config import ImageUrlConfig
from storefront.core.exceptions import (
    CompositionError,
    ConfigurationError,
    DispatchError,
    InputValidationError,
    PersistenceError,
)
from storefront.application.validation import order_total, validate_order_payload
from storefront.domain.models import Order
from storefront.domain.normalization import normalize_items_images, transform_items
from storefront.domain.outcomes import Outcome, StageResult
from storefront.domain.schemas import OrderNotification
from storefront.infrastructure.notification_composer import NotificationComposer
from storefront.interfaces.IMailDispatcher import IMailDispatcher
from storefront.interfaces.IOrderRepository import IOrderRepository

logger = logging.getLogger(__name__)

CUSTOMER_FIELDS = ("email", "name", "phone", "city")

WARN_BODY_FAILED = "Order notification could not be composed; e-mail was not sent"
WARN_SHEET_FAILED = "Order spreadsheet could not be generated; e-mail sent without attachment"
WARN_NOT_CONFIGURED = "E-mail notification is not configured; e-mail was not sent"
WARN_SEND_FAILED = "E-mail notification could not be sent"


@dataclass
class SubmissionResult:
    order: Order
    warnings: List[str] = field(default_factory=list)

    @property
    def warning(self) -> Optional[str]:
        return "; ".join(self.warnings) if self.warnings else None

    def to_response(self) -> Dict[str, Any]:
        body = {
            "success": True,
            "message": "Order received",
            "orderId": self.order.id,
            "orderNumber": self.order.order_number,
        }
        if self.warnings:
            body["warning"] = self.warning
        return body


def build_order(payload: Dict[str, Any], image_config: ImageUrlConfig) -> Order:
    """Normalizes image URLs and reshapes the flat items into the stored form."""
    customer = payload["customerInfo"]
    customer_info = {key: customer[key] for key in CUSTOMER_FIELDS}
    if customer.get("comment") is not None:
        customer_info["comment"] = customer["comment"]

    return Order(
        items=transform_items(normalize_items_images(payload["items"], image_config)),
        # Trusted as sent by the client, not recomputed from the items
        total_price=float(order_total(payload)),
        customer_info=customer_info,
    )


class OrderSubmissionPipeline:
    def __init__(
        self,
        order_repo: IOrderRepository,
        composer: NotificationComposer,
        mail_dispatcher: IMailDispatcher,
        image_config: ImageUrlConfig,
    ):
        self.order_repo = order_repo
        self.composer = composer
        self.mail_dispatcher = mail_dispatcher
        self.image_config = image_config

    async def submit(self, payload: Any) -> SubmissionResult:
        # 1. VALIDATE
        validation = validate_order_payload(payload)
        if not validation.is_valid:
            logger.info(f"Order rejected: {len(validation.errors)} validation error(s)")
            raise InputValidationError("Validation failed", details=validation.errors)

        # 2. NORMALIZE
        order = build_order(payload, self.image_config)

        # 3. PERSIST
        persisted = await self._persist(order)
        if persisted.outcome is Outcome.FATAL:
            raise persisted.error
        order = persisted.value
        log_prefix = f"[Order: {order.id}]"
        logger.info(f"{log_prefix} Persisted as №{order.order_number}.")

        # 4. COMPOSE + DISPATCH (degrade only)
        composed = self._compose(order)
        dispatched = await self._dispatch(order, composed.value)

        result = SubmissionResult(order=order)
        for stage in (composed, dispatched):
            if stage.outcome is Outcome.DEGRADED:
                result.warnings.append(stage.reason)

        if result.warnings:
            logger.warning(f"{log_prefix} Accepted with warnings: {result.warning}")
        else:
            logger.info(f"{log_prefix} Accepted, operator notified.")
        return result

    # --- STAGES ---

    async def _persist(self, order: Order) -> StageResult:
        try:
            saved = await run_in_threadpool(self.order_repo.create, order)
            return StageResult.ok(saved)
        except PersistenceError as e:
            logger.error(f"Order could not be persisted: {e.message}")
            return StageResult.fatal(e.message, error=e)

    def _compose(self, order: Order) -> StageResult:
        log_prefix = f"[Order: {order.id}]"
        try:
            notification = self.composer.compose_message(order)
        except CompositionError as e:
            return StageResult.degraded(WARN_BODY_FAILED, error=e)
        except Exception as e:
            logger.error(f"{log_prefix} Unexpected error while composing: {e}", exc_info=True)
            return StageResult.degraded(WARN_BODY_FAILED, error=e)

        if not self.composer.spreadsheet_enabled:
            return StageResult.ok(notification)

        try:
            notification.attachment = self.composer.compose_spreadsheet(order)
            notification.attachment_filename = self.composer.spreadsheet_filename(order)
        except Exception as e:
            logger.warning(f"{log_prefix} Sending without spreadsheet: {e}")
            return StageResult.degraded(WARN_SHEET_FAILED, value=notification, error=e)

        return StageResult.ok(notification)

    async def _dispatch(self, order: Order, notification: Optional[OrderNotification]) -> StageResult:
        log_prefix = f"[Order: {order.id}]"
        if notification is None:
            # Nothing to send, the composition warning already covers it
            return StageResult.ok()

        try:
            await self.mail_dispatcher.send(notification)
            return StageResult.ok()
        except ConfigurationError as e:
            logger.warning(f"{log_prefix} Mail not sent: {e.message}")
            return StageResult.degraded(WARN_NOT_CONFIGURED, error=e)
        except DispatchError as e:
            logger.error(f"{log_prefix} Mail not sent: {e.message}")
            return StageResult.degraded(WARN_SEND_FAILED, error=e)
        except Exception as e:
            logger.critical(f"{log_prefix} Unexpected mail error: {e}", exc_info=True)
            return StageResult.degraded(WARN_SEND_FAILED, error=e)
