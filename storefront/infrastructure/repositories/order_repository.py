import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from storefront.core.exceptions import PersistenceError
from storefront.domain.models import Order
from storefront.interfaces.IOrderRepository import IOrderRepository

logger = logging.getLogger(__name__)

# a clash on the short order number is retried with a fresh id
ORDER_NUMBER_ATTEMPTS = 3


def persistence_error(e: SQLAlchemyError, action: str) -> PersistenceError:
    """Connectivity problems are 503 (retry later), everything else is 500."""
    if isinstance(e, OperationalError):
        return PersistenceError(f"Database unavailable while trying to {action}", status_code=503)
    return PersistenceError(f"Database rejected the request to {action}")


class SqlOrderRepository(IOrderRepository):

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def create(self, order: Order) -> Order:
        # Identity and timestamp are assigned here, once; orders are never updated.
        order.created_at = order.created_at or datetime.now(timezone.utc)

        for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
            if attempt > 1 or not order.id:
                order.id = uuid.uuid4().hex
            order.order_number = f"{order.created_at:%Y%m%d}-{order.id[:6].upper()}"

            session = self.session_factory()
            try:
                session.add(order)
                session.commit()
                session.refresh(order)
                session.expunge(order)
                return order
            except IntegrityError as e:
                session.rollback()
                if attempt < ORDER_NUMBER_ATTEMPTS:
                    logger.warning(f"⚠️ Order number {order.order_number} already taken, retrying with a new id")
                    continue
                logger.error(f"❌ DB Error while saving order {order.id}: {e}")
                raise persistence_error(e, "save the order") from e
            except SQLAlchemyError as e:
                logger.error(f"❌ DB Error while saving order {order.id}: {e}")
                session.rollback()
                raise persistence_error(e, "save the order") from e
            finally:
                session.close()

    def get(self, order_id: str) -> Optional[Order]:
        session = self.session_factory()
        try:
            order = session.get(Order, order_id)
            if order is not None:
                session.expunge(order)
            return order
        except SQLAlchemyError as e:
            logger.error(f"❌ DB Read Error: {e}")
            raise persistence_error(e, "load the order") from e
        finally:
            session.close()
