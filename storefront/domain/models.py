import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, JSON, String, Text

from storefront.infrastructure.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


def _new_id():
    return uuid.uuid4().hex


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=_new_id)
    order_number = Column(String(32), unique=True, index=True, nullable=False)

    # Items and customer block are stored as documents: one order is one
    # self-contained record, never updated after creation.
    items = Column(JSON, nullable=False)  # [{product: {id, name, price, image}, quantity}]
    total_price = Column(Float, nullable=False)
    customer_info = Column(JSON, nullable=False)  # {email, name, phone, city, comment?}

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    external_id = Column(String(64), unique=True, index=True, nullable=False)
    slug = Column(String(255), unique=True, index=True)
    name = Column(String(512), nullable=False)
    full_name = Column(Text)

    # Normalized shadow fields, refreshed by the repository before every write
    name_search = Column(String(512), index=True, default="")
    full_name_search = Column(Text, default="")

    price = Column(Float, default=0)
    currency = Column(String(16))
    unit = Column(String(32))
    unit_code = Column(String(16))
    group_id = Column(String(64), index=True)
    category = Column(String(255), index=True)
    weight = Column(Float, default=0)
    quantity = Column(Float)
    description = Column(Text)
    image = Column(String(512))
    in_stock = Column(Boolean, default=True)
    attributes = Column(JSON, default=dict)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=_new_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    roles = Column(JSON, default=lambda: ["user"], nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
