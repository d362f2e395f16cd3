"""
Order payload validation.

The validator never raises: it walks the whole payload and collects every
problem, so the client can fix its form in one round trip.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any, List

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PHONE_LENGTH = 10
MIN_NAME_LENGTH = 2
MIN_CITY_LENGTH = 2


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)


def _is_number(value: Any) -> bool:
    """Finite int or float. NaN, Infinity and ints beyond float range are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(float(value))
    except OverflowError:
        return False


def _is_int(value: Any) -> bool:
    if not _is_number(value):
        return False
    return isinstance(value, int) or value.is_integer()


def _validate_item(index: int, item: Any, errors: List[str]):
    prefix = f"items[{index}]"
    if not isinstance(item, dict):
        errors.append(f"{prefix} must be an object")
        return

    item_id = item.get("id")
    if isinstance(item_id, bool) or not (
        (isinstance(item_id, str) and item_id.strip()) or isinstance(item_id, int)
    ):
        errors.append(f"{prefix}.id is required")

    if not isinstance(item.get("name"), str):
        errors.append(f"{prefix}.name must be a string")

    price = item.get("price")
    if not _is_number(price) or price < 0:
        errors.append(f"{prefix}.price must be a non-negative number")

    quantity = item.get("quantity")
    if not _is_int(quantity) or quantity < 1:
        errors.append(f"{prefix}.quantity must be an integer >= 1")


def _validate_customer(customer: Any, errors: List[str]):
    if not isinstance(customer, dict):
        errors.append("customerInfo is required")
        return

    email = customer.get("email")
    if not isinstance(email, str) or not EMAIL_RE.match(email.strip()):
        errors.append("customerInfo.email must be a valid email address")

    name = customer.get("name")
    if not isinstance(name, str) or len(name.strip()) < MIN_NAME_LENGTH:
        errors.append(f"customerInfo.name must be at least {MIN_NAME_LENGTH} characters")

    phone = customer.get("phone")
    if not isinstance(phone, str) or len(phone) < MIN_PHONE_LENGTH:
        errors.append(f"customerInfo.phone must be at least {MIN_PHONE_LENGTH} characters")

    city = customer.get("city")
    if not isinstance(city, str) or len(city.strip()) < MIN_CITY_LENGTH:
        errors.append(f"customerInfo.city must be at least {MIN_CITY_LENGTH} characters")

    comment = customer.get("comment")
    if comment is not None and not isinstance(comment, str):
        errors.append("customerInfo.comment must be a string")

    if not customer.get("privacyConsent"):
        errors.append("customerInfo.privacyConsent must be accepted")


def order_total(payload: dict) -> Any:
    """`totalPrice` wins over the legacy `total` key."""
    if payload.get("totalPrice") is not None:
        return payload["totalPrice"]
    return payload.get("total")


def validate_order_payload(payload: Any) -> ValidationResult:
    errors: List[str] = []

    if not isinstance(payload, dict):
        return ValidationResult(is_valid=False, errors=["Request body must be a JSON object"])

    items = payload.get("items")
    if not isinstance(items, list) or not items:
        errors.append("items must be a non-empty array")
    else:
        for index, item in enumerate(items):
            _validate_item(index, item, errors)

    total = order_total(payload)
    if not _is_number(total) or total < 0:
        errors.append("totalPrice must be a non-negative number")

    _validate_customer(payload.get("customerInfo"), errors)

    return ValidationResult(is_valid=not errors, errors=errors)
