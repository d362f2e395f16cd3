from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"

SORT_OPTIONS = ("price-asc", "price-desc", "name-asc", "name-desc")


# --- Auth ---
class RegisterRequest(BaseModel):
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value


class LoginRequest(BaseModel):
    email: str
    password: str


# --- Catalog ---
class CatalogQuery(BaseModel):
    group_id: str
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    in_stock: bool = False
    categories: List[str] = []
    sort: Optional[str] = None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class ProductIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    external_id: str = Field(alias="externalId", min_length=1)
    name: str = Field(min_length=1)
    full_name: Optional[str] = Field(default=None, alias="fullName")
    price: float = Field(default=0, ge=0)
    currency: Optional[str] = None
    unit: Optional[str] = None
    unit_code: Optional[str] = Field(default=None, alias="unitCode")
    group_id: Optional[str] = Field(default=None, alias="groupId")
    category: Optional[str] = None
    weight: float = 0
    quantity: Optional[float] = None
    description: Optional[str] = None
    image: Optional[str] = None
    in_stock: bool = Field(default=True, alias="inStock")
    attributes: Dict[str, Any] = {}


# --- Order notification ---
@dataclass
class OrderNotification:
    subject: str
    html: str
    text: str
    attachment: Optional[bytes] = None
    attachment_filename: Optional[str] = None
