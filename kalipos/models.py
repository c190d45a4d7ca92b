"""Database Models - Pydantic models for catalog items, orders and saved carts."""
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from kalipos.services.quantity import to_decimal

ORDER_STATUS_NEW = "New"

AD_HOC_CATEGORY = "New Item"
AD_HOC_SUPPLIER = "Unknown"


class CatalogItem(BaseModel):
    """Row of the read-only ``items`` table."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    kind: Literal["catalog"] = "catalog"
    item_name: str
    category: Optional[str] = None
    default_supplier: Optional[str] = None
    supplier_alternative: Optional[str] = None
    measure_unit: Optional[str] = None
    default_quantity: Optional[str] = None
    brand_tag: Optional[str] = None

    @field_validator(
        "category", "default_supplier", "supplier_alternative",
        "measure_unit", "default_quantity", "brand_tag",
        mode="before",
    )
    @classmethod
    def coerce_text(cls, v):
        # Spreadsheet imports leave numbers and empty strings in text columns
        if v is None or v == "":
            return None
        return str(v)

    @property
    def name(self) -> str:
        return self.item_name

    @property
    def supplier(self) -> Optional[str]:
        return self.default_supplier


class AdHocItem(BaseModel):
    """Item synthesized from search-box text that matched nothing in the catalog."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["ad_hoc"] = "ad_hoc"
    item_name: str
    category: str = AD_HOC_CATEGORY
    default_supplier: str = AD_HOC_SUPPLIER

    @property
    def name(self) -> str:
        return self.item_name

    @property
    def supplier(self) -> str:
        return self.default_supplier


class Order(BaseModel):
    """Order header row (``orders`` table)."""
    model_config = ConfigDict(extra="ignore")

    id: str
    order_number: str
    telegram_user_id: Optional[int] = None
    status: str = ORDER_STATUS_NEW
    created_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def convert_id_to_str(cls, v):
        return str(v)


class OrderLine(BaseModel):
    """Order child row (``order_items`` table)."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    order_id: str
    item_name: str
    quantity: Decimal
    category: Optional[str] = None
    is_available: bool = True
    is_confirmed: bool = False

    @field_validator("quantity", mode="before")
    @classmethod
    def convert_quantity_to_decimal(cls, v):
        return to_decimal(v)

    @field_validator("id", "order_id", mode="before")
    @classmethod
    def convert_ids_to_str(cls, v):
        return None if v is None else str(v)


class OrderWithLines(BaseModel):
    """Order header together with its lines, for order history views."""
    order: Order
    lines: list[OrderLine] = []


class SavedCartLine(BaseModel):
    """Row of ``cart_items``."""
    model_config = ConfigDict(extra="ignore")

    item_name: str
    quantity: Decimal
    category: Optional[str] = None

    @field_validator("quantity", mode="before")
    @classmethod
    def convert_quantity_to_decimal(cls, v):
        return to_decimal(v)


class SavedCart(BaseModel):
    """Named cart saved by a user (``carts`` table), optionally a template."""
    model_config = ConfigDict(extra="ignore")

    id: str
    cart_name: str
    telegram_user_id: int
    is_template: bool = False
    created_at: Optional[datetime] = None
    items: list[SavedCartLine] = []

    @field_validator("id", mode="before")
    @classmethod
    def convert_id_to_str(cls, v):
        return str(v)
