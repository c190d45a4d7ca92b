"""
WebApp API Pydantic Models

Request bodies shared by the storefront endpoints.
"""
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


# ==================== CATALOG MODELS ====================

class FilterStateRequest(BaseModel):
    selected_categories: list[str] = []
    selected_supplier: Optional[str] = None


class SearchRequest(BaseModel):
    text: str = ""
    key: str = "Enter"


# ==================== CART MODELS ====================

class AddCartItemRequest(BaseModel):
    item_name: str = Field(min_length=1)
    quantity: Decimal = Decimal(1)


class UpdateCartItemRequest(BaseModel):
    quantity: Decimal  # <= 0 removes the line


class SaveCartRequest(BaseModel):
    cart_name: str = Field(min_length=1)
    is_template: bool = False


class UpdateSavedCartRequest(BaseModel):
    is_template: bool
