from enum import IntEnum
from typing import Optional

from pydantic import Field

from models.base import RequestModel


class ProductStatus(IntEnum):
    PENDING = 0
    APPROVED = 1
    REJECTED = -1
    DELETED = -2


# request key -> stored key
PRODUCT_FIELD_MAP = {
    "product_name": "name",
    "product_price": "price",
    "product_currency": "currency",
    "product_qty": "quantity",
    "product_unit": "unit",
    "product_category": "category",
    "product_country": "country",
    "product_color": "color",
    "product_source_material": "source_material",
    "product_batch_size": "batch_size",
    "product_minimum_order_quantity": "minimum_order_quantity",
    "product_application": "application",
    "product_desc": "description",
    "product_additional_notes": "additional_notes",
}


class _ProductFields(RequestModel):
    product_currency: Optional[str] = Field(None, max_length=8)
    product_unit: Optional[str] = Field(None, max_length=32)
    product_category: Optional[str] = None
    product_country: Optional[str] = None
    product_color: Optional[str] = None
    product_source_material: Optional[str] = None
    product_batch_size: Optional[int] = Field(None, ge=0)
    product_minimum_order_quantity: Optional[int] = Field(None, ge=0)
    product_application: Optional[str] = None
    product_desc: Optional[str] = None
    product_additional_notes: Optional[str] = None

    def to_document(self) -> dict:
        """
        Stored representation of the keys the client actually sent.
        """
        data = self.model_dump(exclude_unset=True)
        return {PRODUCT_FIELD_MAP[key]: value for key, value in data.items()}


class ProductCreate(_ProductFields):
    product_name: str = Field(..., min_length=1, max_length=200)
    product_price: float = Field(..., ge=0)
    product_qty: int = Field(..., ge=0)


class ProductUpdate(_ProductFields):
    # explicit nulls are rejected for these
    product_name: str = Field(None, min_length=1, max_length=200)
    product_price: float = Field(None, ge=0)
    product_qty: int = Field(None, ge=0)
