# app/schemas/order.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict, field_validator
from typing import List, Optional

from app.utils.pricing import to_money


class OrderLineItem(BaseModel):
    product_id: int
    name: Optional[str] = None
    image: Optional[str] = None
    quantity: int
    price_at_purchase: float

    @field_validator('price_at_purchase', mode='before')
    @classmethod
    def validate_money(cls, v):
        return to_money(v)


class VirtualOrderLine(BaseModel):
    id: str
    name: str
    price: float
    image: Optional[str] = None
    quantity: int


class Order(BaseModel):
    id: int
    status: str
    total_price: float
    created_at: datetime
    order_items: List[OrderLineItem] = []
    virtual_items: List[VirtualOrderLine] = []

    model_config = ConfigDict(from_attributes=True)

    @field_validator('total_price', mode='before')
    @classmethod
    def validate_total(cls, v):
        return to_money(v)

    @field_validator('virtual_items', mode='before')
    @classmethod
    def validate_virtual_items(cls, v):
        # The JSON column is NULL when the order had no virtual lines
        return v or []


class OrderCreated(BaseModel):
    message: str
    order: Order
