# app/schemas/product.py
from enum import Enum
from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional

from app.utils.pricing import effective_price, to_money


class BuildCategory(str, Enum):
    """Closed set of component categories of the PC builder."""
    CPUS = "CPUs"
    MOTHERBOARDS = "Motherboards"
    RAM = "RAM"
    STORAGE = "Storage"
    PSUS = "PSUs"
    CASINGS = "Casings"
    GRAPHICS_CARDS = "Graphics Cards"
    MONITORS = "Monitors"


class Component(BaseModel):
    """Catalog product with the compatibility attributes used by the builder."""
    id: int
    name: str
    category: str
    price: float
    sale_price: Optional[float] = None
    image: Optional[str] = None
    stock: Optional[int] = None
    cpu_socket_id: Optional[int] = None
    ram_type_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator('price', 'sale_price', mode='before')
    @classmethod
    def validate_money(cls, v):
        # Numeric columns are read back as Decimal
        if v is None:
            return v
        return to_money(v)

    @property
    def effective_price(self) -> float:
        return effective_price(self.price, self.sale_price)
