# app/schemas/package.py
from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional

from app.schemas.cart import PACKAGE_PREFIX, VirtualItem
from app.utils.pricing import to_money

UNIT_ONLY_SUFFIX = "-unit"


class Package(BaseModel):
    id: int
    name: str
    image_url: str
    price_complete: float
    price_unit_only: Optional[float] = None
    description: Optional[str] = None
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)

    @field_validator('price_complete', 'price_unit_only', mode='before')
    @classmethod
    def validate_money(cls, v):
        if v is None:
            return v
        return to_money(v)

    def as_cart_item(self, unit_only: bool = False) -> VirtualItem:
        """
        Packages go to the cart as virtual lines "pkg-<id>". The unit-only
        variant is a different item with its own line "pkg-<id>-unit".
        """
        virtual_id = f"{PACKAGE_PREFIX}{self.id}"
        price = self.price_complete
        name = self.name
        if unit_only and self.price_unit_only is not None:
            virtual_id = f"{virtual_id}{UNIT_ONLY_SUFFIX}"
            price = self.price_unit_only
            name = f"{self.name} (unit only)"
        return VirtualItem(
            virtual_id=virtual_id,
            name=name,
            price=price,
            image=self.image_url,
        )
