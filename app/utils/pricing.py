# app/utils/pricing.py

from decimal import Decimal
from typing import Optional, Union

Number = Union[int, float, Decimal]


def to_money(value: Optional[Number]) -> float:
    """Numeric columns come back as Decimal, the API works with floats."""
    if value is None:
        return 0.0
    return round(float(value), 2)


def effective_price(price: Optional[Number], sale_price: Optional[Number] = None) -> float:
    """Sale price if present and positive, otherwise the list price."""
    if sale_price is not None and float(sale_price) > 0:
        return to_money(sale_price)
    return to_money(price)
