# app/crud/product.py
from typing import Iterable, List, Optional
from sqlalchemy.orm import Session

from app.models.product import Product


def get_product_by_id(db: Session, product_id: int) -> Optional[Product]:
    return db.query(Product).filter(Product.id == product_id).first()

def get_products_by_ids(db: Session, product_ids: Iterable[int]) -> List[Product]:
    product_ids = list(product_ids)
    if not product_ids:
        return []
    return db.query(Product).filter(Product.id.in_(product_ids)).all()

def get_products_by_category(
    db: Session,
    category: str,
    cpu_socket_id: Optional[int] = None,
    ram_type_id: Optional[int] = None,
) -> List[Product]:
    """Products of one category, optionally narrowed by compatibility attributes."""
    query = db.query(Product).filter(Product.category == category)
    if cpu_socket_id is not None:
        query = query.filter(Product.cpu_socket_id == cpu_socket_id)
    if ram_type_id is not None:
        query = query.filter(Product.ram_type_id == ram_type_id)
    return query.order_by(Product.id).all()
