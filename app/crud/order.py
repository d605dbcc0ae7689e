# app/crud/order.py
from typing import List, Optional
from sqlalchemy.orm import Session

from app.models.cart import CartItem
from app.models.order import Order, OrderItem


def create_order(
    db: Session,
    user_id: str,
    total_price: float,
    order_items: List[dict],
    virtual_items: Optional[List[dict]],
) -> Order:
    """
    Creates the order with its catalog lines and empties the cart in the same transaction.
    """
    order = Order(user_id=user_id, total_price=total_price, virtual_items=virtual_items or None)
    for line in order_items:
        order.order_items.append(OrderItem(**line))
    db.add(order)
    db.query(CartItem).filter_by(user_id=user_id).delete()
    db.commit()
    db.refresh(order)
    return order

def get_user_orders(db: Session, user_id: str) -> List[Order]:
    return db.query(Order).filter(Order.user_id == user_id).order_by(Order.created_at.desc(), Order.id.desc()).all()
