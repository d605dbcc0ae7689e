# app/services/order.py

import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core import locales
from app.core.exceptions import InvalidArgument, UpstreamFailure
from app.crud import order as crud_order
from app.dependencies import Identity
from app.models.order import Order as OrderModel
from app.schemas.order import Order, OrderLineItem, VirtualOrderLine
from app.services import cart as cart_service

logger = logging.getLogger(__name__)


def _order_out(order: OrderModel) -> Order:
    return Order(
        id=order.id,
        status=order.status,
        total_price=order.total_price,
        created_at=order.created_at,
        order_items=[
            OrderLineItem(
                product_id=line.product_id,
                name=line.product.name if line.product else None,
                image=line.product.image if line.product else None,
                quantity=line.quantity,
                price_at_purchase=line.price_at_purchase,
            )
            for line in order.order_items
        ],
        virtual_items=order.virtual_items or [],
    )


def create_order_from_cart(db: Session, current_user: Identity) -> Order:
    """
    Submits the caller's server cart as an order. Prices are taken from the
    authoritative cart read, not from the client.
    """
    cart_lines = cart_service.get_user_cart(db, current_user)
    if not cart_lines:
        raise InvalidArgument(locales.ERROR_CART_EMPTY)

    catalog_lines = [line for line in cart_lines if isinstance(line.id, int)]
    virtual_lines = [line for line in cart_lines if isinstance(line.id, str)]
    total_price = round(sum(line.price * line.quantity for line in cart_lines), 2)

    try:
        order = crud_order.create_order(
            db,
            user_id=current_user.id,
            total_price=total_price,
            order_items=[
                {"product_id": line.id, "quantity": line.quantity, "price_at_purchase": line.price}
                for line in catalog_lines
            ],
            virtual_items=[
                VirtualOrderLine.model_validate(line.model_dump()).model_dump()
                for line in virtual_lines
            ],
        )
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Error creating order for user {current_user.id}", exc_info=True)
        raise UpstreamFailure(locales.ERROR_STORAGE_UNAVAILABLE)

    logger.info(f"Order {order.id} created for user {current_user.id}: total={total_price}, lines={len(cart_lines)}")
    return _order_out(order)


def get_user_orders(db: Session, current_user: Identity) -> List[Order]:
    try:
        return [_order_out(order) for order in crud_order.get_user_orders(db, current_user.id)]
    except SQLAlchemyError:
        logger.error(f"Error fetching orders for user {current_user.id}", exc_info=True)
        raise UpstreamFailure(locales.ERROR_STORAGE_UNAVAILABLE)
