# app/routers/order.py
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core import locales
from app.dependencies import Identity, get_current_user, get_db
from app.schemas.order import Order, OrderCreated
from app.services import order as order_service

router = APIRouter()


@router.post("/orders", response_model=OrderCreated, status_code=status.HTTP_201_CREATED)
async def create_new_order(
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Places an order for the current content of the user's cart and empties the cart."""
    order = order_service.create_order_from_cart(db, current_user)
    return {"message": locales.SUCCESS_ORDER_CREATED, "order": order}


@router.get("/orders", response_model=List[Order])
async def get_orders_history(
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Order history of the current user, newest first."""
    return order_service.get_user_orders(db, current_user)
