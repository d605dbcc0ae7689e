# app/routers/cart.py

import logging
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.dependencies import Identity, get_current_user, get_db
from app.schemas.cart import (
    CartItemAdd, CartLineOut, CartQuantityUpdate, CartSyncRequest, CartSyncResponse, MessageResponse
)
from app.services import cart as cart_service
from app.core import locales

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cart")


# --- Cart endpoints ---

@router.get("", response_model=List[CartLineOut])
async def get_cart(
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Full cart of the current user with current catalog prices."""
    return cart_service.get_user_cart(db, current_user)


@router.post("", response_model=MessageResponse)
async def add_cart_item(
    payload: CartItemAdd,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Adds an item to the cart. If the line exists its quantity grows by the
    given amount, otherwise a new line is created.
    """
    cart_service.add_item(db, current_user, payload.item)
    return {"message": locales.SUCCESS_CART_UPDATED}


@router.post("/sync", response_model=CartSyncResponse)
async def sync_cart(
    payload: CartSyncRequest,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Merges the guest cart submitted at login into the user's cart."""
    return cart_service.sync_cart(db, current_user, payload.local_cart)


@router.put("/{item_id}", response_model=MessageResponse)
async def update_cart_item(
    item_id: str,
    payload: CartQuantityUpdate,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Sets the quantity of a line."""
    cart_service.update_quantity(db, current_user, item_id, payload.quantity)
    return {"message": locales.SUCCESS_QUANTITY_UPDATED}


@router.delete("/{item_id}", response_model=MessageResponse)
async def delete_cart_item(
    item_id: str,
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Removes a line from the cart."""
    cart_service.remove_item(db, current_user, item_id)
    return {"message": locales.SUCCESS_ITEM_REMOVED_FROM_CART}


@router.delete("", response_model=MessageResponse)
async def clear_cart(
    current_user: Identity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Removes every line of the user's cart."""
    cart_service.clear_cart(db, current_user)
    return {"message": locales.SUCCESS_CART_CLEARED}
