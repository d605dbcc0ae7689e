# app/services/cart.py

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core import locales
from app.core.exceptions import Forbidden, InvalidArgument, NotFound, UpstreamFailure
from app.crud import cart as crud_cart
from app.crud import product as crud_product
from app.dependencies import Identity
from app.models.cart import CartItem
from app.schemas.cart import (
    CATALOG, VIRTUAL, CartItemIn, CartLine, CartLineOut, CartLineWire, CartSyncResponse,
    ItemKey, VirtualItem, item_from_wire, parse_item_key
)
from app.utils.pricing import to_money

logger = logging.getLogger(__name__)


# --- Max-wins merge ---

@dataclass
class SyncPlan:
    """Absolute quantities to write, split by conflict target."""
    catalog: Dict[int, int] = field(default_factory=dict)
    virtual: List[Tuple[VirtualItem, int]] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.catalog and not self.virtual


def plan_sync(local_lines: Iterable[CartLine], server_quantities: Dict[ItemKey, int]) -> SyncPlan:
    """
    Reconciles a local (guest) cart with the user's server cart.

    - only in the local cart: inserted with the local quantity;
    - only on the server: left untouched;
    - in both: max(local, server), so neither this device's nor
      another device's additions are lost.
    """
    merged: Dict[ItemKey, CartLine] = {}
    for line in local_lines:
        previous = merged.get(line.key)
        if previous is None or line.quantity > previous.quantity:
            merged[line.key] = line

    plan = SyncPlan()
    for key, line in merged.items():
        server_quantity = server_quantities.get(key)
        if server_quantity is not None and server_quantity >= line.quantity:
            continue
        if key.kind == CATALOG:
            plan.catalog[line.item.product_id] = line.quantity
        else:
            plan.virtual.append((line.item, line.quantity))
    return plan


# --- Reads ---

def _line_out(item: CartItem) -> CartLineOut:
    if item.product_id is not None:
        product = item.product
        return CartLineOut(
            id=item.product_id,
            name=product.name,
            image=product.image,
            price=product.effective_price,
            quantity=item.quantity,
        )
    return CartLineOut(
        id=item.virtual_item_id,
        name=item.virtual_item_name or "",
        image=item.virtual_item_image,
        price=to_money(item.virtual_item_price),
        quantity=item.quantity,
    )


def get_user_cart(db: Session, current_user: Identity) -> List[CartLineOut]:
    """
    Returns the user's cart. Catalog lines get the current name, image and
    effective price of the product. Lines whose product was deleted from the
    store are removed.
    """
    try:
        cart_items_db = crud_cart.get_cart_items(db, user_id=current_user.id)
        response_items = []
        for item in cart_items_db:
            if item.product_id is not None and item.product is None:
                logger.warning(
                    f"Product {item.product_id} is gone from the catalog, removing it from cart of user {current_user.id}."
                )
                crud_cart.delete_cart_item(db, item)
                continue
            response_items.append(_line_out(item))
        return response_items
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Error fetching cart for user {current_user.id}", exc_info=True)
        raise UpstreamFailure(locales.ERROR_STORAGE_UNAVAILABLE)


# --- Writes ---

def _resolve_owned_item(db: Session, current_user: Identity, raw_item_id: Union[int, str]) -> Tuple[ItemKey, CartItem | None]:
    """
    Finds the caller's line for the item. If only another user has such a line
    the request is addressing a line it does not own.
    """
    key = parse_item_key(raw_item_id)
    item = crud_cart.get_cart_item(db, current_user.id, key)
    if item is None and crud_cart.get_foreign_cart_item(db, current_user.id, key) is not None:
        logger.warning(f"User {current_user.id} tried to modify cart item {key.value!r} owned by another user.")
        raise Forbidden(locales.ERROR_FORBIDDEN_CART_ITEM)
    return key, item


def add_item(db: Session, current_user: Identity, item_data: CartItemIn) -> CartItem:
    """Increment-or-insert of a single line."""
    if item_data.quantity <= 0:
        raise InvalidArgument(locales.ERROR_INVALID_ITEM)
    item = item_from_wire(item_data.id, item_data.name, item_data.price, item_data.image)

    try:
        if isinstance(item, VirtualItem):
            return crud_cart.increment_or_insert_virtual_item(db, current_user.id, item, item_data.quantity)

        product = crud_product.get_product_by_id(db, item.product_id)
        if product is None:
            raise NotFound(locales.ERROR_PRODUCT_NOT_FOUND)

        if product.stock is not None:
            existing = crud_cart.get_cart_item(db, current_user.id, item.key)
            in_cart = existing.quantity if existing else 0
            if in_cart + item_data.quantity > product.stock:
                raise InvalidArgument(locales.ERROR_NOT_ENOUGH_STOCK.format(available_quantity=product.stock))

        return crud_cart.increment_or_insert_catalog_item(db, current_user.id, item.product_id, item_data.quantity)
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Error adding/updating cart item {item_data.id!r} for user {current_user.id}", exc_info=True)
        raise UpstreamFailure(locales.ERROR_STORAGE_UNAVAILABLE)


def update_quantity(db: Session, current_user: Identity, raw_item_id: str, quantity: int) -> CartItem:
    """Absolute set. Removal goes through DELETE."""
    if quantity <= 0:
        raise InvalidArgument(locales.ERROR_QUANTITY_NOT_POSITIVE)
    try:
        key, item = _resolve_owned_item(db, current_user, raw_item_id)
        if item is None:
            raise NotFound(locales.ERROR_ITEM_NOT_IN_CART)
        return crud_cart.set_quantity(db, item, quantity)
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Error updating quantity of {raw_item_id!r} for user {current_user.id}", exc_info=True)
        raise UpstreamFailure(locales.ERROR_STORAGE_UNAVAILABLE)


def remove_item(db: Session, current_user: Identity, raw_item_id: str) -> bool:
    """
    Removes the line from the caller's cart. An absent line is not an error,
    whatever other carts contain.
    """
    key = parse_item_key(raw_item_id)
    try:
        item = crud_cart.get_cart_item(db, current_user.id, key)
        if item is None:
            logger.info(f"Cart item {key.value!r} not in cart of user {current_user.id}, nothing to remove.")
            return False
        crud_cart.delete_cart_item(db, item)
        return True
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Error removing {raw_item_id!r} for user {current_user.id}", exc_info=True)
        raise UpstreamFailure(locales.ERROR_STORAGE_UNAVAILABLE)


def clear_cart(db: Session, current_user: Identity) -> int:
    try:
        return crud_cart.clear_cart(db, current_user.id)
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Error clearing cart for user {current_user.id}", exc_info=True)
        raise UpstreamFailure(locales.ERROR_STORAGE_UNAVAILABLE)


def sync_cart(db: Session, current_user: Identity, local_cart: List[CartLineWire]) -> CartSyncResponse:
    """
    Bulk sync of a guest cart at login. Catalog and virtual lines are written
    in two independent transactions, a failure of one batch does not block the other.
    """
    local_lines = []
    for wire_line in local_cart:
        try:
            local_lines.append(CartLine(item=wire_line.to_item(), quantity=wire_line.quantity))
        except (InvalidArgument, ValueError) as e:
            # ValueError covers pydantic's ValidationError (e.g. quantity <= 0)
            logger.warning(f"Skipping invalid local cart line {wire_line.id!r} for user {current_user.id}: {e}")

    try:
        server_quantities = {
            crud_cart.row_key(item): item.quantity
            for item in crud_cart.get_cart_items(db, user_id=current_user.id)
        }
        plan = plan_sync(local_lines, server_quantities)

        if plan.catalog:
            known_ids = {p.id for p in crud_product.get_products_by_ids(db, plan.catalog)}
            for product_id in list(plan.catalog):
                if product_id not in known_ids:
                    logger.warning(f"Skipping unknown product {product_id} in local cart of user {current_user.id}.")
                    del plan.catalog[product_id]
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Error reading cart for sync of user {current_user.id}", exc_info=True)
        raise UpstreamFailure(locales.ERROR_SYNC_FAILED)

    if plan.is_empty():
        logger.info(f"Cart of user {current_user.id} already contains the local cart, nothing to sync.")
        return CartSyncResponse(message=locales.SUCCESS_CART_SYNCED)

    updated: Dict[str, int] = {}
    failed_batches: List[str] = []
    batches = (
        (CATALOG, lambda: crud_cart.upsert_catalog_items(db, current_user.id, plan.catalog)),
        (VIRTUAL, lambda: crud_cart.upsert_virtual_items(db, current_user.id, plan.virtual)),
    )
    for batch_name, run_batch in batches:
        try:
            updated[batch_name] = run_batch()
        except SQLAlchemyError:
            db.rollback()
            logger.error(f"Cart sync batch '{batch_name}' failed for user {current_user.id}", exc_info=True)
            failed_batches.append(batch_name)

    if len(failed_batches) == len(batches):
        raise UpstreamFailure(locales.ERROR_SYNC_FAILED)

    logger.info(f"Synced cart of user {current_user.id}: updated={updated}, failed={failed_batches}")
    message = locales.SUCCESS_CART_PARTIALLY_SYNCED if failed_batches else locales.SUCCESS_CART_SYNCED
    return CartSyncResponse(message=message, updated=updated, failed_batches=failed_batches)
