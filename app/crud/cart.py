# app/crud/cart.py
from typing import Dict, Iterable, List, Tuple
from sqlalchemy.orm import Session

from app.models.cart import CartItem
from app.schemas.cart import CATALOG, VIRTUAL, ItemKey, VirtualItem

# --- CRUD for the cart ---

def _key_filter(key: ItemKey):
    if key.kind == CATALOG:
        return CartItem.product_id == key.value
    return CartItem.virtual_item_id == key.value

def row_key(item: CartItem) -> ItemKey:
    """Key of a persisted line, same shape as the client side keys."""
    if item.product_id is not None:
        return ItemKey(CATALOG, item.product_id)
    return ItemKey(VIRTUAL, item.virtual_item_id)

def get_cart_items(db: Session, user_id: str) -> List[CartItem]:
    """Returns all lines of the user's cart."""
    return db.query(CartItem).filter(CartItem.user_id == user_id).order_by(CartItem.id).all()

def get_cart_item(db: Session, user_id: str, key: ItemKey) -> CartItem | None:
    return db.query(CartItem).filter(CartItem.user_id == user_id, _key_filter(key)).first()

def get_foreign_cart_item(db: Session, user_id: str, key: ItemKey) -> CartItem | None:
    """Looks for a line with the same key in somebody else's cart."""
    return db.query(CartItem).filter(CartItem.user_id != user_id, _key_filter(key)).first()

def increment_or_insert_catalog_item(db: Session, user_id: str, product_id: int, quantity: int) -> CartItem:
    """Adds `quantity` to the existing line of the product or creates a new one."""
    item = get_cart_item(db, user_id, ItemKey(CATALOG, product_id))
    if item:
        item.quantity = item.quantity + quantity
    else:
        item = CartItem(user_id=user_id, product_id=product_id, quantity=quantity)
        db.add(item)
    db.commit()
    db.refresh(item)
    return item

def increment_or_insert_virtual_item(db: Session, user_id: str, virtual_item: VirtualItem, quantity: int) -> CartItem:
    """
    Same as for catalog products, but the line carries name, price and image
    since there is nothing to resolve them against.
    """
    item = get_cart_item(db, user_id, virtual_item.key)
    if item:
        item.quantity = item.quantity + quantity
    else:
        item = CartItem(
            user_id=user_id,
            virtual_item_id=virtual_item.virtual_id,
            virtual_item_name=virtual_item.name,
            virtual_item_price=virtual_item.price,
            virtual_item_image=virtual_item.image,
            quantity=quantity,
        )
        db.add(item)
    db.commit()
    db.refresh(item)
    return item

def set_quantity(db: Session, item: CartItem, quantity: int) -> CartItem:
    item.quantity = quantity
    db.commit()
    db.refresh(item)
    return item

def delete_cart_item(db: Session, item: CartItem):
    db.delete(item)
    db.commit()

def clear_cart(db: Session, user_id: str) -> int:
    """Removes every line of the user's cart, returns the number of removed lines."""
    deleted = db.query(CartItem).filter_by(user_id=user_id).delete()
    db.commit()
    return deleted

# --- Bulk upserts used by the cart sync, one per conflict target ---

def upsert_catalog_items(db: Session, user_id: str, quantities: Dict[int, int]) -> int:
    """
    Sets absolute quantities for catalog lines, conflict target (user_id, product_id).
    Runs as a single transaction.
    """
    if not quantities:
        return 0
    existing = {
        item.product_id: item
        for item in db.query(CartItem).filter(
            CartItem.user_id == user_id, CartItem.product_id.in_(list(quantities))
        )
    }
    for product_id, quantity in quantities.items():
        item = existing.get(product_id)
        if item:
            item.quantity = quantity
        else:
            db.add(CartItem(user_id=user_id, product_id=product_id, quantity=quantity))
    db.commit()
    return len(quantities)

def upsert_virtual_items(db: Session, user_id: str, lines: Iterable[Tuple[VirtualItem, int]]) -> int:
    """Sets absolute quantities for virtual lines, conflict target (user_id, virtual_item_id)."""
    lines = list(lines)
    if not lines:
        return 0
    existing = {
        item.virtual_item_id: item
        for item in db.query(CartItem).filter(
            CartItem.user_id == user_id,
            CartItem.virtual_item_id.in_([virtual_item.virtual_id for virtual_item, _ in lines])
        )
    }
    for virtual_item, quantity in lines:
        item = existing.get(virtual_item.virtual_id)
        if item:
            item.quantity = quantity
        else:
            db.add(CartItem(
                user_id=user_id,
                virtual_item_id=virtual_item.virtual_id,
                virtual_item_name=virtual_item.name,
                virtual_item_price=virtual_item.price,
                virtual_item_image=virtual_item.image,
                quantity=quantity,
            ))
    db.commit()
    return len(lines)
