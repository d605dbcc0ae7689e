# app/models/cart.py
from sqlalchemy import Column, Integer, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.schema import UniqueConstraint

from app.db.session import Base


class CartItem(Base):
    __tablename__ = "cart_items"
    id = Column(Integer, primary_key=True, index=True)
    # Identity provider user id (UUID string), there is no local users table
    user_id = Column(String, nullable=False, index=True)

    # Exactly one of product_id / virtual_item_id is filled.
    # Catalog lines resolve name and price from the products table.
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=True)

    # Packages ("pkg-<id>") and custom builds ("build-<token>") carry their own display fields
    virtual_item_id = Column(String, nullable=True)
    virtual_item_name = Column(String, nullable=True)
    virtual_item_price = Column(Numeric(12, 2), nullable=True)
    virtual_item_image = Column(String, nullable=True)

    quantity = Column(Integer, nullable=False, default=1)

    product = relationship("Product")

    # Two separate conflict targets: one per kind of line
    __table_args__ = (
        UniqueConstraint('user_id', 'product_id', name='_user_product_uc'),
        UniqueConstraint('user_id', 'virtual_item_id', name='_user_virtual_item_uc'),
    )

    @property
    def is_virtual(self) -> bool:
        return self.product_id is None
