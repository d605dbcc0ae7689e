# app/models/product.py

from sqlalchemy import Column, Integer, String, Numeric, Text

from app.db.session import Base
from app.utils.pricing import effective_price


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    # Category name as shown in the builder: "CPUs", "Motherboards", "RAM", ...
    category = Column(String, nullable=False, index=True)
    price = Column(Numeric(12, 2), nullable=False)
    sale_price = Column(Numeric(12, 2), nullable=True)
    image = Column(String, nullable=True)
    stock = Column(Integer, nullable=True)

    # Compatibility attributes, only filled for CPUs, motherboards and RAM
    cpu_socket_id = Column(Integer, nullable=True, index=True)
    ram_type_id = Column(Integer, nullable=True, index=True)

    @property
    def effective_price(self) -> float:
        return effective_price(self.price, self.sale_price)
