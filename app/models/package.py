# app/models/package.py

from sqlalchemy import Boolean, Column, Integer, Numeric, String, Text

from app.db.session import Base


class Package(Base):
    """Pre-configured bundle sold as a single virtual cart line."""
    __tablename__ = "packages"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    image_url = Column(String, nullable=False)
    price_complete = Column(Numeric(12, 2), nullable=False)
    price_unit_only = Column(Numeric(12, 2), nullable=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, server_default='true')
