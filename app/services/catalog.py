# app/services/catalog.py

import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core import locales
from app.core.exceptions import NotFound, UpstreamFailure
from app.crud import package as crud_package
from app.crud import product as crud_product
from app.schemas.package import Package
from app.schemas.product import Component

logger = logging.getLogger(__name__)


def get_product(db: Session, product_id: int) -> Component:
    try:
        product = crud_product.get_product_by_id(db, product_id)
    except SQLAlchemyError:
        logger.error(f"Error fetching product {product_id}", exc_info=True)
        raise UpstreamFailure(locales.ERROR_STORAGE_UNAVAILABLE)
    if product is None:
        raise NotFound(locales.ERROR_PRODUCT_NOT_FOUND)
    return Component.model_validate(product)


def get_active_packages(db: Session) -> List[Package]:
    try:
        packages = crud_package.get_active_packages(db)
    except SQLAlchemyError:
        logger.error("Error fetching packages", exc_info=True)
        raise UpstreamFailure(locales.ERROR_STORAGE_UNAVAILABLE)
    return [Package.model_validate(p) for p in packages]
