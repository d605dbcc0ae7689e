# app/services/builder.py

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core import locales
from app.core.exceptions import InvalidArgument, UpstreamFailure
from app.crud import product as crud_product
from app.schemas.product import BuildCategory, Component

logger = logging.getLogger(__name__)


def list_components(
    db: Session,
    category: Optional[str],
    cpu_socket_id: Optional[int] = None,
    ram_type_id: Optional[int] = None,
) -> List[Component]:
    """
    Components of one builder category. Compatibility filters are applied only
    where they are meaningful: socket for motherboards, RAM type for memory.
    Other categories ignore them.
    """
    if not category:
        raise InvalidArgument(locales.ERROR_CATEGORY_REQUIRED)
    try:
        build_category = BuildCategory(category)
    except ValueError:
        raise InvalidArgument(locales.ERROR_UNKNOWN_CATEGORY.format(category=category))

    socket_filter = cpu_socket_id if build_category == BuildCategory.MOTHERBOARDS else None
    ram_filter = ram_type_id if build_category == BuildCategory.RAM else None

    try:
        products = crud_product.get_products_by_category(
            db, build_category.value, cpu_socket_id=socket_filter, ram_type_id=ram_filter
        )
    except SQLAlchemyError:
        logger.error(f"Error fetching builder components for {build_category.value}", exc_info=True)
        raise UpstreamFailure(locales.ERROR_CATALOG_UNAVAILABLE)

    logger.info(
        f"Builder components for {build_category.value} "
        f"(socket={socket_filter}, ram={ram_filter}): {len(products)} found."
    )
    return [Component.model_validate(p) for p in products]
