# app/routers/catalog.py

from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.dependencies import get_db
from app.schemas.package import Package
from app.schemas.product import Component
from app.services import catalog as catalog_service

router = APIRouter()


@router.get("/products/{product_id}", response_model=Component)
async def get_single_product(product_id: int, db: Session = Depends(get_db)):
    """Product details, used to resolve catalog lines of a guest cart."""
    return catalog_service.get_product(db, product_id)


@router.get("/packages", response_model=List[Package])
async def get_packages(db: Session = Depends(get_db)):
    """Active packages, each can be added to the cart as a "pkg-<id>" line."""
    return catalog_service.get_active_packages(db)
