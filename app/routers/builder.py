# app/routers/builder.py

from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.dependencies import get_db
from app.schemas.product import Component
from app.services import builder as builder_service

router = APIRouter(prefix="/builder")


@router.get("/components", response_model=List[Component])
async def get_builder_components(
    category: Optional[str] = Query(None, description="Builder category, e.g. CPUs or Motherboards"),
    cpu_socket_id: Optional[int] = Query(None, description="Only for Motherboards"),
    ram_type_id: Optional[int] = Query(None, description="Only for RAM"),
    db: Session = Depends(get_db),
):
    """
    Components for the PC builder picker.
    Public endpoint, no authentication required.
    """
    return builder_service.list_components(db, category, cpu_socket_id, ram_type_id)
