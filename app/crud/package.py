# app/crud/package.py
from typing import List
from sqlalchemy.orm import Session

from app.models.package import Package


def get_active_packages(db: Session) -> List[Package]:
    return db.query(Package).filter(Package.is_active.is_(True)).order_by(Package.id).all()
