from __future__ import annotations

from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from parstock.app.db.session import SessionLocal
from parstock.services.catalog import CatalogStore


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_store(db: Session = Depends(get_db)) -> CatalogStore:
    return CatalogStore(db)
