from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from shopledger.db import get_db
from shopledger.services.catalog_service import CatalogService

router = APIRouter(prefix="/api/storefront", tags=["storefront"])


@router.get("", summary="Public product listing with display prices")
def storefront(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(24, ge=1, le=200),
    db: Session = Depends(get_db),
):
    listing = CatalogService(db).storefront(search=search, category=category, page=page, limit=limit)
    return {"success": True, "data": jsonable_encoder(listing)}
