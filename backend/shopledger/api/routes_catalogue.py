import base64
import binascii
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shopledger.adapters.mock_image_store import MockImageStore, get_image_store
from shopledger.api.errors import http_error
from shopledger.api.security import CATALOG_ADMIN_ROLES, current_actor, require_roles
from shopledger.db import get_db
from shopledger.schemas.product_schema import (
    ImageOut,
    ImageUploadIn,
    ProductIn,
    ProductOut,
    ProductUpdate,
)
from shopledger.services.auth_service import Actor
from shopledger.services.catalog_service import CatalogException, CatalogService

router = APIRouter(prefix="/api/products", tags=["catalogue"])


def _out(p):
    return ProductOut.model_validate(p).model_dump(mode="json")


@router.get("", summary="List products")
def list_products(
    search: Optional[str] = Query(None, description="name or SKU fragment"),
    category: Optional[str] = Query(None, description="category id or name"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=200),
    db: Session = Depends(get_db),
):
    svc = CatalogService(db)
    items, pagination = svc.list_products(search=search, category=category, page=page, limit=limit)
    return {"success": True, "data": [_out(p) for p in items], "pagination": pagination}


@router.get("/next-sku", summary="Suggest the next numeric SKU")
def next_sku(db: Session = Depends(get_db)):
    return {"success": True, "sku": CatalogService(db).next_sku()}


@router.get("/{product_id}", summary="Get product by id")
def get_product(product_id: int, db: Session = Depends(get_db)):
    try:
        p = CatalogService(db).get_product(product_id)
    except CatalogException as e:
        raise http_error(e)
    return {"success": True, "data": _out(p)}


@router.post("", status_code=201, summary="Create product")
def create_product(
    payload: ProductIn,
    actor: Actor = Depends(current_actor),
    db: Session = Depends(get_db),
):
    try:
        p = CatalogService(db).create_product(actor, payload.model_dump())
    except CatalogException as e:
        raise http_error(e)
    return {"success": True, "data": _out(p)}


@router.put("/{product_id}", summary="Update product price/metadata")
def update_product(
    product_id: int,
    payload: ProductUpdate,
    actor: Actor = Depends(current_actor),
    db: Session = Depends(get_db),
):
    try:
        p = CatalogService(db).update_product(product_id, payload.model_dump(exclude_unset=True))
    except CatalogException as e:
        raise http_error(e)
    return {"success": True, "data": _out(p)}


@router.delete("/{product_id}", summary="Delete product and its images")
def delete_product(
    product_id: int,
    actor: Actor = Depends(require_roles(*CATALOG_ADMIN_ROLES)),
    db: Session = Depends(get_db),
    image_store: MockImageStore = Depends(get_image_store),
):
    try:
        CatalogService(db, image_store=image_store).delete_product(product_id)
    except CatalogException as e:
        raise http_error(e)
    return {"success": True, "data": {}}


@router.post("/{product_id}/images", status_code=201, summary="Upload and attach an image")
def upload_image(
    product_id: int,
    payload: ImageUploadIn,
    actor: Actor = Depends(current_actor),
    db: Session = Depends(get_db),
    image_store: MockImageStore = Depends(get_image_store),
):
    try:
        content = base64.b64decode(payload.content_base64, validate=True)
    except (binascii.Error, ValueError):
        raise http_error(CatalogException("content_base64 is not valid base64"))
    try:
        image = CatalogService(db, image_store=image_store).attach_image(
            product_id, payload.file_name, content, folder=payload.folder
        )
    except CatalogException as e:
        raise http_error(e)
    return {"success": True, "data": ImageOut.model_validate(image).model_dump(mode="json")}
