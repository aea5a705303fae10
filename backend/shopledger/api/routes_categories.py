from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shopledger.api.errors import http_error
from shopledger.api.security import CATALOG_ADMIN_ROLES, current_actor, require_roles
from shopledger.db import get_db
from shopledger.schemas.product_schema import CategoryIn, CategoryOut, CategoryUpdate
from shopledger.services.auth_service import Actor
from shopledger.services.catalog_service import CatalogException, CatalogService

router = APIRouter(prefix="/api/categories", tags=["categories"])


def _out(c):
    return CategoryOut.model_validate(c).model_dump(mode="json")


@router.get("", summary="List categories")
def list_categories(db: Session = Depends(get_db)):
    return {"success": True, "data": [_out(c) for c in CatalogService(db).list_categories()]}


@router.get("/{category_id}", summary="Get category")
def get_category(category_id: int, db: Session = Depends(get_db)):
    try:
        c = CatalogService(db).get_category(category_id)
    except CatalogException as e:
        raise http_error(e)
    return {"success": True, "data": _out(c)}


@router.post("", status_code=201, summary="Create category")
def create_category(
    payload: CategoryIn,
    actor: Actor = Depends(current_actor),
    db: Session = Depends(get_db),
):
    try:
        c = CatalogService(db).create_category(payload.model_dump())
    except CatalogException as e:
        raise http_error(e)
    return {"success": True, "data": _out(c)}


@router.put("/{category_id}", summary="Update category")
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    actor: Actor = Depends(current_actor),
    db: Session = Depends(get_db),
):
    try:
        c = CatalogService(db).update_category(category_id, payload.model_dump(exclude_unset=True))
    except CatalogException as e:
        raise http_error(e)
    return {"success": True, "data": _out(c)}


@router.delete("/{category_id}", summary="Delete category")
def delete_category(
    category_id: int,
    actor: Actor = Depends(require_roles(*CATALOG_ADMIN_ROLES)),
    db: Session = Depends(get_db),
):
    try:
        CatalogService(db).delete_category(category_id)
    except CatalogException as e:
        raise http_error(e)
    return {"success": True, "data": {}}
