from fastapi import APIRouter
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from shopledger.adapters.mock_image_store import ImageStoreError, get_image_store
from shopledger.db import Base, engine
from shopledger.utils.log import get_logger

log = get_logger("health")

router = APIRouter()


@router.get("/health", tags=["health"])
def health():
    db_ok = False
    missing_tables = []
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            present = set(inspect(conn).get_table_names())
        missing_tables = sorted(set(Base.metadata.tables) - present)
        db_ok = not missing_tables
    except SQLAlchemyError as e:
        log.warning("database check failed: %s", e)

    try:
        images_ok = get_image_store().health_check()
    except ImageStoreError as e:
        log.warning("image store check failed: %s", e)
        images_ok = False

    body = {
        "status": "ok" if db_ok and images_ok else "degraded",
        "db": db_ok,
        "image_store": images_ok,
    }
    if missing_tables:
        body["missing_tables"] = missing_tables
    return body
