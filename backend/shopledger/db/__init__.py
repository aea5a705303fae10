import importlib
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from shopledger.config import settings
from shopledger.utils.log import get_logger

log = get_logger("db")

DATABASE_URL = settings.DATABASE_URL
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, future=True, echo=False, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# Every module declaring tables must be listed so metadata is populated before create_all.
MODEL_MODULES = [
    "shopledger.models.category",
    "shopledger.models.product",
    "shopledger.models.purchase",
    "shopledger.models.order",
    "shopledger.models.user",
]


def init_db(reset: bool = None):
    """
    Initialize DB schema.

    Behavior:
      - If `reset` is True, or it is None and the RESET_DB env var is set to
        1/true/yes, drop & recreate tables.
      - Otherwise create missing tables and leave existing ones in place.
    """
    if reset is None:
        reset = os.environ.get("RESET_DB", "false").lower() in ("1", "true", "yes")

    for mod in MODEL_MODULES:
        importlib.import_module(mod)

    if reset:
        log.info("Resetting database schema")
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)
    log.debug("Database initialized (%s tables)", len(Base.metadata.tables))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
