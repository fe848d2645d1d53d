import importlib
import logging
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from storefront.config import settings

log = logging.getLogger("db")

DATABASE_URL = settings.DATABASE_URL
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, future=True, echo=False, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# model modules that must be imported so Base.metadata knows every table
MODEL_MODULES = [
    "storefront.models.user",
    "storefront.models.item",
    "storefront.models.cart_item",
    "storefront.models.order",
    "storefront.models.idempotency",
    "storefront.models.revoked_token",
]


def init_db(reset: bool = False):
    """
    Create the schema. With ``reset`` (or RESET_DB=1 in the environment) every
    table is dropped first, which is what the test-suite relies on.
    """
    for mod in MODEL_MODULES:
        importlib.import_module(mod)

    if reset or os.environ.get("RESET_DB", "0").lower() in ("1", "true", "yes"):
        log.info("Resetting database")
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)
    log.debug("Database initialized: %s", ", ".join(sorted(Base.metadata.tables)))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
