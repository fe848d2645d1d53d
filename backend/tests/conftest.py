import os
import tempfile

# configure before storefront is imported: the engine is built at import time
_DB_PATH = os.path.join(tempfile.gettempdir(), f"storefront-test-{os.getpid()}.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["PAYMENT_MOCK_DELAY_MS"] = "0"
os.environ["PAYMENT_MOCK_FAILURE_RATE"] = "0"
os.environ["PAYMENT_BACKEND"] = "mock"
os.environ["MAIL_BACKEND"] = "mock"
os.environ["SCHEDULER_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient

from storefront.adapters.mock_mail import MockMailAdapter
from storefront.adapters.mock_payment import MockPaymentAdapter
from storefront.api.deps import get_mail_adapter, get_payment_adapter
from storefront.auth.passwords import hash_password
from storefront.auth.session_codec import SessionCodec
from storefront.config import settings
from storefront.db import SessionLocal, init_db
from storefront.main import app
from storefront.models.cart_item import CartItem
from storefront.models.item import Item
from storefront.models.user import User
from storefront.schemas.user_schema import Identity

PASSWORD = "hunter2"


@pytest.fixture(autouse=True)
def reset_db():
    init_db(reset=True)
    yield


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def payment():
    return MockPaymentAdapter(delay_ms=0, failure_rate=0)


@pytest.fixture
def mailer():
    return MockMailAdapter()


@pytest.fixture
def codec():
    return SessionCodec(settings.SECRET_KEY, max_age_seconds=settings.session_max_age_seconds)


@pytest.fixture
def client(payment, mailer):
    app.dependency_overrides[get_payment_adapter] = lambda: payment
    app.dependency_overrides[get_mail_adapter] = lambda: mailer
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def client_for(client, codec):
    """Build a client whose session cookie belongs to ``user``."""

    def _make(user):
        c = TestClient(app)
        c.cookies.set(settings.SESSION_COOKIE_NAME, codec.issue(user.id))
        return c

    return _make


@pytest.fixture
def make_user(db):
    def _make(email, permissions=None, password=PASSWORD, name="Test User"):
        u = User(
            email=email.lower(),
            name=name,
            password=hash_password(password, rounds=4),
            permissions=permissions if permissions is not None else ["USER"],
        )
        db.add(u)
        db.commit()
        db.refresh(u)
        return u

    return _make


@pytest.fixture
def make_item(db):
    def _make(price, title="Item", owner=None, **fields):
        it = Item(title=title, price=price, user_id=owner.id if owner else None, **fields)
        db.add(it)
        db.commit()
        db.refresh(it)
        return it

    return _make


@pytest.fixture
def put_in_cart(db):
    def _put(user, item, quantity=1):
        line = CartItem(user_id=user.id, item_id=item.id, quantity=quantity)
        db.add(line)
        db.commit()
        db.refresh(line)
        return line

    return _put


@pytest.fixture
def as_identity():
    def _as(user) -> Identity:
        return Identity.model_validate(user)

    return _as
