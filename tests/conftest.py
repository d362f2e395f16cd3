import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from storefront.core import security
from storefront.core.config import Settings
from storefront.domain.models import Order, Product
from storefront.interfaces.IMailDispatcher import IMailDispatcher
from storefront.main import create_app

JWT_SECRET = "storefront-test-secret-0123456789abcdef"


class RecordingMailDispatcher(IMailDispatcher):
    """Keeps sent notifications in memory, or raises `error` on send."""

    def __init__(self, error=None):
        self.sent = []
        self.error = error

    async def send(self, notification):
        if self.error is not None:
            raise self.error
        self.sent.append(notification)


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    monkeypatch.setattr(security, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def settings(tmp_path):
    images = tmp_path / "images"
    images.mkdir()
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        PUBLIC_URL="https://shop.example",
        IMAGES_DIR=str(images),
        JWT_SECRET=JWT_SECRET,
        DB_CONNECT_RETRIES=1,
        DB_CONNECT_WAIT_SECONDS=0,
    )


@pytest.fixture
def mail():
    return RecordingMailDispatcher()


@pytest.fixture
def app(settings, mail):
    return create_app(settings, mail_dispatcher=mail)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def order_payload():
    return {
        "items": [{"id": "p1", "name": "Widget", "price": 100, "quantity": 2}],
        "totalPrice": 200,
        "customerInfo": {
            "email": "a@b.com",
            "name": "Jo",
            "phone": "1234567890",
            "city": "NY",
            "privacyConsent": True,
        },
    }


def count_orders(app) -> int:
    with app.state.session_factory() as session:
        return session.scalar(select(func.count(Order.id)))


def seed_products(app, rows):
    repo = app.state.catalog_service.product_repo
    return [repo.add(Product(**row)) for row in rows]
