from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from conftest import RecordingMailDispatcher, count_orders
from storefront.core.exceptions import CompositionError, DispatchError
from storefront.domain.models import Order
from storefront.domain.normalization import line_total
from storefront.infrastructure.database import build_engine, build_session_factory
from storefront.infrastructure.repositories.order_repository import SqlOrderRepository
from storefront.main import create_app


def test_submit_order_persists_and_notifies(client, app, mail, order_payload):
    response = client.post("/api/orders", json=order_payload)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["orderId"]
    assert body["orderNumber"]
    assert "warning" not in body

    order = app.state.order_pipeline.order_repo.get(body["orderId"])
    assert order.total_price == 200
    assert len(order.items) == 1
    assert order.items[0]["product"]["id"] == "p1"
    assert order.items[0]["quantity"] == 2
    assert line_total(order.items[0]) == 200
    assert order.customer_info == {
        "email": "a@b.com", "name": "Jo", "phone": "1234567890", "city": "NY",
    }
    assert order.order_number == body["orderNumber"]

    assert len(mail.sent) == 1
    notification = mail.sent[0]
    assert body["orderNumber"] in notification.subject
    assert "2 × 100 ₽ = 200 ₽" in notification.text
    assert notification.attachment is not None
    assert notification.attachment_filename.endswith(".xlsx")


@pytest.mark.parametrize("field", ["email", "name", "phone", "city", "privacyConsent"])
def test_missing_customer_field_is_rejected(client, app, mail, order_payload, field):
    del order_payload["customerInfo"][field]

    response = client.post("/api/orders", json=order_payload)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation failed"
    assert any(field in detail for detail in body["details"])
    assert "orderId" not in body
    assert count_orders(app) == 0
    assert mail.sent == []


def test_all_validation_errors_are_reported_together(client, app):
    payload = {
        "items": [{"id": "", "name": 5, "price": -1, "quantity": 0}],
        "totalPrice": -10,
        "customerInfo": {"email": "nope", "name": "J", "phone": "123", "city": " ", "privacyConsent": False},
    }

    response = client.post("/api/orders", json=payload)

    assert response.status_code == 400
    assert len(response.json()["details"]) == 10
    assert count_orders(app) == 0


def test_non_object_body_is_rejected(client):
    response = client.post("/api/orders", json=[1, 2, 3])
    assert response.status_code == 400


def test_image_urls_are_normalized_before_persisting(client, app, order_payload):
    order_payload["items"] = [
        {"id": "p1", "name": "Widget", "price": 100, "quantity": 1, "image": "http://backend:5000/images/w.jpg"},
        {"id": "p2", "name": "Gadget", "price": 100, "quantity": 1, "image": "gadget.png"},
        {"id": "p3", "name": "Thing", "price": 0, "quantity": 1},
    ]

    body = client.post("/api/orders", json=order_payload).json()
    order = app.state.order_pipeline.order_repo.get(body["orderId"])

    images = [item["product"]["image"] for item in order.items]
    assert images == [
        "https://shop.example/images/w.jpg",
        "https://shop.example/gadget.png",
        "https://shop.example/images/default-product.jpg",
    ]


def test_legacy_total_key_is_accepted(client, app, order_payload):
    order_payload["total"] = order_payload.pop("totalPrice")

    response = client.post("/api/orders", json=order_payload)

    assert response.status_code == 201
    order = app.state.order_pipeline.order_repo.get(response.json()["orderId"])
    assert order.total_price == 200


def test_total_price_is_trusted_from_client(client, app, order_payload):
    # Known trust boundary: the total is not recomputed from the items.
    order_payload["totalPrice"] = 1

    response = client.post("/api/orders", json=order_payload)

    assert response.status_code == 201
    order = app.state.order_pipeline.order_repo.get(response.json()["orderId"])
    assert order.total_price == 1
    assert sum(line_total(item) for item in order.items) == 200


def test_storage_failure_is_terminal(settings, order_payload, tmp_path):
    broken = build_session_factory(build_engine(f"sqlite:///{tmp_path}/missing/dir/orders.db"))
    mail = RecordingMailDispatcher()
    app = create_app(settings, mail_dispatcher=mail, order_repo=SqlOrderRepository(broken))

    with TestClient(app) as client:
        response = client.post("/api/orders", json=order_payload)

    assert response.status_code == 503
    body = response.json()
    assert body["error"]
    assert body["message"]
    assert "orderId" not in body
    assert mail.sent == []


def test_unconfigured_mail_degrades_to_warning(settings, order_payload):
    app = create_app(settings)  # real SMTP dispatcher, no SMTP_* settings

    with TestClient(app) as client:
        response = client.post("/api/orders", json=order_payload)

    assert response.status_code == 201
    body = response.json()
    assert body["orderId"]
    assert "not configured" in body["warning"]
    assert count_orders(app) == 1


def test_unreachable_mail_transport_degrades_to_warning(settings, order_payload):
    settings = settings.model_copy(update={
        "SMTP_HOST": "127.0.0.1",
        "SMTP_PORT": 1,
        "SMTP_USER": "shop",
        "SMTP_PASS": "secret",
        "EMAIL_FROM": "shop@example.com",
        "EMAIL_TO": "orders@example.com",
        "SMTP_CONNECTION_TIMEOUT": 2,
    })
    app = create_app(settings)

    with TestClient(app) as client:
        response = client.post("/api/orders", json=order_payload)

    assert response.status_code == 201
    body = response.json()
    assert body["orderId"]
    assert body["warning"]
    assert count_orders(app) == 1


def test_dispatch_failure_degrades_to_warning(settings, order_payload):
    mail = RecordingMailDispatcher(error=DispatchError("connection reset"))
    app = create_app(settings, mail_dispatcher=mail)

    with TestClient(app) as client:
        response = client.post("/api/orders", json=order_payload)

    assert response.status_code == 201
    assert response.json()["warning"] == "E-mail notification could not be sent"


def test_spreadsheet_failure_sends_mail_without_attachment(client, app, mail, order_payload, monkeypatch):
    composer = app.state.order_pipeline.composer

    def broken_sheet(order):
        raise CompositionError("disk full")

    monkeypatch.setattr(composer, "compose_spreadsheet", broken_sheet)

    response = client.post("/api/orders", json=order_payload)

    assert response.status_code == 201
    assert "spreadsheet" in response.json()["warning"]
    assert len(mail.sent) == 1
    assert mail.sent[0].attachment is None


def test_body_failure_skips_mail(client, app, mail, order_payload, monkeypatch):
    composer = app.state.order_pipeline.composer

    def broken_body(order):
        raise CompositionError("template missing")

    monkeypatch.setattr(composer, "compose_message", broken_body)

    response = client.post("/api/orders", json=order_payload)

    assert response.status_code == 201
    assert "could not be composed" in response.json()["warning"]
    assert mail.sent == []
    assert count_orders(app) == 1


def test_spreadsheet_can_be_disabled(settings, order_payload):
    mail = RecordingMailDispatcher()
    app = create_app(settings.model_copy(update={"ORDER_SPREADSHEET_ENABLED": False}), mail_dispatcher=mail)

    with TestClient(app) as client:
        response = client.post("/api/orders", json=order_payload)

    assert response.status_code == 201
    assert "warning" not in response.json()
    assert mail.sent[0].attachment is None


@pytest.mark.parametrize("literal", ["NaN", "Infinity", "1" + "0" * 400])
def test_non_finite_amounts_are_rejected(client, app, mail, literal):
    # Python's json module reads NaN/Infinity, so clients can send them
    body = (
        '{"items": [{"id": "p1", "name": "Widget", "price": %s, "quantity": 1}], "totalPrice": %s, '
        '"customerInfo": {"email": "a@b.com", "name": "Jo", "phone": "1234567890", "city": "NY", '
        '"privacyConsent": true}}'
    ) % (literal, literal)

    response = client.post("/api/orders", content=body, headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    details = response.json()["details"]
    assert "items[0].price must be a non-negative number" in details
    assert "totalPrice must be a non-negative number" in details
    assert count_orders(app) == 0
    assert mail.sent == []


def test_order_number_clash_is_retried(client, app):
    repo = SqlOrderRepository(app.state.session_factory)
    created_at = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def new_order(order_id):
        return Order(
            id=order_id,
            items=[{"product": {"id": "p1", "name": "Widget", "price": 1, "image": ""}, "quantity": 1}],
            total_price=1,
            customer_info={"email": "a@b.com", "name": "Jo", "phone": "1234567890", "city": "NY"},
            created_at=created_at,
        )

    first = repo.create(new_order("abcdef" + "0" * 26))
    second = repo.create(new_order("abcdef" + "1" * 26))

    assert first.order_number == "20260301-ABCDEF"
    assert second.order_number != first.order_number
    assert second.order_number == f"20260301-{second.id[:6].upper()}"
    assert count_orders(app) == 2
