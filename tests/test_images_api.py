from pathlib import Path
from types import SimpleNamespace

import pytest

from storefront.core.exceptions import InputValidationError
from storefront.interfaces.images_api import get_image_url


@pytest.fixture
def image_file(settings):
    folder = Path(settings.IMAGES_DIR) / "products"
    folder.mkdir()
    path = folder / "a.jpg"
    path.write_bytes(b"\xff\xd8\xff")
    return path


def test_resolves_public_url(client, image_file):
    response = client.get("/api/images/image/products/a.jpg")
    assert response.status_code == 200
    assert response.json() == {"imageUrl": "https://shop.example/images/products/a.jpg"}


def test_missing_file(client):
    response = client.get("/api/images/image/products/none.jpg")
    assert response.status_code == 404
    assert response.json() == {"error": "File not found"}


def test_directory_traversal_is_rejected(settings, image_file):
    request = SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(settings=settings)))
    with pytest.raises(InputValidationError):
        get_image_url("../../etc/passwd", request)


def test_images_are_served(client, image_file):
    response = client.get("/images/products/a.jpg")
    assert response.status_code == 200
    assert response.content == b"\xff\xd8\xff"
