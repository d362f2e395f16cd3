import pytest

from storefront.core.config import Settings
from storefront.domain.normalization import (
    line_total,
    normalize_image_url,
    normalize_items_images,
    normalize_search_text,
    slugify,
    transform_items,
)


@pytest.fixture
def image_config():
    return Settings(_env_file=None, PUBLIC_URL="https://shop.example/").image_urls()


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_empty_image_uses_fallback(image_config, raw):
    assert normalize_image_url(raw, image_config) == "https://shop.example/images/default-product.jpg"


@pytest.mark.parametrize("raw", [
    "http://backend:5000/images/a.jpg",
    "http://localhost:5000/images/a.jpg",
    "http://127.0.0.1:5000/images/a.jpg",
    "HTTP://0.0.0.0:5000/images/a.jpg",
])
def test_internal_hosts_are_rewritten(image_config, raw):
    assert normalize_image_url(raw, image_config) == "https://shop.example/images/a.jpg"


def test_internal_prefix_must_end_at_boundary(image_config):
    url = "http://localhost:50001/a.jpg"
    assert normalize_image_url(url, image_config) == url


def test_backend_on_custom_port():
    config = Settings(_env_file=None, PUBLIC_URL="https://shop.example", PORT=3000).image_urls()
    assert normalize_image_url("http://backend:3000/x.png", config) == "https://shop.example/x.png"


def test_relative_paths(image_config):
    assert normalize_image_url("/images/a.jpg", image_config) == "https://shop.example/images/a.jpg"
    assert normalize_image_url("images/a.jpg", image_config) == "https://shop.example/images/a.jpg"
    assert normalize_image_url("  a.jpg ", image_config) == "https://shop.example/a.jpg"


def test_absolute_urls_are_kept(image_config):
    assert normalize_image_url("https://cdn.example/a.jpg", image_config) == "https://cdn.example/a.jpg"


@pytest.mark.parametrize("raw", [
    "http://backend:5000/images/a.jpg", "/a.jpg", "a.jpg", "", "https://cdn.example/b.jpg",
])
def test_normalization_is_idempotent(image_config, raw):
    once = normalize_image_url(raw, image_config)
    assert normalize_image_url(once, image_config) == once


def test_development_public_url_from_port():
    settings = Settings(_env_file=None, APP_ENV="development", PORT=8080)
    assert settings.public_url == "http://localhost:8080"
    config = settings.image_urls()
    assert normalize_image_url("http://localhost:8080/a.jpg", config) == "http://localhost:8080/a.jpg"


def test_public_url_by_environment():
    assert Settings(_env_file=None, APP_ENV="production").public_url == "https://gelionaqua.ru"
    assert Settings(_env_file=None, APP_ENV="staging", STAGING_URL="https://st.example/").public_url == "https://st.example"


def test_items_are_copied_not_mutated(image_config):
    items = [{"id": "p1", "name": "W", "price": 1, "quantity": 1, "image": "a.jpg"}]
    normalized = normalize_items_images(items, image_config)
    assert items[0]["image"] == "a.jpg"
    assert normalized[0]["image"] == "https://shop.example/a.jpg"


def test_transform_items():
    flat = [{"id": 7, "name": "Widget", "price": 12.5, "quantity": 2}]
    assert transform_items(flat) == [
        {"product": {"id": "7", "name": "Widget", "price": 12.5, "image": ""}, "quantity": 2}
    ]
    assert line_total(transform_items(flat)[0]) == 25.0


def test_line_total_rounds_to_cents():
    item = {"product": {"id": "1", "name": "x", "price": 0.1, "image": ""}, "quantity": 3}
    assert line_total(item) == 0.3


def test_search_text_normalization():
    assert normalize_search_text("  Ёлка   НОВОГОДНЯЯ ") == "елка новогодняя"
    assert normalize_search_text("Crème Brûlée") == "creme brulee"
    assert normalize_search_text("Чайник") == "чайник"
    assert normalize_search_text("Мойка") == "мойка"
    assert normalize_search_text(None) == ""


def test_slugify_transliterates():
    assert slugify("Фильтр для воды", "ab12cd34-xyz") == "filtr-dlya-vody-ab12cd34xyz"
    assert slugify("Кран №5") == "kran-5"
