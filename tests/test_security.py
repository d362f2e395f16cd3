from datetime import timedelta

import pytest

from storefront.core.exceptions import AuthenticationError, ConfigurationError
from storefront.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    parse_expires_in,
    verify_password,
)

SECRET = "storefront-test-secret-0123456789abcdef"


@pytest.mark.parametrize("value,expected", [
    ("3600", timedelta(hours=1)),
    ("30m", timedelta(minutes=30)),
    ("12h", timedelta(hours=12)),
    ("1d", timedelta(days=1)),
    ("2w", timedelta(weeks=2)),
])
def test_parse_expires_in(value, expected):
    assert parse_expires_in(value) == expected


def test_parse_expires_in_rejects_garbage():
    with pytest.raises(ConfigurationError):
        parse_expires_in("soon")


def test_password_hashing():
    hashed = hash_password("secret1")
    assert hashed != "secret1"
    assert verify_password("secret1", hashed)
    assert not verify_password("secret2", hashed)
    assert not verify_password("secret1", "not-a-bcrypt-hash")


def test_token_round_trip():
    token = create_access_token("u1", ["user", "admin"], SECRET, "1h")
    claims = decode_access_token(token, SECRET)
    assert claims["userId"] == "u1"
    assert claims["roles"] == ["user", "admin"]
    assert claims["exp"] - claims["iat"] == 3600


def test_token_signed_with_other_secret():
    token = create_access_token("u1", [], SECRET, "1h")
    with pytest.raises(AuthenticationError) as excinfo:
        decode_access_token(token, SECRET[::-1])
    assert excinfo.value.message == "Invalid token"
