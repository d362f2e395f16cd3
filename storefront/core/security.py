import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

import bcrypt
import jwt

from storefront.core.exceptions import AuthenticationError, ConfigurationError

BCRYPT_ROUNDS = 12
JWT_ALGORITHM = "HS256"

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$", re.IGNORECASE)
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400, "w": 604800}


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage
        return False


def parse_expires_in(value: str) -> timedelta:
    """Parses `3600`, `30m`, `12h`, `7d` style durations."""
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ConfigurationError(f"Invalid JWT_EXPIRES_IN value: {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _UNIT_SECONDS[unit.lower()])


def create_access_token(user_id: str, roles: List[str], secret: str, expires_in: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "userId": user_id,
        "roles": roles,
        "iat": now,
        "exp": now + parse_expires_in(expires_in),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str, secret: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except jwt.InvalidTokenError:
        raise AuthenticationError("Invalid token")
