import logging
from typing import Any, Dict

from storefront.core.exceptions import AuthenticationError, ConflictError
from storefront.core.security import create_access_token, decode_access_token, hash_password, verify_password
from storefront.domain.models import User
from storefront.domain.schemas import LoginRequest, RegisterRequest
from storefront.interfaces.IUserRepository import IUserRepository

logger = logging.getLogger(__name__)


def user_view(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "roles": list(user.roles or []),
        "createdAt": user.created_at.isoformat() if user.created_at else None,
    }


class AuthService:
    def __init__(self, user_repo: IUserRepository, jwt_secret: str, jwt_expires_in: str):
        self.user_repo = user_repo
        self.jwt_secret = jwt_secret
        self.jwt_expires_in = jwt_expires_in

    def register(self, payload: RegisterRequest) -> User:
        if self.user_repo.get_by_email(payload.email):
            raise ConflictError("Email already in use")

        user = User(
            email=payload.email,
            password_hash=hash_password(payload.password),
            name=payload.name,
            roles=["user"],
        )
        user = self.user_repo.create(user)
        logger.info(f"✅ User {user.id} registered")
        return user

    def login(self, payload: LoginRequest) -> str:
        user = self.user_repo.get_by_email(payload.email)
        if user is None or not verify_password(payload.password, user.password_hash):
            raise AuthenticationError("Invalid credentials")
        return create_access_token(user.id, list(user.roles or []), self.jwt_secret, self.jwt_expires_in)

    def current_user(self, token: str) -> User:
        claims = decode_access_token(token, self.jwt_secret)
        user = self.user_repo.get(claims.get("userId", ""))
        if user is None:
            raise AuthenticationError("User no longer exists")
        return user
