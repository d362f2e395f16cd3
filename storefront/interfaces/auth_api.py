import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from storefront.application.auth_service import user_view
from storefront.core.exceptions import AuthenticationError, PermissionDeniedError
from storefront.domain.models import User
from storefront.domain.schemas import LoginRequest, RegisterRequest

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


def current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token")
    return request.app.state.auth_service.current_user(credentials.credentials)


def require_role(role: str):
    def dependency(user: User = Depends(current_user)) -> User:
        if role not in (user.roles or []):
            raise PermissionDeniedError("Insufficient permissions")
        return user
    return dependency


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, request: Request):
    user = request.app.state.auth_service.register(payload)
    return {"message": "User created", "userId": user.id}


@router.post("/login")
def login(payload: LoginRequest, request: Request):
    token = request.app.state.auth_service.login(payload)
    return {"token": token}


@router.get("/me")
def me(user: User = Depends(current_user)):
    return {"user": user_view(user)}
