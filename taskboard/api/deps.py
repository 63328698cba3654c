"""
API Dependencies Module

FastAPI dependency functions for authentication and for building the
persistence gateway on top of the request's database session.

Tokens are accepted either as a bearer token in the Authorization header (API
clients) or as an ``access_token`` cookie (browser clients).
"""
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from taskboard.core.config import settings
from taskboard.core.errors import PermissionDenied
from taskboard.core.security import decode_access_token
from taskboard.db.session import get_db
from taskboard.services.gateway import TaskGateway
from taskboard.services.store import DocumentStore

# auto_error=False so the cookie can be checked as a fallback
reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login",
    auto_error=False,
)


def get_current_user_id(
    request: Request,
    token: Optional[str] = Depends(reusable_oauth2),
) -> str:
    """
    Dependency that returns the id of the authenticated caller.

    Raises:
        HTTPException 401: no token was supplied
        HTTPException 403: the token did not verify or carries no subject
    """
    if not token:
        token = request.cookies.get("access_token")
        # Cookie format is "Bearer <token>"
        if token and token.startswith("Bearer "):
            token = token[len("Bearer "):]

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = decode_access_token(token)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Could not validate credentials",
        )
    return user_id


def get_gateway(db: Session = Depends(get_db)) -> TaskGateway:
    return TaskGateway(DocumentStore(db))


def check_body_user(body_user_id: Optional[str], current_user_id: str) -> str:
    """A body ``userId`` is optional, but when present it must be the caller."""
    if body_user_id is not None and body_user_id != current_user_id:
        raise PermissionDenied(
            "userId in the request does not match the authenticated user",
            code="USER_MISMATCH",
        )
    return current_user_id
