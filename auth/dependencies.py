"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The bearer token is read from the Authorization header:

  Authorization: Bearer <token>

A missing header or an empty token is TokenMissing (401). A header with a
different scheme, or a token that does not verify, is TokenInvalid (403).
Both are AuthError subclasses, so the exception handler in api/main.py turns
them into responses -- nothing here builds an HTTPException.

Layer rule: auth/dependencies.py may import from fastapi (for Request)
because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Depends, Request

from auth.errors import TokenInvalid
from auth.service import AuthService


def get_auth_service(request: Request) -> AuthService:
    """Return the AuthService built by the application lifespan."""
    return request.app.state.auth_service


def bearer_token(request: Request) -> str | None:
    """Extract the raw token from the Authorization header, or None if absent."""
    auth_header = request.headers.get("Authorization", "").strip()
    if not auth_header:
        return None
    scheme, _, token = auth_header.partition(" ")
    token = token.strip()
    if not token:
        return None
    if scheme.lower() != "bearer":
        raise TokenInvalid()
    return token


def get_current_username(
    request: Request,
    service: AuthService = Depends(get_auth_service),
) -> str:
    """Require a valid bearer token and return its username claim.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(username: str = Depends(get_current_username)): ...
    """
    return service.verify_token(bearer_token(request))
