"""
Authentication dependencies — resolve the caller's identity from a JWT.

Endpoints:
    GET  /auth/me                → the identity behind the presented token
    GET  /dev/token/{user_id}    → mint a token (non-production only)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from catalog.config import Settings
from catalog.errors import Forbidden, Unauthenticated
from catalog.services.identity import Identity, Role, create_access_token, decode_identity

router = APIRouter(prefix="/auth", tags=["auth"])
dev_router = APIRouter(prefix="/dev", tags=["dev"])

COOKIE_KEY = "access_token"

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> Optional[Identity]:
    """
    Decode the bearer token (or the cookie fallback) into an Identity.
    Returns None when no valid token is present (allows public reads).
    """
    token = credentials.credentials if credentials else request.cookies.get(COOKIE_KEY)
    return decode_identity(settings, token)


async def require_identity(
    identity: Optional[Identity] = Depends(get_current_identity),
) -> Identity:
    if identity is None:
        raise Unauthenticated("Missing or invalid token")
    return identity


async def require_admin(identity: Identity = Depends(require_identity)) -> Identity:
    if not identity.is_admin:
        raise Forbidden(f"User {identity.user_id} is not an admin")
    return identity


@router.get("/me")
async def read_me(identity: Identity = Depends(require_identity)):
    """Return the authenticated caller's identity."""
    return {"user_id": identity.user_id, "role": identity.role.value}


@dev_router.get("/token/{user_id}")
async def dev_token(
    user_id: int,
    role: Role = Role.USER,
    settings: Settings = Depends(get_settings),
):
    """Mint a bearer token for local testing; never mounted in production."""
    return {
        "access_token": create_access_token(settings, user_id, role),
        "token_type": "bearer",
    }
