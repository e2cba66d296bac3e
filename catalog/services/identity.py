"""
Identity provider — turns a bearer credential into a (user_id, role) pair.

Tokens are HS256 JWTs carrying ``sub`` (user id) and ``role`` claims.
Anything missing, expired or malformed resolves to "no identity".
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from catalog.config import Settings


class Role(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class Identity:
    user_id: int
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def create_access_token(settings: Settings, user_id: int, role: Role = Role.USER) -> str:
    """Create a signed JWT with an expiry claim."""
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode = {"sub": str(user_id), "role": Role(role).value, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_identity(settings: Settings, token: Optional[str]) -> Optional[Identity]:
    if not token:
        return None
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
        user_id = int(payload.get("sub", 0))
        role = Role(payload.get("role", Role.USER.value))
    except (JWTError, ValueError, TypeError):
        return None
    if not user_id:
        return None
    return Identity(user_id=user_id, role=role)
