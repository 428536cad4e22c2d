"""
Authentication Dependencies

Tokens are verified by the gateway in front of this service, which
forwards the verified subject and roles as request headers. These
dependencies turn those headers into an AuthUser and evaluate role
predicates before any route handler runs.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class AuthUser:
    """The authenticated caller."""
    sub: str
    roles: frozenset[str] = field(default_factory=frozenset)
    
    @property
    def is_admin(self) -> bool:
        return ADMIN_ROLE in self.roles


class AuthenticationError(HTTPException):
    """Authentication failed."""
    def __init__(self, detail: str = "Missing authenticated user"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"}
        )


class AuthorizationError(HTTPException):
    """Caller lacks the required role."""
    def __init__(self, role: str):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Role '{role}' required",
        )


def _parse_roles(raw: Optional[str]) -> frozenset[str]:
    if not raw:
        return frozenset()
    return frozenset(role.strip().lower() for role in raw.split(",") if role.strip())


async def get_current_user(
    x_auth_user_id: Optional[str] = Header(None, alias="X-Auth-User-Id"),
    x_auth_roles: Optional[str] = Header(None, alias="X-Auth-Roles"),
) -> AuthUser:
    """FastAPI dependency returning the authenticated caller.
    
    Usage:
        @router.post("/forms")
        async def create_form(user: AuthUser = Depends(get_current_user)):
            ...
    
    Raises:
        AuthenticationError: If no subject was forwarded
    """
    if not x_auth_user_id or not x_auth_user_id.strip():
        logger.warning("[AUTH] Request missing X-Auth-User-Id")
        raise AuthenticationError()
    
    return AuthUser(sub=x_auth_user_id.strip(), roles=_parse_roles(x_auth_roles))


def require_role(role: str):
    """Build a dependency that only lets callers with `role` through."""
    async def _check(user: AuthUser = Depends(get_current_user)) -> AuthUser:
        if role not in user.roles:
            logger.warning(f"[AUTH] User {user.sub} denied, missing role '{role}'")
            raise AuthorizationError(role)
        return user
    return _check


require_admin = require_role(ADMIN_ROLE)
