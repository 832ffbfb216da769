# account_service/api/v1/deps.py
from collections.abc import Iterable
from dataclasses import dataclass

from fastapi import Depends, Header, Request

from account_service.config import Settings
from account_service.core.collection import Collection, InvalidIdentifier
from account_service.core.errors import Forbidden, StaleCredential, TokenInvalid, Unauthenticated, UserNoLongerExists
from account_service.core.security import PasswordHasher, TokenService, changed_password_after
from account_service.models.user import Role, User
from account_service.services.handler_factory import ResourceHandlers

TOKEN_COOKIE = "jwt"


# ===== Application services (built once in create_app) =====

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.hasher


def get_user_collection(request: Request) -> Collection[User]:
    return request.app.state.users


def get_user_handlers(request: Request) -> ResourceHandlers:
    return request.app.state.user_handlers


# ===== Authentication =====

def extract_token(authorization: str | None, cookies: dict[str, str]) -> str | None:
    """Bearer header first, then the jwt cookie."""
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    if not token:
        token = cookies.get(TOKEN_COOKIE)
    return token or None


async def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
    tokens: TokenService = Depends(get_token_service),
    users: Collection[User] = Depends(get_user_collection),
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    This dependency extracts and validates the JWT token from either:
    1. Authorization header (Bearer token) - preferred method
    2. HttpOnly cookie (jwt) - fallback method

    Returns:
        User: The authenticated, active user; also stored on request.state.user

    Raises:
        Unauthenticated (401): If no token is provided (AUTH_REQUIRED)
        TokenInvalid / TokenExpired (401): If the token fails verification
        UserNoLongerExists (401): If no active user matches the token
        StaleCredential (401): If the password changed after the token was issued

    Usage:
        @router.get("/protected")
        async def protected_route(user: User = Depends(get_current_user)):
            return {"user_id": str(user.id)}
    """
    token = extract_token(authorization, request.cookies)
    if not token:
        raise Unauthenticated()

    claims = await tokens.verify(token)

    try:
        user = await users.find_by_id(claims.subject)
    except InvalidIdentifier as exc:
        raise TokenInvalid() from exc
    if user is None:
        raise UserNoLongerExists()

    if changed_password_after(user.password_changed_at, claims.issued_at):
        raise StaleCredential()

    request.state.user = user
    return user


# ===== Authorization =====

def authorize(user: User, roles: Iterable[Role]) -> None:
    """
    Raise Forbidden unless the user's role is one of the permitted roles.

    Raises:
        Forbidden (403): If the role is not permitted
    """
    if Role(user.role) not in roles:
        raise Forbidden()


@dataclass(frozen=True)
class RoleGate:
    """
    Dependency restricting a route to a fixed set of roles.

    Runs after get_current_user, so the principal is already resolved.

    Usage:
        @router.get("/admin-only", dependencies=[Depends(require_admin)])
    """
    roles: frozenset[Role]

    async def __call__(self, current: User = Depends(get_current_user)) -> User:
        authorize(current, self.roles)
        return current


require_admin = RoleGate(frozenset({Role.ADMIN}))
