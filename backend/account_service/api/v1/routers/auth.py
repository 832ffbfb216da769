# account_service/api/v1/routers/auth.py
import datetime as dt
from typing import Any

from fastapi import APIRouter, Body, Depends, Response, status

from account_service.api.v1.deps import (
    TOKEN_COOKIE,
    get_current_user,
    get_password_hasher,
    get_settings,
    get_token_service,
    get_user_collection,
)
from account_service.config import Settings
from account_service.core.collection import Collection
from account_service.core.errors import InvalidCredentials, UserNoLongerExists
from account_service.core.security import PasswordHasher, TokenService
from account_service.models.user import User
from account_service.schemas.user import PasswordUpdate
from account_service.services.field_filter import filter_fields
from account_service.services.handler_factory import envelope
from account_service.services.users import SIGNUP_FIELDS

router = APIRouter(prefix="/auth", tags=["auth"])


def send_token(
    user: User,
    response: Response,
    users: Collection[User],
    tokens: TokenService,
    settings: Settings,
) -> dict[str, Any]:
    """
    Issue a token for the user and deliver it twice: in the body and as an
    HttpOnly "jwt" cookie (secure-only in production).
    """
    token = tokens.issue(str(user.id))
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        expires=dt.datetime.now(dt.timezone.utc) + dt.timedelta(days=settings.jwt_cookie_expires_days),
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return envelope(users.serialize(user), token=token)


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    response: Response,
    body: dict[str, Any] = Body(...),
    users: Collection[User] = Depends(get_user_collection),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
):
    """
    Register a new user account.

    Only username, email, password and passwordConfirm are taken from the
    body; anything else (role, active, ...) is dropped. The password is hashed
    by the collection's insert hook.

    Returns:
        dict: {status, token, data} with the new user (201)

    Raises:
        InputValidationError (400): If the payload fails validation
        DuplicateField (400): If the email is already registered
    """
    filtered = filter_fields(body, *SIGNUP_FIELDS)
    user = await users.create(filtered)
    return send_token(user, response, users, tokens, settings)


@router.post("/login")
async def login(
    response: Response,
    body: dict[str, Any] | None = Body(default=None),
    users: Collection[User] = Depends(get_user_collection),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
):
    """
    Authenticate user and create access token.

    Unknown email, deactivated account and wrong password all produce the
    same 401 so the response never reveals whether an account exists.

    Raises:
        InvalidCredentials (401): Missing or incorrect credentials
    """
    body = body or {}
    email, password = body.get("email"), body.get("password")
    if not email or not password:
        raise InvalidCredentials("Please provide email and password!")
    if not isinstance(email, str) or not isinstance(password, str):
        raise InvalidCredentials()

    user = await users.find_one(email=email.strip().lower())
    if user is None:
        # Same bcrypt work as a real check, so timing does not reveal the account
        await hasher.verify(password, hasher.dummy_hash)
        raise InvalidCredentials()
    if not await hasher.verify(password, user.password_hash):
        raise InvalidCredentials()
    return send_token(user, response, users, tokens, settings)


@router.post("/logout")
async def logout(response: Response):
    """
    Log out by clearing the token cookie.

    The token itself remains valid until it expires; clients holding it in
    memory should discard it.
    """
    response.delete_cookie(TOKEN_COOKIE)
    return {"status": "success"}


@router.patch("/update-password")
async def update_password(
    response: Response,
    body: dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    users: Collection[User] = Depends(get_user_collection),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
):
    """
    Change the password of the logged-in user.

    Body: passwordCurrent, password, passwordConfirm. Changing the password
    invalidates every token issued before the change, so a fresh token is
    returned.

    Raises:
        InvalidCredentials (401): If passwordCurrent is wrong
        InputValidationError (400): If the new password fails validation
    """
    current = body.get("passwordCurrent")
    if not isinstance(current, str) or not await hasher.verify(current, user.password_hash):
        raise InvalidCredentials("Your current password is wrong.")

    updated = await users.find_by_id_and_update(user.id, body, schema=PasswordUpdate)
    if updated is None:
        raise UserNoLongerExists()
    return send_token(updated, response, users, tokens, settings)
