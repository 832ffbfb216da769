# account_service/api/v1/routers/users.py
from typing import Any

from fastapi import APIRouter, Body, Depends, Response, status

from account_service.api.v1.deps import get_current_user, get_user_collection, get_user_handlers, require_admin
from account_service.core.collection import Collection
from account_service.core.errors import PasswordChangeNotAllowed
from account_service.models.user import User
from account_service.services.field_filter import filter_fields
from account_service.services.handler_factory import ResourceHandlers
from account_service.services.users import PASSWORD_FIELDS, SELF_UPDATE_FIELDS, SIGNUP_FIELDS

router = APIRouter(prefix="/users", tags=["users"])


# ==============================================================================
# I. Self-service ("me") routes
#     The target id always comes from the token, never from the client.
# ==============================================================================
@router.get("/me")
async def get_me(
    user: User = Depends(get_current_user),
    handlers: ResourceHandlers = Depends(get_user_handlers),
):
    return await handlers.get_one(user.id)


@router.patch("/me")
async def update_me(
    body: dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    handlers: ResourceHandlers = Depends(get_user_handlers),
):
    """
    Update the current user's profile.

    Only username, email and photo can be changed here. Sending any password
    field is rejected outright, even alongside valid fields.

    Raises:
        PasswordChangeNotAllowed (400): If password or passwordConfirm is present
        NoUpdatableFields (400): If no updatable field remains
    """
    if any(field in body for field in PASSWORD_FIELDS):
        raise PasswordChangeNotAllowed()
    filtered = filter_fields(body, *SELF_UPDATE_FIELDS)
    return await handlers.update_one(user.id, filtered)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_me(
    user: User = Depends(get_current_user),
    users: Collection[User] = Depends(get_user_collection),
):
    """Soft delete: the account is deactivated and disappears from every default query."""
    await users.set_fields(user.id, active=False)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==============================================================================
# II. Admin routes
# ==============================================================================
@router.get("", dependencies=[Depends(require_admin)])
async def list_users(handlers: ResourceHandlers = Depends(get_user_handlers)):
    return await handlers.list_all()


@router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
async def create_user(
    body: dict[str, Any] = Body(...),
    handlers: ResourceHandlers = Depends(get_user_handlers),
):
    """
    Create a user on someone's behalf (admin only).

    Takes the same fields as signup, so role, active and photo cannot be set
    here; the account always starts as a plain user. No token is issued.
    """
    return await handlers.create_one(filter_fields(body, *SIGNUP_FIELDS))


@router.get("/{user_id}", dependencies=[Depends(require_admin)])
async def get_user(user_id: str, handlers: ResourceHandlers = Depends(get_user_handlers)):
    return await handlers.get_one(user_id)


@router.patch("/{user_id}", dependencies=[Depends(require_admin)])
async def update_user(
    user_id: str,
    body: dict[str, Any] = Body(...),
    handlers: ResourceHandlers = Depends(get_user_handlers),
):
    """
    Update a user (admin only).

    Role, active flag, password fields, timestamps and reset fields are on the
    deny-list and silently dropped; a payload with nothing else is rejected.

    Raises:
        NoUpdatableFields (400): If only denied fields were sent
        NotFound (404): If the user does not exist or is deactivated
    """
    return await handlers.update_one(user_id, body)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
async def delete_user(user_id: str, handlers: ResourceHandlers = Depends(get_user_handlers)):
    await handlers.delete_one(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
