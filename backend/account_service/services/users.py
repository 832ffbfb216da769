# account_service/services/users.py
"""
User-specific persistence behaviour: lifecycle hooks, soft-delete visibility
and the public representation of a user.
"""
import datetime as dt
from typing import Any

from tortoise.queryset import QuerySet

from account_service.core.collection import Collection
from account_service.core.security import PasswordHasher
from account_service.models.user import Role, User
from account_service.schemas.user import UserCreate, UserUpdate

# Fields a client may send at signup
SIGNUP_FIELDS = ("username", "email", "password", "passwordConfirm")

# Fields a user may change about themselves
SELF_UPDATE_FIELDS = ("username", "email", "photo")

# Fields an admin update may never write
ADMIN_UPDATE_DENIED = (
    "id",
    "createdAt",
    "password",
    "passwordConfirm",
    "role",
    "active",
    "passwordChangedAt",
    "passwordResetToken",
    "passwordResetExpires",
)

PASSWORD_FIELDS = ("password", "passwordConfirm")


def only_active(qs: QuerySet) -> QuerySet:
    """Default visibility: soft-deleted users are hidden from every query."""
    return qs.filter(active=True)


def user_to_dict(u: User) -> dict[str, Any]:
    """
    Convert a User to its public representation.

    Password hash, active flag, reset fields and created_at are never included.
    """
    data = {
        "id": str(u.id),
        "username": u.username,
        "email": u.email,
        "photo": u.photo,
        "role": Role(u.role).value,
    }
    if u.password_changed_at:
        data["passwordChangedAt"] = u.password_changed_at.isoformat()
    return data


class UserHooks:
    """
    Lifecycle hooks for user writes.

    Both hooks turn a plaintext "password" into "password_hash" and drop the
    confirmation; the plaintext never reaches the database.
    """

    def __init__(self, hasher: PasswordHasher):
        self.hasher = hasher

    async def _hash_password(self, values: dict[str, Any]) -> dict[str, Any]:
        values = dict(values)
        values.pop("password_confirm", None)
        password = values.pop("password", None)
        if password is not None:
            values["password_hash"] = await self.hasher.hash(password)
        return values

    async def before_insert(self, values: dict[str, Any]) -> dict[str, Any]:
        return await self._hash_password(values)

    async def before_update(self, values: dict[str, Any]) -> dict[str, Any]:
        changes_password = "password" in values
        values = await self._hash_password(values)
        if changes_password:
            values["password_changed_at"] = dt.datetime.now(dt.timezone.utc)
        return values


def build_user_collection(hasher: PasswordHasher) -> Collection[User]:
    hooks = UserHooks(hasher)
    return Collection(
        User,
        create_schema=UserCreate,
        update_schema=UserUpdate,
        serializer=user_to_dict,
        before_insert=[hooks.before_insert],
        before_update=[hooks.before_update],
        query_filters=[only_active],
    )
