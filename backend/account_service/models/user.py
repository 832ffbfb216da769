# account_service/models/user.py
"""
Database model for users.
Represents a user account in the system, containing authentication credentials,
profile information, role-based access control and the soft-delete flag.
"""
import uuid
from enum import Enum

from tortoise import fields, models

DEFAULT_PHOTO = "default.jpg"


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class User(models.Model):
    """
    User database model.

    Security:
    - Password is stored as a bcrypt hash (never store plain text passwords)
    - Email must be unique across all users (enforced by a unique index)
    - Role determines access level (user vs admin)
    - Inactive users are soft-deleted: the row remains but is hidden from
      default queries (see account_service.services.users)
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)  # Primary key: unique user identifier
    username = fields.CharField(max_length=15)  # Display name
    email = fields.CharField(max_length=254, unique=True)  # Lowercased login email (unique index)
    password_hash = fields.CharField(max_length=255)  # bcrypt hash, never serialized
    photo = fields.CharField(max_length=255, default=DEFAULT_PHOTO)  # Avatar asset reference
    role = fields.CharEnumField(Role, max_length=16, default=Role.USER)  # "user" (default) or "admin"
    active = fields.BooleanField(default=True)  # False once the user deletes their account
    password_changed_at = fields.DatetimeField(null=True)  # Set on every password change
    password_reset_token = fields.CharField(max_length=255, null=True)  # Reserved for a reset flow
    password_reset_expires = fields.DatetimeField(null=True)  # Reserved for a reset flow
    created_at = fields.DatetimeField(auto_now_add=True)  # Timestamp when account was created

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"  # Database table name

    def __str__(self) -> str:
        return f"{self.username} <{self.email}>"
