# account_service/schemas/user.py
"""
Pydantic schemas validating user writes before they reach the database.

Unknown keys are ignored, so only the fields declared here can ever be
persisted through a schema-validated write.
"""
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from account_service.models.user import Role

__all__ = ["UserCreate", "UserUpdate", "PasswordUpdate"]


def _normalize_email(value: str | None) -> str | None:
    if isinstance(value, str):
        return value.strip().lower()
    return value


class UserCreate(BaseModel):
    """
    Schema for inserting a new user.
    Signup and admin create narrow the payload to
    username/email/password/passwordConfirm before it gets here, so role is
    only set by trusted callers such as the default admin bootstrap.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    username: str = Field(min_length=1, max_length=15)  # Username cannot be longer than 15 characters
    email: EmailStr
    password: str = Field(min_length=8)  # Password must be at least 8 characters
    password_confirm: str = Field(alias="passwordConfirm")
    photo: str | None = None
    role: Role = Role.USER

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return _normalize_email(value)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirm:
            raise ValueError("Password confirmation does not match")
        return self


class UserUpdate(BaseModel):
    """
    Schema for profile updates (self-service and admin).
    All fields are optional, but a field that is sent cannot be null.
    """
    model_config = ConfigDict(extra="ignore")

    username: str | None = Field(default=None, min_length=1, max_length=15)
    email: EmailStr | None = None
    photo: str | None = Field(default=None, min_length=1, max_length=255)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return _normalize_email(value)

    @field_validator("username", "email", "photo")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class PasswordUpdate(BaseModel):
    """Schema for writing a new password through the password-change flow."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    password: str = Field(min_length=8)
    password_confirm: str = Field(alias="passwordConfirm")

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirm:
            raise ValueError("Password confirmation does not match")
        return self
