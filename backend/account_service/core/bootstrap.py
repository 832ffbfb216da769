# account_service/core/bootstrap.py
"""
Bootstrap module for application initialization.
Handles initial setup tasks such as creating a default admin user on first startup.
"""
import os
import logging

from account_service.core.collection import Collection
from account_service.models.user import Role, User

logger = logging.getLogger("uvicorn.error")


async def ensure_default_admin(users: Collection[User]) -> User | None:
    """
    If no admin exists in the database, create a default admin based on environment variables.
    Only takes effect under the following conditions:
      - Currently no active user with role="admin"
      - And ADMIN_PASSWORD is set (to avoid using a default weak password)
    Environment variables:
      ADMIN_USERNAME (default: "admin")
      ADMIN_EMAIL    (default: "admin@example.com")
      ADMIN_PASSWORD (required, otherwise won't create)

    Returns:
        The created admin, or None when nothing was created
    """
    if await users.exists(role=Role.ADMIN):
        return None

    admin_password = os.getenv("ADMIN_PASSWORD")
    if not admin_password:
        logger.warning("[bootstrap] No admin present, but ADMIN_PASSWORD not set -> skip creating default admin.")
        return None

    admin_email = os.getenv("ADMIN_EMAIL", "admin@example.com").strip().lower()
    # The email may belong to a deactivated account; the unique index spans all rows
    if await users.exists(unfiltered=True, email=admin_email):
        logger.warning("[bootstrap] Email %s already registered -> skip creating default admin.", admin_email)
        return None

    admin = await users.create({
        "username": os.getenv("ADMIN_USERNAME", "admin"),
        "email": admin_email,
        "password": admin_password,
        "passwordConfirm": admin_password,
        "role": Role.ADMIN,
    })
    logger.warning("[bootstrap] Created default admin -> username=%s email=%s id=%s",
                   admin.username, admin.email, admin.id)
    return admin
