# account_service/models/__init__.py
"""
Database models module initialization.
Exports all database models for convenient imports throughout the application.

Models exported:
- User: User account and authentication model
- Role: Enumeration of user roles
"""
from .user import User, Role, DEFAULT_PHOTO
