"""
Services Module

Application logic shared by the routers:
- field_filter: allow-list / deny-list copying of request payloads
- handler_factory: generic CRUD handlers and the response envelope
- users: user lifecycle hooks, visibility rule and public representation
"""

from .field_filter import (
    filter_fields,
    exclude_fields,
)
from .handler_factory import (
    ResourceHandlers,
    envelope,
    redact,
)
from .users import (
    build_user_collection,
    user_to_dict,
)

__all__ = [
    # Payload filtering
    "filter_fields",
    "exclude_fields",
    # Generic handlers
    "ResourceHandlers",
    "envelope",
    "redact",
    # Users
    "build_user_collection",
    "user_to_dict",
]
