# account_service/services/field_filter.py
"""
Allow-list / deny-list copying of request payloads.
Used on write paths so that only intended fields can reach persistence.
"""
import copy
from collections.abc import Mapping
from typing import Any


def filter_fields(data: Mapping[str, Any], *allowed: str) -> dict[str, Any]:
    """
    Copy only the allow-listed keys out of a payload.

    Keys that are missing or carry an empty value are skipped.

    Example:
        filter_fields(body, "username", "email", "photo")
    """
    return {field: data[field] for field in allowed if data.get(field)}


def exclude_fields(data: Mapping[str, Any], *denied: str) -> dict[str, Any]:
    """Deep copy a payload minus the deny-listed keys."""
    filtered = copy.deepcopy(dict(data))
    for field in denied:
        filtered.pop(field, None)
    return filtered
