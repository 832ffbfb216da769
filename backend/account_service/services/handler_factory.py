# account_service/services/handler_factory.py
"""
Generic CRUD handlers bound to a Collection.

A ResourceHandlers instance is configured once per resource (deny-list for
updates, relations to populate, projection) and its coroutines are called from
thin route functions. Every response body uses the same envelope:

    {"status": "success", "data": ..., "totalResults": <list endpoints only>}
"""
from collections.abc import Sequence
from typing import Any

from account_service.core.collection import Collection
from account_service.core.errors import NoUpdatableFields, NotFound
from account_service.services.field_filter import exclude_fields

# Keys that must never leave the service, whatever a serializer returns
SECRET_FIELDS = ("password", "passwordConfirm", "passwordHash", "password_hash", "password_confirm")


def redact(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if k not in SECRET_FIELDS}


def envelope(data: Any = None, **extra: Any) -> dict[str, Any]:
    """
    Build a success response body.

    Args:
        data: A serialized record or a list of them (password material is stripped)
        **extra: Additional top-level keys such as token or totalResults
    """
    if isinstance(data, list):
        data = [redact(item) for item in data]
    elif isinstance(data, dict):
        data = redact(data)
    body: dict[str, Any] = {"status": "success"}
    body.update(extra)
    body["data"] = data
    return body


class ResourceHandlers:
    """
    CRUD operations for one resource.

    Args:
        collection: Persistence access for the resource
        deny_fields: Payload keys that update_one strips before writing
        populate: Relation names fetched alongside records
        select: Projection applied to every returned record
    """

    def __init__(
        self,
        collection: Collection,
        *,
        deny_fields: Sequence[str] = (),
        populate: Sequence[str] = (),
        select: Sequence[str] = (),
    ):
        self.collection = collection
        self.deny_fields = tuple(deny_fields)
        self.populate = tuple(populate)
        self.select = tuple(select)

    def _serialize(self, obj) -> dict[str, Any]:
        return self.collection.serialize(obj, self.select)

    async def list_all(self) -> dict[str, Any]:
        docs = await self.collection.find(populate=self.populate)
        return envelope([self._serialize(doc) for doc in docs], totalResults=len(docs))

    async def create_one(self, payload: dict[str, Any]) -> dict[str, Any]:
        doc = await self.collection.create(payload)
        return envelope(self._serialize(doc))

    async def get_one(self, id: Any) -> dict[str, Any]:
        doc = await self.collection.find_by_id(id, populate=self.populate)
        if doc is None:
            raise NotFound()
        return envelope(self._serialize(doc))

    async def update_one(self, id: Any, payload: dict[str, Any]) -> dict[str, Any]:
        filtered = exclude_fields(payload, *self.deny_fields)
        if not filtered:
            raise NoUpdatableFields()

        doc = await self.collection.find_by_id_and_update(id, filtered)
        if doc is None:
            raise NotFound()
        if self.populate:
            await doc.fetch_related(*self.populate)
        return envelope(self._serialize(doc))

    async def delete_one(self, id: Any) -> None:
        if not await self.collection.find_by_id_and_delete(id):
            raise NotFound()
