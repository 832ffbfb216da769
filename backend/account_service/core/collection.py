# account_service/core/collection.py
"""
Persistence access layer.

A Collection wraps one Tortoise model and owns everything that happens between
a validated request payload and the database:

- schema validation of writes (pydantic models, unknown keys dropped)
- lifecycle hooks run at fixed points: before_insert, before_update
- query filters applied to every default read (e.g. soft-delete visibility)
- conversion of a row to its public dict representation

Storage-level failures are raised as-is (pydantic.ValidationError,
tortoise IntegrityError, InvalidIdentifier) and translated centrally by
account_service.core.error_handlers.
"""
import uuid
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from tortoise import models
from tortoise.queryset import QuerySet

ModelT = TypeVar("ModelT", bound=models.Model)

Hook = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]
QueryFilter = Callable[[QuerySet], QuerySet]
Serializer = Callable[[Any], dict[str, Any]]


class InvalidIdentifier(Exception):
    """Raised when a value cannot be interpreted as a primary key."""

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field}: {value}")


def parse_id(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError as exc:
        raise InvalidIdentifier("id", value) from exc


def apply_projection(data: dict[str, Any], select: Sequence[str]) -> dict[str, Any]:
    """
    Apply a projection to a serialized record.

    Plain names keep only those keys (plus "id"); names prefixed with "-" drop
    the key. Both forms may be mixed.
    """
    if not select:
        return data
    excluded = {name[1:] for name in select if name.startswith("-")}
    included = {name for name in select if not name.startswith("-")}
    if included:
        data = {k: v for k, v in data.items() if k in included or k == "id"}
    return {k: v for k, v in data.items() if k not in excluded}


class Collection(Generic[ModelT]):
    def __init__(
        self,
        model: type[ModelT],
        *,
        create_schema: type[BaseModel],
        update_schema: type[BaseModel],
        serializer: Serializer,
        before_insert: Sequence[Hook] = (),
        before_update: Sequence[Hook] = (),
        query_filters: Sequence[QueryFilter] = (),
    ):
        self.model = model
        self.create_schema = create_schema
        self.update_schema = update_schema
        self.serializer = serializer
        self.before_insert = tuple(before_insert)
        self.before_update = tuple(before_update)
        self.query_filters = tuple(query_filters)

    # ----- reads -----

    def query(self, *, unfiltered: bool = False) -> QuerySet:
        """
        Base queryset for every read and write.

        Args:
            unfiltered: Skip the query filters (e.g. to see soft-deleted rows)
        """
        qs = self.model.all()
        if not unfiltered:
            for narrow in self.query_filters:
                qs = narrow(qs)
        return qs

    async def find(self, *, populate: Sequence[str] = (), unfiltered: bool = False) -> list[ModelT]:
        qs = self.query(unfiltered=unfiltered)
        if populate:
            qs = qs.prefetch_related(*populate)
        return await qs

    async def find_by_id(
        self, id: Any, *, populate: Sequence[str] = (), unfiltered: bool = False
    ) -> ModelT | None:
        obj = await self.query(unfiltered=unfiltered).get_or_none(id=parse_id(id))
        if obj is not None and populate:
            await obj.fetch_related(*populate)
        return obj

    async def find_one(self, *, unfiltered: bool = False, **lookup: Any) -> ModelT | None:
        return await self.query(unfiltered=unfiltered).filter(**lookup).first()

    async def exists(self, *, unfiltered: bool = False, **lookup: Any) -> bool:
        return await self.query(unfiltered=unfiltered).filter(**lookup).exists()

    # ----- writes -----

    async def create(self, payload: dict[str, Any]) -> ModelT:
        """
        Validate a payload against the create schema and insert it.

        Raises:
            pydantic.ValidationError: If the payload fails the schema
            tortoise.exceptions.IntegrityError: On a unique index collision
        """
        values = self.create_schema.model_validate(payload).model_dump(exclude_none=True)
        values = await self._run_hooks(self.before_insert, values)
        return await self.model.create(**values)

    async def find_by_id_and_update(
        self, id: Any, payload: dict[str, Any], *, schema: type[BaseModel] | None = None
    ) -> ModelT | None:
        """
        Validate a partial payload and apply it in a single UPDATE statement.

        Only fields present in the payload are written. The row is matched
        through the default query filters, so hidden rows cannot be updated.

        Returns:
            The record as it is after the update, or None if no row matched
        """
        uid = parse_id(id)
        schema = schema or self.update_schema
        values = schema.model_validate(payload).model_dump(exclude_unset=True)
        values = await self._run_hooks(self.before_update, values)
        if values:
            matched = await self.query().filter(id=uid).update(**values)
            if not matched:
                return None
        return await self.query().get_or_none(id=uid)

    async def set_fields(self, id: Any, **values: Any) -> bool:
        """Write trusted values directly, bypassing schema and hooks."""
        matched = await self.query().filter(id=parse_id(id)).update(**values)
        return bool(matched)

    async def find_by_id_and_delete(self, id: Any) -> bool:
        deleted = await self.query().filter(id=parse_id(id)).delete()
        return bool(deleted)

    # ----- representation -----

    def serialize(self, obj: ModelT, select: Sequence[str] = ()) -> dict[str, Any]:
        return apply_projection(self.serializer(obj), select)

    @staticmethod
    async def _run_hooks(hooks: Sequence[Hook], values: dict[str, Any]) -> dict[str, Any]:
        for hook in hooks:
            values = await hook(values)
        return values
