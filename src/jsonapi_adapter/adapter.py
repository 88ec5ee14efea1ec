"""
Resource Adapter - Persistence Layer

Translates JSON:API operations (list, read, create, update, delete) into ORM
calls for one model. Subclasses customise individual hooks, for example to
change how soft-deleting models are found, filled and persisted.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional
import logging
import re

from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from jsonapi_adapter.errors import (
    JsonApiError,
    JsonApiException,
    ResourceConflict,
    ResourceNotFound,
    UnprocessableEntity,
)
from jsonapi_adapter.parameters import EncodingParameters
from jsonapi_adapter.schema import ResourceDocument
from jsonapi_adapter.soft_delete import uses_soft_deletes, without_trashed
from jsonapi_adapter.str_utils import dasherize, underscore

logger = logging.getLogger(__name__)

# Column named in SQLite ("failed: posts.slug") and PostgreSQL (column "title", Key (slug)=...) messages
_CONSTRAINT_COLUMN = re.compile(r"failed: \w+\.(\w+)|column \"(\w+)\"|Key \((\w+)\)")


class Adapter:
    """Base adapter: one instance per request, bound to that request's session"""

    model: Any = None
    resource_type: str = ""
    default_page_size = 15
    max_page_size = 100

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def new_query(self) -> Query:
        """Base query; soft-deleted rows are hidden by default"""
        query = self.db.query(self.model)
        if uses_soft_deletes(self.model):
            query = without_trashed(query, self.model)
        return query

    def get_qualified_key(self):
        return getattr(self.model, self.model.get_key_name())

    def cast_key(self, resource_id: Any) -> Optional[Any]:
        """Convert a URL/document id to the primary key type, None if it cannot be"""
        python_type = inspect(self.model).primary_key[0].type.python_type
        try:
            return python_type(resource_id)
        except (TypeError, ValueError):
            return None

    def find_query(self, resource_id: Any) -> Query:
        return self.new_query().filter(self.get_qualified_key() == resource_id)

    def find(self, resource_id: Any):
        key = self.cast_key(resource_id)
        if key is None:
            return None
        return self.find_query(key).first()

    def exists(self, resource_id: Any) -> bool:
        return self.find(resource_id) is not None

    def query(self, params: EncodingParameters) -> List[Any]:
        """
        List resources

        Supports filter[id] (comma separated), sort on model columns by their
        dasherized name (prefix "-" for descending) and page[number]/page[size].
        """
        query = self.new_query()

        if "id" in params.filter:
            keys = [self.cast_key(v) for v in params.filter["id"].split(",")]
            query = query.filter(self.get_qualified_key().in_([k for k in keys if k is not None]))

        columns = {attr.key for attr in inspect(self.model).column_attrs}
        for field in params.sort:
            descending = field.startswith("-")
            key = underscore(field.lstrip("-"))
            if key not in columns:
                raise JsonApiException(
                    JsonApiError(
                        status="400",
                        title="Invalid Query Parameter",
                        detail=f"Sort field {field.lstrip('-')} is not allowed.",
                        source={"parameter": "sort"},
                    )
                )
            column = getattr(self.model, key)
            query = query.order_by(column.desc() if descending else column.asc())

        if not params.sort:
            query = query.order_by(self.get_qualified_key().asc())

        size = min(params.page_int("size", self.default_page_size), self.max_page_size)
        number = params.page_int("number", 1)
        return query.offset((number - 1) * size).limit(size).all()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def read(self, resource_id: Any, params: EncodingParameters):
        record = self.find(resource_id)
        if record is None:
            raise ResourceNotFound(detail=f"Resource {self.resource_type} with id {resource_id} does not exist.")
        return record

    def create(self, document: ResourceDocument, params: EncodingParameters):
        self.assert_type(document)
        if document.data.id is not None:
            raise JsonApiException(
                JsonApiError(
                    status="403",
                    title="Forbidden",
                    detail="Client-generated ids are not supported.",
                    source={"pointer": "/data/id"},
                ),
                status_code=403,
            )

        record = self.model()
        self.fill_attributes(record, dict(document.data.attributes))
        with self.translate_integrity_errors():
            self.persist(record)
        logger.info("Created %s %s", self.resource_type, record.get_key())
        return record

    def update(self, record, document: ResourceDocument, params: EncodingParameters):
        self.assert_type(document)
        if document.data.id is not None and str(document.data.id) != str(record.get_key()):
            raise ResourceConflict(
                JsonApiError(
                    status="409",
                    title="Conflict",
                    detail=f"Resource id {document.data.id} does not match the endpoint id {record.get_key()}.",
                    source={"pointer": "/data/id"},
                )
            )

        self.fill_attributes(record, dict(document.data.attributes))
        with self.translate_integrity_errors():
            self.persist(record)
        return record

    def delete(self, record, params: EncodingParameters) -> bool:
        return bool(record.delete(self.db))

    def assert_type(self, document: ResourceDocument) -> None:
        if document.data.type != self.resource_type:
            raise ResourceConflict(
                JsonApiError(
                    status="409",
                    title="Conflict",
                    detail=f"Resource type {document.data.type} is not supported by this endpoint.",
                    source={"pointer": "/data/type"},
                )
            )

    # ------------------------------------------------------------------
    # Hydration
    # ------------------------------------------------------------------

    def fill_attributes(self, record, attributes: Dict[str, Any]) -> None:
        record.fill(self.deserialize_attributes(attributes, record))

    def deserialize_attributes(self, attributes: Dict[str, Any], record) -> Dict[str, Any]:
        return {
            self.key_for_attribute(field, record): self.deserialize_attribute(value, field, record)
            for field, value in attributes.items()
        }

    def key_for_attribute(self, field: str, record) -> str:
        return underscore(field)

    def deserialize_attribute(self, value: Any, field: str, record) -> Any:
        if self.is_date_attribute(field, record):
            return self.deserialize_date(value, field)
        return value

    def is_date_attribute(self, field: str, record) -> bool:
        return self.key_for_attribute(field, record) in record.get_dates()

    def deserialize_date(self, value: Any, field: str) -> Optional[datetime]:
        """Parse an ISO 8601 value into the naive UTC datetime the models store"""
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            parsed = value
        else:
            try:
                parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
            except ValueError:
                raise UnprocessableEntity.for_attribute(field, f"The {field} member must be an ISO 8601 date.")
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def persist(self, record) -> None:
        record.save(self.db)

    @contextmanager
    def translate_integrity_errors(self) -> Iterator[None]:
        """Roll back and report constraint violations as JSON:API errors"""
        try:
            yield
        except IntegrityError as e:
            self.db.rollback()
            raise self.integrity_error(e) from e

    def integrity_error(self, exc: IntegrityError) -> JsonApiException:
        message = str(exc.orig)
        match = _CONSTRAINT_COLUMN.search(message)
        column = next((g for g in match.groups() if g), None) if match else None
        source = {"pointer": f"/data/attributes/{dasherize(column)}"} if column else None
        lowered = message.lower()

        if "not null" in lowered or "null value" in lowered:
            return UnprocessableEntity(
                JsonApiError(
                    status="422",
                    title="Unprocessable Entity",
                    detail=f"The {dasherize(column) if column else 'resource'} member is required.",
                    source=source,
                )
            )

        logger.info("Constraint violation on %s: %s", self.resource_type, message)
        return ResourceConflict(
            JsonApiError(
                status="409",
                title="Conflict",
                detail=(
                    f"The {dasherize(column)} member conflicts with an existing resource."
                    if column and ("unique" in lowered or "duplicate" in lowered)
                    else "The resource conflicts with existing data."
                ),
                source=source,
            )
        )
