"""
Soft Deletes Models - Adapter Mixin

Adapter behaviour for models that use soft deletes. Mix in ahead of Adapter:

    class PostAdapter(SoftDeletesModels, Adapter):
        model = Post
        resource_type = "posts"

- DELETE always removes the record permanently.
- Trashed records can still be read and updated.
- Clients trash and restore a record by writing its soft-delete attribute
  (deleted-at by default), either a date or a boolean-like value.
"""

from typing import Any, Dict, Optional

from sqlalchemy.orm import Query

from jsonapi_adapter.parameters import EncodingParameters
from jsonapi_adapter.soft_delete import utcnow, with_trashed
from jsonapi_adapter.str_utils import dasherize

# The values accepted as booleans, compared by type and value
_TRUE_VALUES = (True, 1, "1")
_FALSE_VALUES = (False, 0, "0")


def _strict_in(value: Any, candidates: tuple) -> bool:
    return any(type(value) is type(c) and value == c for c in candidates)


class SoftDeletesModels:
    """Mixin for Adapter subclasses whose model uses SoftDeletes"""

    # JSON:API field for the soft-delete value; defaults to the dasherized column
    soft_delete_field: Optional[str] = None

    def delete(self, record, params: EncodingParameters) -> bool:
        return bool(record.force_delete(self.db))

    def find_query(self, resource_id: Any) -> Query:
        return with_trashed(self.db.query(self.model), self.model).filter(self.get_qualified_key() == resource_id)

    def fill_attributes(self, record, attributes: Dict[str, Any]) -> None:
        field = self.get_soft_delete_field(record)
        attributes = dict(attributes)

        if field in attributes:
            self.fill_soft_delete(record, field, attributes.pop(field))

        record.fill(self.deserialize_attributes(attributes, record))

    def fill_soft_delete(self, record, field: str, value: Any) -> None:
        """Set the soft-delete key, bypassing the fillable guard"""
        value = self.deserialize_soft_delete(value, field, record)
        record.force_fill({self.get_soft_delete_key(record): value})

    def deserialize_soft_delete(self, value: Any, field: str, record):
        """
        Deserialize the value provided for the soft-delete attribute.

        Boolean-like values (True/False, 1/0, "1"/"0") mean "deleted now" or
        "not deleted". Anything else is deserialized like any other attribute,
        so a date string sets that deletion date.
        """
        if _strict_in(value, _TRUE_VALUES):
            return utcnow()
        if _strict_in(value, _FALSE_VALUES):
            return None

        return self.deserialize_attribute(value, field, record)

    def get_soft_delete_field(self, record) -> str:
        if self.soft_delete_field:
            return self.soft_delete_field

        return dasherize(self.get_soft_delete_key(record))

    def get_soft_delete_key(self, record) -> str:
        return record.get_deleted_at_column()

    def key_for_attribute(self, field: str, record) -> str:
        if field == self.get_soft_delete_field(record):
            return self.get_soft_delete_key(record)
        return super().key_for_attribute(field, record)

    def persist(self, record) -> None:
        self.save_or_restore(record)

    def save_or_restore(self, record) -> None:
        if self.will_restore(record):
            record.restore(self.db)
        else:
            record.save(self.db)

    def will_restore(self, record) -> bool:
        """Restore when an existing, trashed record has had its marker cleared"""
        if not record.exists:
            return False

        key = self.get_soft_delete_key(record)
        if not key:
            return False

        return record.is_dirty(key) and not record.trashed()
