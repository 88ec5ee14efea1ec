"""
Resource Schemas

Serializes records into JSON:API resource objects and describes the request
documents clients send.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel, Field

from jsonapi_adapter.parameters import EncodingParameters
from jsonapi_adapter.str_utils import dasherize


class ResourceObject(BaseModel):
    type: str
    id: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)


class ResourceDocument(BaseModel):
    data: ResourceObject


class ResourceSchema:
    """Maps model attributes to a JSON:API resource object"""

    def __init__(self, resource_type: str, attributes: Iterable[str], base_url: str = "") -> None:
        self.resource_type = resource_type
        self.attributes = list(attributes)
        self.base_url = base_url.rstrip("/")

    @staticmethod
    def _value(value: Any) -> Any:
        if isinstance(value, datetime):
            return value.isoformat()
        return value

    def serialize(self, record, params: Optional[EncodingParameters] = None) -> Dict[str, Any]:
        fieldset = params.fields.get(self.resource_type) if params else None
        attributes = {}
        for key in self.attributes:
            field = dasherize(key)
            if fieldset is not None and field not in fieldset:
                continue
            attributes[field] = self._value(getattr(record, key))

        resource_id = str(record.get_key())
        return {
            "type": self.resource_type,
            "id": resource_id,
            "attributes": attributes,
            "links": {"self": f"{self.base_url}/{self.resource_type}/{resource_id}"},
        }

    def document(self, data, params: Optional[EncodingParameters] = None) -> Dict[str, Any]:
        if isinstance(data, list):
            serialized: Any = [self.serialize(r, params) for r in data]
        else:
            serialized = self.serialize(data, params)
        return {"jsonapi": {"version": "1.0"}, "data": serialized}
