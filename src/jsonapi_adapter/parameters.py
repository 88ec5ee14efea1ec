"""
JSON:API Encoding Parameters

Query parameters that shape a JSON:API request: include paths, sparse
fieldsets, sort fields, pagination and filters.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from fastapi import Request

from jsonapi_adapter.errors import JsonApiError, JsonApiException

_FAMILY = re.compile(r"^(fields|page|filter)\[([^\]]+)\]$")


def _split(value: str) -> List[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


@dataclass
class EncodingParameters:
    include: List[str] = field(default_factory=list)
    fields: Dict[str, List[str]] = field(default_factory=dict)
    sort: List[str] = field(default_factory=list)
    page: Dict[str, str] = field(default_factory=dict)
    filter: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_query(cls, query: Dict[str, str]) -> "EncodingParameters":
        params = cls()
        for key, value in query.items():
            if key == "include":
                params.include = _split(value)
            elif key == "sort":
                params.sort = _split(value)
            else:
                match = _FAMILY.match(key)
                if not match:
                    continue
                family, member = match.groups()
                if family == "fields":
                    params.fields[member] = _split(value)
                elif family == "page":
                    params.page[member] = value
                else:
                    params.filter[member] = value
        return params

    @classmethod
    def from_request(cls, request: Request) -> "EncodingParameters":
        return cls.from_query(dict(request.query_params))

    def page_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        """Read a positive integer page member, rejecting anything else"""
        if key not in self.page:
            return default
        try:
            value = int(self.page[key])
        except ValueError:
            value = 0
        if value < 1:
            raise JsonApiException(
                JsonApiError(
                    status="400",
                    title="Invalid Query Parameter",
                    detail=f"page[{key}] must be a positive integer.",
                    source={"parameter": f"page[{key}]"},
                )
            )
        return value
