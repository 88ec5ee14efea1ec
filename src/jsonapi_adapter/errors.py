"""
JSON:API Errors

Error objects, the exceptions adapters raise, and the HandlesErrors mixin that
renders any exception as a JSON:API error document.
"""

import os
from http import HTTPStatus
from typing import Any, Dict, List, Optional, Sequence, Union

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

JSONAPI_MEDIA_TYPE = "application/vnd.api+json"
APP_DEBUG = os.getenv("APP_DEBUG", "false").lower() in ("1", "true", "yes")


class JSONAPIResponse(JSONResponse):
    media_type = JSONAPI_MEDIA_TYPE


class JsonApiError(BaseModel):
    """A single JSON:API error object"""

    id: Optional[str] = None
    status: Optional[str] = None
    code: Optional[str] = None
    title: Optional[str] = None
    detail: Optional[str] = None
    source: Optional[Dict[str, str]] = None
    meta: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


def error_document(errors: Sequence[JsonApiError]) -> Dict[str, Any]:
    return {"jsonapi": {"version": "1.0"}, "errors": [e.to_dict() for e in errors]}


def _status_title(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "HTTP Error"


class JsonApiException(Exception):
    """Raised with one or more JSON:API errors and the HTTP status to send"""

    status_code = HTTPStatus.BAD_REQUEST.value

    def __init__(
        self,
        errors: Union[JsonApiError, List[JsonApiError], None] = None,
        status_code: Optional[int] = None,
        detail: Optional[str] = None,
    ) -> None:
        if status_code is not None:
            self.status_code = status_code
        if errors is None:
            errors = [
                JsonApiError(
                    status=str(self.status_code),
                    title=_status_title(self.status_code),
                    detail=detail,
                )
            ]
        elif isinstance(errors, JsonApiError):
            errors = [errors]
        self.errors = errors
        super().__init__(detail or self.errors[0].title or _status_title(self.status_code))

    @property
    def title(self) -> str:
        return self.errors[0].title or _status_title(self.status_code)


class ResourceNotFound(JsonApiException):
    status_code = HTTPStatus.NOT_FOUND.value


class ResourceConflict(JsonApiException):
    status_code = HTTPStatus.CONFLICT.value


class UnprocessableEntity(JsonApiException):
    status_code = HTTPStatus.UNPROCESSABLE_ENTITY.value

    @classmethod
    def for_attribute(cls, field: str, detail: str) -> "UnprocessableEntity":
        return cls(
            JsonApiError(
                status=str(cls.status_code),
                title="Unprocessable Entity",
                detail=detail,
                source={"pointer": f"/data/attributes/{field}"},
            )
        )


def _json_pointer(loc: Sequence[Union[str, int]]) -> Optional[str]:
    segments = [str(s).replace("~", "~0").replace("/", "~1") for s in loc[1:]]
    if not segments:
        return None
    return "/" + "/".join(segments)


def validation_errors(exc: RequestValidationError) -> List[JsonApiError]:
    """Translate pydantic request errors, pointing at the offending member"""
    errors: List[JsonApiError] = []
    for raw in exc.errors():
        loc = tuple(raw.get("loc", ()))
        error = JsonApiError(
            status=str(HTTPStatus.UNPROCESSABLE_ENTITY.value),
            title="Validation Error",
            detail=str(raw.get("msg", "Validation error")),
            code=str(raw["type"]) if raw.get("type") else None,
        )
        root = str(loc[0]) if loc else ""
        if root == "body":
            pointer = _json_pointer(loc)
            if pointer:
                error.source = {"pointer": pointer}
        elif root == "query" and len(loc) > 1:
            error.source = {"parameter": str(loc[1])}
        elif loc:
            error.meta = {"location": [str(item) for item in loc]}
        errors.append(error)

    return errors or [
        JsonApiError(
            status=str(HTTPStatus.UNPROCESSABLE_ENTITY.value),
            title="Validation Error",
            detail="Request validation failed",
        )
    ]


class HandlesErrors:
    """
    Mixin for exception handlers that serve JSON:API routes

    The JSON:API middleware flags each request it dispatches; errors raised
    while serving those requests are rendered as JSON:API error documents.
    """

    def is_json_api(self, request: Request) -> bool:
        return bool(getattr(request.state, "json_api", None))

    def render_json_api(self, request: Request, exc: Exception) -> JSONAPIResponse:
        headers = None

        if isinstance(exc, JsonApiException):
            status_code, errors = exc.status_code, exc.errors
        elif isinstance(exc, RequestValidationError):
            status_code, errors = HTTPStatus.UNPROCESSABLE_ENTITY.value, validation_errors(exc)
        elif isinstance(exc, StarletteHTTPException):
            status_code = int(exc.status_code)
            headers = getattr(exc, "headers", None)
            errors = [
                JsonApiError(
                    status=str(status_code),
                    title=_status_title(status_code),
                    detail=exc.detail if isinstance(exc.detail, str) else str(exc.detail),
                )
            ]
        else:
            status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value
            errors = [
                JsonApiError(
                    status=str(status_code),
                    title=_status_title(status_code),
                    detail=str(exc) if APP_DEBUG else None,
                )
            ]

        return JSONAPIResponse(status_code=status_code, content=error_document(errors), headers=headers)
