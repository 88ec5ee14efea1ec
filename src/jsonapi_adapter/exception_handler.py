"""
Application Exception Handler

Reports and renders every exception that escapes a route, rendering the way
FastAPI does out of the box. JSON:API aware handlers extend this class and
mix in HandlesErrors.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from jsonapi_adapter.errors import JsonApiException

logger = logging.getLogger(__name__)


class ExceptionHandler:
    """Default report/render behaviour for the application"""

    # Expected client errors, rendered but never reported
    dont_report = (StarletteHTTPException, RequestValidationError, JsonApiException)

    def should_report(self, exc: Exception) -> bool:
        return not isinstance(exc, self.dont_report)

    def report(self, exc: Exception) -> None:
        if self.should_report(exc):
            logger.exception("Unhandled exception: %s", exc, exc_info=exc)

    def render(self, request: Request, exc: Exception) -> Response:
        if isinstance(exc, StarletteHTTPException):
            return JSONResponse(
                status_code=exc.status_code,
                content={"detail": exc.detail},
                headers=getattr(exc, "headers", None),
            )
        if isinstance(exc, RequestValidationError):
            return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})
        if isinstance(exc, JsonApiException):
            return JSONResponse(status_code=exc.status_code, content={"detail": exc.title})
        return PlainTextResponse("Internal Server Error", status_code=500)

    async def handle(self, request: Request, exc: Exception) -> Response:
        self.report(exc)
        return self.render(request, exc)

    def register(self, app: FastAPI) -> None:
        """Install this handler for everything the application can raise"""
        for exc_class in (Exception, StarletteHTTPException, RequestValidationError, JsonApiException):
            app.add_exception_handler(exc_class, self.handle)
